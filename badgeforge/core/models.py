# File: badgeforge/core/models.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-03
# Purpose: Modelos de datos: Template (inmutable), TemplateLayer, LayerOverride, ViewBox.
# Notes:
# - Overrides ralos: cada campo None cae al default del template en el resolver (y SOLO ahí).
# - Orden de render = orden de la lista (primero = fondo).
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Union

from badgeforge.core.version import SCHEMA_VERSION
from badgeforge.utils.errors import BadgeSchemaError

LayerKind = Literal["shape", "text", "svgImage"]
Coordinate = Union[int, float, str]
Position = tuple[Coordinate, Coordinate]

LAYER_KINDS = ("shape", "text", "svgImage")
LINEJOINS = ("miter", "round", "bevel", "arcs", "miter-clip")


@dataclass(frozen=True)
class ViewBox:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def to_attr(self) -> str:
        # Import local: geom.kernel no depende de core.
        from badgeforge.geom.kernel import fmt_num

        return " ".join(fmt_num(v) for v in self.as_tuple())

    def almost_equal(self, other: "ViewBox", eps: float = 1e-9) -> bool:
        return all(abs(a - b) <= eps for a, b in zip(self.as_tuple(), other.as_tuple()))


@dataclass(frozen=True)
class TemplateLayer:
    id: str
    kind: LayerKind
    position: Optional[Position] = None

    # shape
    path: Optional[str] = None
    subtype: Optional[str] = None  # "path" = guía para textPath (no se dibuja)

    # pintura
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    stroke_linejoin: Optional[str] = None  # None = el del autor / default SVG
    opacity: float = 1.0

    # text
    text: str = ""
    font_family: str = "Arial"
    font_size: float = 16.0
    font_weight: str = "normal"
    line_height: float = 1.2
    clip_ref: Optional[str] = None
    text_path: Optional[str] = None

    # svgImage
    svg_content: str = ""
    width: float = 100.0
    height: float = 100.0

    # comunes
    rotation: float = 0.0
    scale: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "position": list(self.position) if self.position is not None else None,
            "rotation": float(self.rotation),
            "scale": float(self.scale),
            "fill": self.fill,
            "stroke": self.stroke,
            "stroke_width": float(self.stroke_width),
            "stroke_linejoin": self.stroke_linejoin,
            "opacity": float(self.opacity),
        }
        if self.kind == "shape":
            d["path"] = self.path
            d["subtype"] = self.subtype
        elif self.kind == "text":
            d.update(
                {
                    "text": self.text,
                    "font_family": self.font_family,
                    "font_size": float(self.font_size),
                    "font_weight": self.font_weight,
                    "line_height": float(self.line_height),
                    "clip_ref": self.clip_ref,
                    "text_path": self.text_path,
                }
            )
        else:
            d.update(
                {
                    "svg_content": self.svg_content,
                    "clip_ref": self.clip_ref,
                    "width": float(self.width),
                    "height": float(self.height),
                }
            )
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "TemplateLayer":
        if not isinstance(d, dict):
            raise BadgeSchemaError("Layer inválido: se esperaba dict")
        lid = str(d.get("id", "")).strip()
        if not lid:
            raise BadgeSchemaError("Layer inválido: falta 'id'")

        kind = d.get("kind", d.get("type"))
        if kind not in LAYER_KINDS:
            raise BadgeSchemaError(f"Layer {lid!r}: kind inválido: {kind!r}")

        if kind == "shape" and not str(d.get("path") or "").strip():
            raise BadgeSchemaError(f"Layer {lid!r}: shape sin 'path'")

        linejoin = _opt_str(d.get("stroke_linejoin"))
        if linejoin is not None and linejoin not in LINEJOINS:
            raise BadgeSchemaError(f"Layer {lid!r}: stroke_linejoin inválido: {linejoin!r}")

        return TemplateLayer(
            id=lid,
            kind=kind,  # type: ignore[arg-type]
            position=_as_position(d.get("position"), f"layers[{lid}].position"),
            path=_opt_str(d.get("path")),
            subtype=_opt_str(d.get("subtype")),
            fill=_opt_str(d.get("fill")),
            stroke=_opt_str(d.get("stroke")),
            stroke_width=_as_float(d.get("stroke_width", 0.0), f"layers[{lid}].stroke_width"),
            stroke_linejoin=linejoin,
            opacity=_as_float(d.get("opacity", 1.0), f"layers[{lid}].opacity"),
            text=str(d.get("text") or ""),
            font_family=str(d.get("font_family") or "Arial"),
            font_size=_as_float(d.get("font_size", 16.0), f"layers[{lid}].font_size"),
            font_weight=str(d.get("font_weight") or "normal"),
            line_height=_as_float(d.get("line_height", 1.2), f"layers[{lid}].line_height"),
            clip_ref=_opt_str(d.get("clip_ref", d.get("clipRef"))),
            text_path=_opt_str(d.get("text_path")),
            svg_content=str(d.get("svg_content") or ""),
            width=_as_float(d.get("width", 100.0), f"layers[{lid}].width"),
            height=_as_float(d.get("height", 100.0), f"layers[{lid}].height"),
            rotation=_as_float(d.get("rotation", 0.0), f"layers[{lid}].rotation"),
            scale=_as_float(d.get("scale", 1.0), f"layers[{lid}].scale"),
        )


@dataclass
class LayerOverride:
    """Valores por sesión que manda la UI. None = usar el default del template."""

    id: str
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Any = None
    stroke_linejoin: Optional[str] = None
    font_family: Optional[str] = None
    font_size: Any = None
    font_weight: Optional[str] = None
    text: Optional[str] = None
    rotation: Any = None
    scale: Any = None
    transform_origin: Optional[tuple[Any, Any]] = None
    svg_content: Optional[str] = None
    position: Optional[Position] = None

    # Campos numéricos: se guardan crudos (la UI puede mandar "", NaN); el resolver los sanea.
    _FIELDS = (
        "fill",
        "stroke",
        "stroke_width",
        "stroke_linejoin",
        "font_family",
        "font_size",
        "font_weight",
        "text",
        "rotation",
        "scale",
        "transform_origin",
        "svg_content",
        "position",
    )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id}
        for k in self._FIELDS:
            v = getattr(self, k)
            if v is None:
                continue
            d[k] = list(v) if isinstance(v, tuple) else v
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LayerOverride":
        if not isinstance(d, dict):
            raise BadgeSchemaError("Override inválido: se esperaba dict")
        oid = str(d.get("id", "")).strip()
        if not oid:
            raise BadgeSchemaError("Override inválido: falta 'id'")

        origin = d.get("transform_origin")
        if origin is not None:
            if not isinstance(origin, (list, tuple)) or len(origin) != 2:
                raise BadgeSchemaError(f"Override {oid!r}: transform_origin se espera [x, y]")
            origin = (origin[0], origin[1])

        return LayerOverride(
            id=oid,
            fill=_opt_str(d.get("fill")),
            stroke=_opt_str(d.get("stroke")),
            stroke_width=d.get("stroke_width"),
            stroke_linejoin=_opt_str(d.get("stroke_linejoin")),
            font_family=_opt_str(d.get("font_family")),
            font_size=d.get("font_size"),
            font_weight=_opt_str(d.get("font_weight")),
            text=(str(d["text"]) if d.get("text") is not None else None),
            rotation=d.get("rotation"),
            scale=d.get("scale"),
            transform_origin=origin,
            svg_content=(str(d["svg_content"]) if d.get("svg_content") is not None else None),
            position=_as_position(d.get("position"), f"overrides[{oid}].position"),
        )


@dataclass(frozen=True)
class Template:
    id: str
    name: str = ""
    width: Optional[float] = None
    height: Optional[float] = None
    layers: tuple[TemplateLayer, ...] = field(default_factory=tuple)
    schema_version: int = SCHEMA_VERSION

    def __post_init__(self) -> None:
        _uniq_ids(self.layers)

    @property
    def has_dimensions(self) -> bool:
        return bool(self.width and self.height and self.width > 0 and self.height > 0)

    def intrinsic_viewbox(self) -> ViewBox:
        if not self.has_dimensions:
            return ViewBox()
        return ViewBox(0.0, 0.0, float(self.width), float(self.height))  # type: ignore[arg-type]

    def get_layer(self, layer_id: str) -> Optional[TemplateLayer]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": int(self.schema_version),
            "id": self.id,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "layers": [layer.to_dict() for layer in self.layers],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Template":
        if not isinstance(d, dict):
            raise BadgeSchemaError("Template inválido: raíz no es objeto JSON")

        sv = _as_int(d.get("schema_version", SCHEMA_VERSION), "schema_version")
        if sv > SCHEMA_VERSION:
            raise BadgeSchemaError(
                f"schema_version no soportado: {sv} (soportado hasta {SCHEMA_VERSION})"
            )

        tid = str(d.get("id", "")).strip()
        if not tid:
            raise BadgeSchemaError("Template inválido: falta 'id'")

        width = _opt_dimension(d.get("width"), "width")
        height = _opt_dimension(d.get("height"), "height")

        layers_raw = d.get("layers", [])
        if not isinstance(layers_raw, list):
            raise BadgeSchemaError("layers inválido: se espera lista")
        layers = tuple(TemplateLayer.from_dict(x) for x in layers_raw)

        return Template(
            id=tid,
            name=str(d.get("name") or ""),
            width=width,
            height=height,
            layers=layers,
            schema_version=sv,
        )


def overrides_from_data(data: Any) -> dict[str, LayerOverride]:
    """Acepta lista de overrides o dict {layer_id: {...}}; devuelve {layer_id: LayerOverride}."""
    if data is None:
        return {}
    items: list[dict[str, Any]] = []
    if isinstance(data, dict):
        for k, v in data.items():
            if not isinstance(v, dict):
                raise BadgeSchemaError(f"Override {k!r}: se esperaba objeto")
            items.append({"id": k, **v})
    elif isinstance(data, list):
        items = list(data)
    else:
        raise BadgeSchemaError("overrides inválido: se espera lista u objeto")

    out: dict[str, LayerOverride] = {}
    for raw in items:
        ov = LayerOverride.from_dict(raw)
        out[ov.id] = ov
    return out


# ----------------------------
# Helpers
# ----------------------------

def _as_float(value: Any, field: str) -> float:
    try:
        return float(value)
    except Exception as e:
        raise BadgeSchemaError(f"Campo {field} inválido (float): {value!r}") from e


def _as_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except Exception as e:
        raise BadgeSchemaError(f"Campo {field} inválido (int): {value!r}") from e


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def _opt_dimension(value: Any, field: str) -> Optional[float]:
    # Ausente = template "responsive" (solo exporta SVG).
    if value in (None, ""):
        return None
    v = _as_float(value, field)
    if v <= 0:
        raise BadgeSchemaError(f"{field} inválido: debe ser > 0")
    return v


def _as_position(value: Any, field: str) -> Optional[Position]:
    if value is None:
        return None
    if isinstance(value, dict):
        value = (value.get("x"), value.get("y"))
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise BadgeSchemaError(f"{field} inválido: se espera [x, y] o {{x, y}}")
    for c in value:
        if isinstance(c, bool) or not isinstance(c, (int, float, str)):
            raise BadgeSchemaError(f"{field} inválido: coordenada {c!r}")
    return (value[0], value[1])


def _uniq_ids(layers: Iterable[TemplateLayer]) -> None:
    seen: set[str] = set()
    for layer in layers:
        if layer.id in seen:
            raise BadgeSchemaError(f"IDs duplicados en layers[]: {layer.id!r}")
        seen.add(layer.id)
