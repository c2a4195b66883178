# File: badgeforge/geom/kernel.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-03
# Purpose: Matemática pura: coordenadas %, viewBox/centroide de SVG ajeno, transforms, fit.
# Notes:
# - Sin DOM ni Qt. Todo es tolerante: la entrada viene de la UI y NO puede romper el preview.
# - El centroide sale del atributo viewBox por regex (nunca parse completo del documento).
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

Coordinate = Union[int, float, str]
ViewBoxTuple = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Size:
    width: float = 0.0
    height: float = 0.0

    @property
    def is_valid(self) -> bool:
        return _finite(self.width) and _finite(self.height) and self.width > 0 and self.height > 0


# ----------------------------
# Números tolerantes
# ----------------------------

def _finite(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def safe_number(value: Any, default: float = 0.0) -> float:
    """Convierte a float o devuelve `default` (None, NaN, inf, "", "abc", bool...).

    Es el único punto donde se coacciona input numérico de la UI.
    """
    if isinstance(value, bool) or value is None:
        return float(default)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else float(default)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return float(default)
        try:
            v = float(s)
        except ValueError:
            return float(default)
        return v if math.isfinite(v) else float(default)
    return float(default)


def fmt_num(v: Any) -> str:
    """Formatea un número para atributos SVG: sin ceros de más, nunca 'nan'/'inf'."""
    n = safe_number(v, 0.0)
    s = f"{n:.6f}".rstrip("0").rstrip(".")
    if s in ("-0", ""):
        return "0"
    return s


def clamp(v: float, lo: float, hi: float) -> float:
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v


# ----------------------------
# Coordenadas (absolutas o %)
# ----------------------------

def is_percent(coord: Any) -> bool:
    return isinstance(coord, str) and coord.strip().endswith("%")


def parse_percent(coord: str) -> float:
    """"50%" -> 0.5, "-25%" -> -0.25. Inválido -> 0."""
    return safe_number(coord.strip()[:-1], 0.0) / 100.0


def resolve_coordinate(coord: Any, extent: Any, offset: Any = 0.0) -> float:
    """offset + (coord% * extent | coord).

    Falla cerrado: lo que no es número ni porcentaje vale 0 (más el offset).
    """
    off = safe_number(offset, 0.0)
    if is_percent(coord):
        return off + parse_percent(coord) * safe_number(extent, 0.0)
    return off + safe_number(coord, 0.0)


def resolve_position(
    position: Optional[Tuple[Any, Any]],
    width: Any,
    height: Any,
    *,
    origin: Tuple[float, float] = (0.0, 0.0),
) -> Point:
    """Resuelve (x, y). Sin posición -> centro del área (posicionamiento por centro)."""
    if position is None:
        position = ("50%", "50%")
    x, y = position
    return Point(
        resolve_coordinate(x, width, origin[0]),
        resolve_coordinate(y, height, origin[1]),
    )


# ----------------------------
# viewBox / centroide
# ----------------------------

_VIEWBOX_ATTR_RE = re.compile(r"""viewBox\s*=\s*["']([^"']*)["']""", re.IGNORECASE)


def parse_viewbox(s: Optional[str]) -> Optional[ViewBoxTuple]:
    if not s:
        return None
    parts = re.split(r"[\s,]+", s.strip())
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (float(parts[0]), float(parts[1]), float(parts[2]), float(parts[3]))
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in (x, y, w, h)):
        return None
    if w <= 0 or h <= 0:
        return None
    return (x, y, w, h)


def extract_viewbox(svg_source: Optional[str]) -> Optional[ViewBoxTuple]:
    """Lee el primer atributo viewBox del markup (regex, sin parsear el documento)."""
    if not svg_source:
        return None
    m = _VIEWBOX_ATTR_RE.search(svg_source)
    if not m:
        return None
    return parse_viewbox(m.group(1))


def compute_centroid(svg_source: Optional[str]) -> Point:
    """Centro visual declarado por el viewBox del SVG ajeno; (0,0) si no hay viewBox."""
    vb = extract_viewbox(svg_source)
    if vb is None:
        return Point(0.0, 0.0)
    x, y, w, h = vb
    return Point(x + w / 2.0, y + h / 2.0)


def keep_aspect_mapping(viewbox: ViewBoxTuple, box_w: float, box_h: float) -> Tuple[float, float, float]:
    """(scale, tx, ty) que usa un <svg width/height viewBox> por defecto (xMidYMid meet)."""
    vx, vy, vw, vh = viewbox
    if vw <= 1e-9 or vh <= 1e-9 or box_w <= 1e-9 or box_h <= 1e-9:
        return (1.0, 0.0, 0.0)
    s = min(box_w / vw, box_h / vh)
    # Letterbox centrado.
    tx = (box_w - vw * s) * 0.5 - vx * s
    ty = (box_h - vh * s) * 0.5 - vy * s
    return (s, tx, ty)


def map_viewbox_point(point: Point, viewbox: Optional[ViewBoxTuple], box_w: float, box_h: float) -> Point:
    """Lleva un punto del espacio viewBox al espacio local de la caja del layer."""
    if viewbox is None:
        return point
    s, tx, ty = keep_aspect_mapping(viewbox, box_w, box_h)
    return Point(point.x * s + tx, point.y * s + ty)


# ----------------------------
# Transforms
# ----------------------------

def join_transforms(*parts: str) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def translate(x: Any, y: Any) -> str:
    return f"translate({fmt_num(x)} {fmt_num(y)})"


def rotate(deg: Any, cx: Any = None, cy: Any = None) -> str:
    if cx is None or cy is None:
        return f"rotate({fmt_num(deg)})"
    return f"rotate({fmt_num(deg)} {fmt_num(cx)} {fmt_num(cy)})"


def scale_origin_transform(centroid: Point, scale: Any, rotation_deg: Any) -> str:
    """translate(c) scale(s) rotate(r) translate(-c).

    Pivotea escala/rotación sobre el centro visual aunque el origen interno del
    contenido esté en cualquier lado. Con scale=1 y rotación 0 es la identidad ("").
    """
    s = safe_number(scale, 1.0)
    r = safe_number(rotation_deg, 0.0)
    if abs(s - 1.0) < 1e-12 and abs(r) < 1e-12:
        return ""
    cx = safe_number(centroid.x, 0.0)
    cy = safe_number(centroid.y, 0.0)
    parts = [translate(cx, cy)]
    if abs(s - 1.0) >= 1e-12:
        parts.append(f"scale({fmt_num(s)})")
    if abs(r) >= 1e-12:
        parts.append(rotate(r))
    parts.append(translate(-cx, -cy))
    return join_transforms(*parts)


# ----------------------------
# Fit
# ----------------------------

def fit_scale(
    content: Size,
    container: Size,
    margin_ratio: float = 1.0,
    *,
    min_scale: float = 0.1,
    max_scale: float = 3.0,
) -> float:
    """min(cw/w, ch/h) * margin, acotado a [min_scale, max_scale].

    Tamaños inválidos (0, NaN) -> escala neutra 1.0 acotada.
    """
    lo = float(min_scale)
    hi = max(float(max_scale), lo)
    if not content.is_valid or not container.is_valid:
        return clamp(1.0, lo, hi)
    raw = min(container.width / content.width, container.height / content.height)
    return clamp(raw * safe_number(margin_ratio, 1.0), lo, hi)


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)
