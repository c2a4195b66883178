# File: badgeforge/render/resolver.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-06
# Purpose: (Template, overrides) -> lista ordenada de RenderElement (transform + pintura + clip).
# Notes:
# - Función pura: sin estado ni cache; se llama en cada cambio de la UI.
# - Override gana campo a campo: `_pick(override, default)` es el ÚNICO lugar donde se coalesce.
# - Todo número pasa por safe_number/fmt_num: nunca "NaN" en un transform.
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from badgeforge.core.models import LayerOverride, Template, TemplateLayer
from badgeforge.geom.kernel import (
    Point,
    compute_centroid,
    extract_viewbox,
    fmt_num,
    join_transforms,
    map_viewbox_point,
    resolve_coordinate,
    resolve_position,
    rotate,
    safe_number,
    scale_origin_transform,
    translate,
)
from badgeforge.render.elements import RenderElement, clip_id, textpath_id
from badgeforge.render.styling import prepare_foreign_svg, sanitize_color

log = logging.getLogger(__name__)

Overrides = Union[Mapping[str, LayerOverride], Iterable[LayerOverride], None]

PATH_SUBTYPE = "path"


def _pick(override: Any, default: Any) -> Any:
    return override if override is not None else default


def _index_overrides(overrides: Overrides) -> dict[str, LayerOverride]:
    if overrides is None:
        return {}
    if isinstance(overrides, Mapping):
        return dict(overrides)
    return {ov.id: ov for ov in overrides}


def _positive(value: Any, default: float) -> float:
    v = safe_number(value, default)
    return v if v > 0 else float(default)


def _stroke_paint(paint: dict[str, str], stroke: Optional[str], width: float, linejoin: Optional[str]) -> None:
    # Trazo solo si hay color y ancho > 0.
    if not stroke or width <= 0:
        return
    paint["stroke"] = sanitize_color(stroke)
    paint["stroke-width"] = fmt_num(width)
    if linejoin:
        paint["stroke-linejoin"] = linejoin


def _opacity(paint: dict[str, str], opacity: float) -> None:
    if 0 <= opacity < 1:
        paint["opacity"] = fmt_num(opacity)


def _resolve_clip(layer: TemplateLayer, template: Template, clip_mode: str) -> tuple[Optional[str], Optional[str]]:
    """(id del clip/mask, id del shape fuente); (None, None) si no hay shape válido."""
    if not layer.clip_ref:
        return None, None
    target = template.get_layer(layer.clip_ref)
    if target is None or target.kind != "shape" or not target.path:
        log.debug("Layer %r: clip_ref %r no existe (o no es shape); sin clip", layer.id, layer.clip_ref)
        return None, None
    return clip_id(target.id, clip_mode), target.id


# ----------------------------
# Por tipo de layer
# ----------------------------

def _resolve_shape(layer: TemplateLayer, ov: LayerOverride, template: Template) -> RenderElement:
    position = _pick(ov.position, layer.position)
    transform = ""
    if position is not None:
        w, h = template.width or 0.0, template.height or 0.0
        transform = translate(resolve_coordinate(position[0], w), resolve_coordinate(position[1], h))

    paint: dict[str, str] = {}
    fill = _pick(ov.fill, layer.fill)
    if fill is not None:
        paint["fill"] = sanitize_color(fill)
    _stroke_paint(
        paint,
        _pick(ov.stroke, layer.stroke),
        safe_number(_pick(ov.stroke_width, layer.stroke_width), layer.stroke_width),
        _pick(ov.stroke_linejoin, layer.stroke_linejoin),
    )
    _opacity(paint, layer.opacity)

    return RenderElement(
        id=layer.id,
        kind="shape",
        transform=transform,
        paint=paint,
        path=layer.path,
        # Los paths-guía de textPath no se dibujan.
        visible=(layer.subtype != PATH_SUBTYPE),
    )


def line_offsets(n_lines: int, font_size: float, line_height: float) -> tuple[float, ...]:
    """dy de cada <tspan>: el bloque queda centrado verticalmente en y."""
    if n_lines <= 0:
        return ()
    step = font_size * line_height
    first = -(n_lines - 1) * step / 2.0
    return (first,) + (step,) * (n_lines - 1)


def _resolve_text(
    layer: TemplateLayer,
    ov: LayerOverride,
    template: Template,
    *,
    clip_mode: str,
) -> RenderElement:
    pos = resolve_position(_pick(ov.position, layer.position), template.width or 0.0, template.height or 0.0)
    rotation = safe_number(_pick(ov.rotation, layer.rotation), 0.0)
    transform = rotate(rotation, pos.x, pos.y) if rotation else ""

    text = _pick(ov.text, layer.text) or ""
    lines = tuple(str(text).split("\n"))

    font_size = _positive(_pick(ov.font_size, layer.font_size), layer.font_size if layer.font_size > 0 else 16.0)
    paint: dict[str, str] = {
        "fill": sanitize_color(_pick(ov.fill, layer.fill) or "#000000"),
        "font-family": str(_pick(ov.font_family, layer.font_family)),
        "font-size": fmt_num(font_size),
        "font-weight": str(_pick(ov.font_weight, layer.font_weight)),
        "text-anchor": "middle",
        "dominant-baseline": "central",
    }
    _stroke_paint(
        paint,
        _pick(ov.stroke, layer.stroke),
        safe_number(_pick(ov.stroke_width, layer.stroke_width), layer.stroke_width),
        _pick(ov.stroke_linejoin, layer.stroke_linejoin),
    )
    _opacity(paint, layer.opacity)

    clip_ref, clip_source = _resolve_clip(layer, template, clip_mode)

    text_path_ref = None
    if layer.text_path:
        guide = template.get_layer(layer.text_path)
        if guide is not None and guide.kind == "shape" and guide.path:
            text_path_ref = textpath_id(guide.id)
        else:
            log.debug("Layer %r: text_path %r no existe; texto recto", layer.id, layer.text_path)

    return RenderElement(
        id=layer.id,
        kind="text",
        transform=transform,
        paint=paint,
        clip_ref=clip_ref,
        clip_source=clip_source,
        x=pos.x,
        y=pos.y,
        lines=lines,
        line_dy=line_offsets(len(lines), font_size, safe_number(layer.line_height, 1.2)),
        text_path_ref=text_path_ref,
    )


def svg_image_pivot(markup: str, box_w: float, box_h: float, origin: Optional[tuple[Any, Any]] = None) -> Point:
    """Pivote de escala/rotación en coords locales de la caja del layer.

    `origin` viene en el espacio del viewBox del SVG ajeno; sin él se usa el centroide
    del viewBox. Ambos se llevan a la caja con el mismo mapeo meet que usa el <svg> anidado.
    Sin viewBox, el contenido ocupa la caja: pivote = centro de la caja.
    """
    vb = extract_viewbox(markup)
    if origin is not None:
        p = Point(safe_number(origin[0]), safe_number(origin[1]))
        return map_viewbox_point(p, vb, box_w, box_h)
    if vb is None:
        return Point(box_w / 2.0, box_h / 2.0)
    return map_viewbox_point(compute_centroid(markup), vb, box_w, box_h)


def _resolve_svg_image(
    layer: TemplateLayer,
    ov: LayerOverride,
    template: Template,
    *,
    clip_mode: str,
) -> RenderElement:
    box_w = _positive(layer.width, 100.0)
    box_h = _positive(layer.height, 100.0)
    pos = resolve_position(_pick(ov.position, layer.position), template.width or 0.0, template.height or 0.0)

    scale = safe_number(_pick(ov.scale, layer.scale), 1.0)
    if scale <= 0:
        scale = 1.0
    rotation = safe_number(_pick(ov.rotation, layer.rotation), 0.0)

    raw = _pick(ov.svg_content, layer.svg_content) or ""

    fill = _pick(ov.fill, layer.fill)
    stroke = _pick(ov.stroke, layer.stroke)
    markup = prepare_foreign_svg(
        raw,
        width=box_w,
        height=box_h,
        fill=sanitize_color(fill) if fill is not None else None,
        stroke=sanitize_color(stroke) if stroke is not None else None,
        stroke_width=_pick(ov.stroke_width, layer.stroke_width if layer.stroke_width > 0 else None),
        stroke_linejoin=_pick(ov.stroke_linejoin, layer.stroke_linejoin),
    )

    # Estrategia única: caja centrada en la posición + pivote en el centro visual.
    transform = translate(pos.x - box_w / 2.0, pos.y - box_h / 2.0)
    pivot_tf = ""
    if scale != 1.0 or rotation != 0.0:
        pivot = svg_image_pivot(markup, box_w, box_h, ov.transform_origin)
        pivot_tf = scale_origin_transform(pivot, scale, rotation)

    paint: dict[str, str] = {}
    _opacity(paint, layer.opacity)
    clip_ref, clip_source = _resolve_clip(layer, template, clip_mode)

    return RenderElement(
        id=layer.id,
        kind="svgImage",
        transform=join_transforms(transform, pivot_tf),
        paint=paint,
        clip_ref=clip_ref,
        clip_source=clip_source,
        markup=markup,
        visible=bool(markup.strip()),
    )


# ----------------------------
# API
# ----------------------------

def _resolve_one(layer: TemplateLayer, ov: LayerOverride, template: Template, clip_mode: str) -> RenderElement:
    if layer.kind == "shape":
        return _resolve_shape(layer, ov, template)
    if layer.kind == "text":
        return _resolve_text(layer, ov, template, clip_mode=clip_mode)
    return _resolve_svg_image(layer, ov, template, clip_mode=clip_mode)


def resolve_layers(template: Template, overrides: Overrides = None, *, clip_mode: str = "clip") -> list[RenderElement]:
    """Resuelve todos los layers en orden (primero = fondo)."""
    by_id = _index_overrides(overrides)
    unknown = set(by_id) - {layer.id for layer in template.layers}
    if unknown:
        log.debug("Overrides para layers inexistentes (ignorados): %s", sorted(unknown))

    return [
        _resolve_one(layer, by_id.get(layer.id) or LayerOverride(id=layer.id), template, clip_mode)
        for layer in template.layers
    ]


def resolve_layer(template: Template, layer_id: str, override: Optional[LayerOverride] = None, *, clip_mode: str = "clip") -> Optional[RenderElement]:
    layer = template.get_layer(layer_id)
    if layer is None:
        return None
    return _resolve_one(layer, override or LayerOverride(id=layer_id), template, clip_mode)
