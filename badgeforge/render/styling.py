# File: badgeforge/render/styling.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-06
# Purpose: SVG ajeno (iconos): saneo + inyección de pintura a nivel string (sin parsear a árbol).
# Notes:
# - Corre en cada tecla/slider: solo regex sobre tags/atributos, nunca ElementTree acá.
# - Sin tag <svg> raíz -> el markup se devuelve tal cual (ícono "mal" > ícono ausente).
# - fill/stroke "none" y url(#...) se respetan: son huecos/gradientes del autor.
from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from badgeforge.geom.kernel import fmt_num, safe_number
from badgeforge.utils.errors import ForeignContentError

log = logging.getLogger(__name__)

SHAPE_TAGS = ("path", "circle", "rect", "ellipse", "polygon", "line", "polyline")

_XML_DECL_RE = re.compile(r"<\?xml[^?]*\?>\s*", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>\s*", re.IGNORECASE)
_LEADING_COMMENT_RE = re.compile(r"^\s*<!--[\s\S]*?-->\s*")
_SCRIPT_RE = re.compile(r"<script\b[\s\S]*?</script\s*>|<script\b[^>]*/>", re.IGNORECASE)
_EVENT_ATTR_RE = re.compile(r"""\s+on[a-zA-Z]+\s*=\s*("[^"]*"|'[^']*'|[^\s>]+)""", re.IGNORECASE)
_JS_HREF_RE = re.compile(r"""\s+(?:xlink:)?href\s*=\s*(["'])\s*javascript:[^"']*\1""", re.IGNORECASE)
_ROOT_SVG_RE = re.compile(r"<svg\b([^>]*?)(/?)>", re.IGNORECASE)

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_FUNC_COLOR_RE = re.compile(r"^(?:rgb|rgba|hsl|hsla)\(\s*[-0-9.%\s,/deg]+\)$", re.IGNORECASE)
_NAMED_RE = re.compile(r"^[a-zA-Z]{3,24}$")

_KEEP_PAINT = ("none",)


# ----------------------------
# Colores
# ----------------------------

def is_valid_color(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    s = value.strip()
    if not s:
        return False
    return bool(_HEX_RE.match(s) or _FUNC_COLOR_RE.match(s) or _NAMED_RE.match(s))


def sanitize_color(value: Any, fallback: str = "currentColor") -> str:
    """Color apto para un atributo; cualquier otra cosa (comillas, url(), ';'...) -> fallback."""
    if is_valid_color(value):
        return str(value).strip()
    if value not in (None, ""):
        log.debug("Color inválido descartado: %r", value)
    return fallback


# ----------------------------
# Saneo
# ----------------------------

def sanitize_svg_markup(svg: str) -> str:
    """Quita declaración XML, DOCTYPE, comentarios iniciales, <script> y handlers on*=."""
    if not svg:
        return ""
    s = _XML_DECL_RE.sub("", svg)
    s = _DOCTYPE_RE.sub("", s)
    s = _LEADING_COMMENT_RE.sub("", s)
    s = _SCRIPT_RE.sub("", s)
    s = _EVENT_ATTR_RE.sub("", s)
    s = _JS_HREF_RE.sub("", s)
    return s.strip()


def has_root_svg(svg: str) -> bool:
    return bool(svg) and _ROOT_SVG_RE.search(svg) is not None


# ----------------------------
# Atributos a nivel string
# ----------------------------

def _attr_re(name: str) -> re.Pattern[str]:
    # (?<![\w:-]) evita tocar stroke-width / data-fill / xlink:...
    return re.compile(r"""(?<![\w:-])""" + re.escape(name) + r"""\s*=\s*("[^"]*"|'[^']*')""", re.IGNORECASE)


def set_attributes(attrs: str, values: Mapping[str, Optional[str]]) -> str:
    """Reemplaza (o agrega) atributos en el string de atributos de un tag. None = quitar."""
    out = attrs
    for name, value in values.items():
        rx = _attr_re(name)
        out = rx.sub("", out)
        if value is not None:
            out = out.rstrip() + f' {name}="{value}"'
    # Espacios duplicados que deja el sub().
    return re.sub(r"\s{2,}", " ", out)


def set_root_attributes(svg: str, values: Mapping[str, Optional[str]]) -> str:
    """Atributos del primer <svg>. Lanza ForeignContentError si no hay raíz."""
    m = _ROOT_SVG_RE.search(svg)
    if not m:
        raise ForeignContentError("No se encontró tag <svg> raíz")
    attrs, self_closing = m.group(1), m.group(2)
    new_tag = f"<svg{set_attributes(attrs, values)}{self_closing}>"
    return svg[: m.start()] + new_tag + svg[m.end():]


def _paint_value(current: str) -> str:
    return current.strip().strip("\"'").strip()


def _replace_paint(attrs: str, prop: str, color: str) -> str:
    rx = _attr_re(prop)

    def _sub(m: re.Match[str]) -> str:
        v = _paint_value(m.group(1))
        if v.lower() in _KEEP_PAINT or v.lower().startswith("url("):
            return m.group(0)
        return f'{prop}="{color}"'

    out = rx.sub(_sub, attrs)

    # style="fill:#000; stroke:..." dentro del tag.
    def _style_sub(m: re.Match[str]) -> str:
        quote, body = m.group(1), m.group(2)

        def _decl(d: re.Match[str]) -> str:
            v = d.group(2).strip()
            if v.lower() in _KEEP_PAINT or v.lower().startswith("url("):
                return d.group(0)
            return f"{d.group(1)}{color}"

        body = re.sub(r"((?<![\w-])" + re.escape(prop) + r"\s*:\s*)([^;]+)", _decl, body, flags=re.IGNORECASE)
        return f"style={quote}{body}{quote}"

    return re.sub(r"""(?<![\w:-])style\s*=\s*(["'])(.*?)\1""", _style_sub, out, flags=re.IGNORECASE)


def inject_colors(svg: str, fill: Optional[str] = None, stroke: Optional[str] = None) -> str:
    """Normaliza fill/stroke de la raíz y de las formas al color pedido.

    - raíz <svg>: fill/stroke se fijan (las formas sin atributo heredan).
    - formas: atributos explícitos (salvo none/url) y style=... se reemplazan.
    - currentColor restante -> fill (o stroke si no hay fill).
    """
    if not svg or (fill is None and stroke is None):
        return svg

    root: dict[str, Optional[str]] = {}
    if fill is not None:
        root["fill"] = fill
    if stroke is not None:
        root["stroke"] = stroke
    out = set_root_attributes(svg, root)

    tag_rx = re.compile(r"<(" + "|".join(SHAPE_TAGS) + r")\b([^>]*?)(/?)>", re.IGNORECASE)

    def _shape(m: re.Match[str]) -> str:
        tag, attrs, self_closing = m.group(1), m.group(2), m.group(3)
        if fill is not None:
            attrs = _replace_paint(attrs, "fill", fill)
        if stroke is not None:
            attrs = _replace_paint(attrs, "stroke", stroke)
        return f"<{tag}{attrs}{self_closing}>"

    out = tag_rx.sub(_shape, out)

    current = fill if fill is not None else stroke
    if current is not None:
        out = re.sub(r"currentColor", current, out, flags=re.IGNORECASE)
    return out


def apply_stroke_properties(svg: str, width: Any = None, linejoin: Optional[str] = None) -> str:
    """stroke-width / stroke-linejoin en la raíz y en las formas (pisan lo del autor)."""
    props: dict[str, Optional[str]] = {}
    if width is not None:
        props["stroke-width"] = fmt_num(max(0.0, safe_number(width, 0.0)))
    if linejoin:
        props["stroke-linejoin"] = linejoin
    if not props or not svg:
        return svg

    out = set_root_attributes(svg, props)
    tag_rx = re.compile(r"<(" + "|".join(SHAPE_TAGS) + r")\b([^>]*?)(/?)>", re.IGNORECASE)
    return tag_rx.sub(lambda m: f"<{m.group(1)}{set_attributes(m.group(2), props)}{m.group(3)}>", out)


def prepare_foreign_svg(
    svg: str,
    *,
    width: float,
    height: float,
    fill: Optional[str] = None,
    stroke: Optional[str] = None,
    stroke_width: Any = None,
    stroke_linejoin: Optional[str] = None,
) -> str:
    """SVG ajeno -> markup listo para anidar en la caja del layer (0,0,width,height).

    Si el markup no tiene raíz <svg> se devuelve saneado pero sin el resto de ajustes.
    """
    clean = sanitize_svg_markup(svg)
    try:
        out = set_root_attributes(
            clean,
            {
                "x": "0",
                "y": "0",
                "width": fmt_num(width),
                "height": fmt_num(height),
                "overflow": "visible",
            },
        )
        out = inject_colors(out, fill, stroke)
        return apply_stroke_properties(out, stroke_width, stroke_linejoin)
    except ForeignContentError:
        log.warning("SVG ajeno sin raíz <svg>: solo se sanea (%d chars)", len(clean))
        return clean
