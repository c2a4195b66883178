# File: badgeforge/render/document.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-07
# Purpose: Render tree -> documento SVG (string). Frontera de serialización: acá sí se usa ElementTree.
# Notes:
# - El documento siempre va al tamaño INTRÍNSECO del template (nunca al zoom del preview).
# - Markup ajeno que ElementTree no puede parsear: se envuelve en <g>; si igual falla, grupo vacío.
# - Sin width/height en el template -> SVG responsive (sin width/height/viewBox).
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from badgeforge.core.models import Template
from badgeforge.core.policy import ExportPolicy
from badgeforge.geom.kernel import fmt_num
from badgeforge.render.clipmask import build_defs
from badgeforge.render.elements import SVG_NS, XLINK_NS, RenderElement, safe_id
from badgeforge.render.resolver import Overrides, resolve_layers

log = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

_TEXT_TAGS = ("text", "tspan", "textPath")
_STYLE_FONT_RE = re.compile(r"font-family\s*:\s*([^;]+)", re.IGNORECASE)


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


# ----------------------------
# SVG ajeno -> ET
# ----------------------------

def _qualify(root: ET.Element) -> ET.Element:
    for el in root.iter():
        if isinstance(el.tag, str) and not el.tag.startswith("{"):
            el.tag = _q(el.tag)
    return root


def _with_xlink_decl(markup: str) -> str:
    # Iconos con xlink:href sin declarar el prefijo (muy común en librerías viejas).
    if "xlink:" not in markup or "xmlns:xlink" in markup:
        return markup
    return re.sub(r"<svg\b", f'<svg xmlns:xlink="{XLINK_NS}"', markup, count=1, flags=re.IGNORECASE)


def foreign_to_element(markup: str, *, layer_id: str = "") -> ET.Element:
    """Markup ajeno -> Element en el namespace SVG. Nunca lanza."""
    src = _with_xlink_decl(markup.strip())
    try:
        return _qualify(ET.fromstring(src))
    except ET.ParseError as e:
        log.debug("Layer %r: markup no parseable como raíz única (%s); se envuelve en <g>", layer_id, e)

    try:
        wrapped = ET.fromstring(f'<g xmlns="{SVG_NS}" xmlns:xlink="{XLINK_NS}">{src}</g>')
        return _qualify(wrapped)
    except ET.ParseError as e:
        log.warning("Layer %r: SVG ajeno inválido, se omite el contenido (%s)", layer_id, e)
        return ET.Element(_q("g"))


# ----------------------------
# RenderElement -> ET
# ----------------------------

def _clip_attr(clip_mode: str) -> str:
    return "mask" if clip_mode == "mask" else "clip-path"


def _text_node(e: RenderElement, clip_mode: str = "clip") -> ET.Element:
    attrs = {"x": fmt_num(e.x), "y": fmt_num(e.y), **e.paint}
    if e.transform:
        attrs["transform"] = e.transform
    if e.clip_ref:
        # userSpaceOnUse: la región sigue al rotate(r x y) del propio <text>.
        attrs[_clip_attr(clip_mode)] = f"url(#{e.clip_ref})"
    text = ET.Element(_q("text"), attrs)

    if e.text_path_ref:
        href = f"#{e.text_path_ref}"
        tp = ET.SubElement(
            text,
            _q("textPath"),
            {"href": href, f"{{{XLINK_NS}}}href": href, "startOffset": "50%"},
        )
        tp.text = " ".join(e.lines)
        return text

    if len(e.lines) <= 1:
        text.text = e.lines[0] if e.lines else ""
        return text

    for line, dy in zip(e.lines, e.line_dy):
        ts = ET.SubElement(text, _q("tspan"), {"x": fmt_num(e.x), "dy": fmt_num(dy)})
        ts.text = line
    return text


def element_node(e: RenderElement, clip_mode: str = "clip") -> Optional[ET.Element]:
    """Un layer = un <g id="layer-...">.

    Texto: clip/mask en el <text>. svgImage: en el <g> del layer, que no tiene transform,
    así la región queda en coords del template y no en las de la caja escalada.
    """
    if not e.visible:
        return None

    g_attrs = {"id": f"layer-{safe_id(e.id)}", "data-kind": e.kind}
    if e.clip_ref and e.kind == "svgImage":
        g_attrs[_clip_attr(clip_mode)] = f"url(#{e.clip_ref})"
    g = ET.Element(_q("g"), g_attrs)

    if e.kind == "shape":
        attrs = {"d": e.path or "", **e.paint}
        if e.transform:
            attrs["transform"] = e.transform
        ET.SubElement(g, _q("path"), attrs)
    elif e.kind == "text":
        g.append(_text_node(e, clip_mode))
    else:
        inner_attrs = dict(e.paint)
        if e.transform:
            inner_attrs["transform"] = e.transform
        inner = ET.SubElement(g, _q("g"), inner_attrs)
        inner.append(foreign_to_element(e.markup, layer_id=e.id))
    return g


def build_tree(template: Template, elements: Iterable[RenderElement], *, clip_mode: str = "clip") -> ET.Element:
    elements = list(elements)
    attrs = {"version": "1.1"}
    if template.has_dimensions:
        attrs.update(
            {
                "width": fmt_num(template.width),
                "height": fmt_num(template.height),
                "viewBox": template.intrinsic_viewbox().to_attr(),
            }
        )
    root = ET.Element(_q("svg"), attrs)

    defs = build_defs(elements, clip_mode)
    if defs is not None:
        root.append(defs)

    for e in elements:
        node = element_node(e, clip_mode)
        if node is not None:
            root.append(node)
    return root


def serialize(root: ET.Element, *, declaration: bool = True) -> str:
    body = ET.tostring(root, encoding="unicode")
    return (XML_DECLARATION + body) if declaration else body


def render_document(
    template: Template,
    overrides: Overrides = None,
    *,
    clip_mode: Optional[str] = None,
    declaration: bool = True,
) -> str:
    """(Template, overrides) -> documento SVG completo al tamaño intrínseco."""
    mode = clip_mode or ExportPolicy.from_env().clip_mode
    elements = resolve_layers(template, overrides, clip_mode=mode)
    return serialize(build_tree(template, elements, clip_mode=mode), declaration=declaration)


# ----------------------------
# Post-proceso del documento serializado
# ----------------------------

def parse_document(svg_text: str) -> ET.Element:
    text = svg_text.lstrip()
    if text.startswith("<?xml"):
        text = text.split("?>", 1)[1]
    return ET.fromstring(text)


def detect_font_families(svg_text: str) -> list[str]:
    """font-family distintos usados por <text>/<tspan>/<textPath> (orden de aparición)."""
    try:
        root = parse_document(svg_text)
    except ET.ParseError as e:
        log.warning("No se pudieron detectar fuentes (documento inválido): %s", e)
        return []

    out: list[str] = []
    for el in root.iter():
        if _local(el.tag) not in _TEXT_TAGS:
            continue
        fams = []
        if el.get("font-family"):
            fams.append(el.get("font-family", ""))
        m = _STYLE_FONT_RE.search(el.get("style", ""))
        if m:
            fams.append(m.group(1))
        for fam in fams:
            fam = fam.strip()
            if fam and fam not in out:
                out.append(fam)
    return out


def inject_style(svg_text: str, css: str, *, declaration: bool = True) -> str:
    """Quita todos los <style> existentes e inserta uno nuevo como primer hijo de la raíz."""
    root = parse_document(svg_text)
    for parent in list(root.iter()):
        for child in list(parent):
            if _local(child.tag) == "style":
                parent.remove(child)

    if css.strip():
        style = ET.Element(_q("style"), {"type": "text/css"})
        style.text = css
        root.insert(0, style)
    return serialize(root, declaration=declaration)
