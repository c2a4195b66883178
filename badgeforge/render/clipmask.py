# File: badgeforge/render/clipmask.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-06
# Purpose: <clipPath>/<mask> desde shapes referenciados por texto/svgImage + <path> de textPath en <defs>.
# Notes:
# - Corre DESPUÉS del resolver (usa los shapes ya posicionados) y ANTES de serializar.
# - Un def por shape referenciado (aunque lo referencien varios layers). Ids = elements.clip_id.
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, Optional

from badgeforge.render.elements import SVG_NS, RenderElement, clip_id, textpath_id

log = logging.getLogger(__name__)

CLIP_MODES = ("clip", "mask")
CLIPPED_KINDS = ("text", "svgImage")


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


@dataclass(frozen=True)
class ClipDef:
    id: str
    mode: str
    path: str
    transform: str = ""
    source_id: str = ""

    def to_element(self) -> ET.Element:
        if self.mode == "mask":
            el = ET.Element(_q("mask"), {"id": self.id, "maskUnits": "userSpaceOnUse"})
            # Blanco = visible.
            attrs = {"d": self.path, "fill": "white"}
        else:
            el = ET.Element(_q("clipPath"), {"id": self.id, "clipPathUnits": "userSpaceOnUse"})
            attrs = {"d": self.path}
        if self.transform:
            attrs["transform"] = self.transform
        ET.SubElement(el, _q("path"), attrs)
        return el


@dataclass(frozen=True)
class TextPathDef:
    id: str
    path: str
    transform: str = ""

    def to_element(self) -> ET.Element:
        attrs = {"id": self.id, "d": self.path, "fill": "none"}
        if self.transform:
            attrs["transform"] = self.transform
        return ET.Element(_q("path"), attrs)


def _shapes_by_id(elements: Iterable[RenderElement]) -> dict[str, RenderElement]:
    return {e.id: e for e in elements if e.kind == "shape" and e.path}


def build_clip_defs(elements: Iterable[RenderElement], mode: str = "clip") -> list[ClipDef]:
    """Un ClipDef por shape distinto referenciado por texto o svgImage (orden de primera aparición)."""
    if mode not in CLIP_MODES:
        log.warning("clip_mode inválido %r: se usa 'clip'", mode)
        mode = "clip"
    elements = list(elements)
    shapes = _shapes_by_id(elements)

    out: list[ClipDef] = []
    seen: set[str] = set()
    for e in elements:
        if e.kind not in CLIPPED_KINDS or not e.clip_source:
            continue
        sid = e.clip_source
        if sid in seen:
            continue
        shape = shapes.get(sid)
        if shape is None:
            log.debug("clip: shape %r no resuelto; se omite", sid)
            continue
        seen.add(sid)
        out.append(
            ClipDef(
                id=clip_id(sid, mode),
                mode=mode,
                path=shape.path or "",
                transform=shape.transform,
                source_id=sid,
            )
        )
    return out


def build_textpath_defs(elements: Iterable[RenderElement]) -> list[TextPathDef]:
    elements = list(elements)
    shapes = _shapes_by_id(elements)
    wanted = {e.text_path_ref for e in elements if e.kind == "text" and e.text_path_ref}

    out: list[TextPathDef] = []
    for sid, shape in shapes.items():
        tid = textpath_id(sid)
        if tid in wanted:
            out.append(TextPathDef(id=tid, path=shape.path or "", transform=shape.transform))
    return out


def build_defs(elements: Iterable[RenderElement], mode: str = "clip") -> Optional[ET.Element]:
    """<defs> con clips/masks y paths de textPath; None si no hace falta."""
    elements = list(elements)
    items: list[ET.Element] = [d.to_element() for d in build_clip_defs(elements, mode)]
    items.extend(d.to_element() for d in build_textpath_defs(elements))
    if not items:
        return None
    defs = ET.Element(_q("defs"))
    defs.extend(items)
    return defs
