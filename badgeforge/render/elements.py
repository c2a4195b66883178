# File: badgeforge/render/elements.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-06
# Purpose: RenderElement (salida del resolver) + ids deterministas de clip/mask/textPath.
# Notes: El mismo RenderElement alimenta el preview y el export (WYSIWYG).
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

_ID_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]+")


def safe_id(layer_id: str) -> str:
    s = _ID_UNSAFE_RE.sub("-", str(layer_id or "").strip()).strip("-")
    return s or "layer"


def clip_id(shape_id: str, mode: str = "clip") -> str:
    """Id estable (entre renders) del <clipPath>/<mask> derivado de un shape."""
    prefix = "mask" if mode == "mask" else "clip"
    return f"{prefix}-{safe_id(shape_id)}"


def textpath_id(shape_id: str) -> str:
    return f"textpath-{safe_id(shape_id)}"


@dataclass(frozen=True)
class RenderElement:
    id: str
    kind: str
    transform: str = ""
    paint: dict[str, str] = field(default_factory=dict)
    # id del <clipPath>/<mask> (ya resuelto) y el shape del que sale.
    clip_ref: Optional[str] = None
    clip_source: Optional[str] = None

    # shape
    path: Optional[str] = None

    # text
    x: float = 0.0
    y: float = 0.0
    lines: tuple[str, ...] = ()
    line_dy: tuple[float, ...] = ()
    text_path_ref: Optional[str] = None

    # svgImage
    markup: str = ""

    visible: bool = True

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def font_family(self) -> Optional[str]:
        return self.paint.get("font-family")
