"""Drawn-content bounds of a rendered badge document (svgelements).

Used by the preview's "fit to content" action: the viewport auto-fits to what
is actually drawn instead of the template box. Text elements have no font
metrics in svgelements, so a document with only text usually yields no bbox
and callers fall back to the template box.
"""

from __future__ import annotations

import io
import logging
import math
from typing import Any, Optional

from svgelements import SVG

from badgeforge.core.models import ViewBox
from badgeforge.core.version import CSS_PPI

log = logging.getLogger(__name__)


def _bbox_tuple(b: Any) -> Optional[tuple[float, float, float, float]]:
    if b is None:
        return None
    try:
        x0, y0, x1, y1 = (float(b[0]), float(b[1]), float(b[2]), float(b[3]))
    except Exception:
        return None
    if not all(math.isfinite(v) for v in (x0, y0, x1, y1)):
        return None
    if x1 <= x0 or y1 <= y0:
        return None
    return (x0, y0, x1, y1)


def compute_content_bounds(
    svg_text: str,
    *,
    fallback: Optional[ViewBox] = None,
    with_stroke: bool = True,
) -> Optional[ViewBox]:
    """Bounding box (x, y, w, h) of the drawn content, in document user units.

    Returns `fallback` when svgelements cannot parse the document or finds nothing drawable.
    """
    try:
        svg = SVG.parse(io.BytesIO(svg_text.encode("utf-8")), ppi=CSS_PPI, reify=True)
    except Exception as e:
        log.debug("content_bounds: parse failed (%s: %s)", type(e).__name__, e)
        return fallback

    try:
        bb = _bbox_tuple(svg.bbox(with_stroke=with_stroke))
    except Exception as e:
        log.debug("content_bounds: bbox failed (%s: %s)", type(e).__name__, e)
        bb = None

    if bb is None:
        return fallback

    x0, y0, x1, y1 = bb
    return ViewBox(x0, y0, x1 - x0, y1 - y0)
