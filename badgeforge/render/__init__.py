"""Template + overrides -> RenderElement -> documento SVG."""

from __future__ import annotations
