"""Export SVG/PNG/WebP/PDF y embebido de fuentes web."""

from __future__ import annotations
