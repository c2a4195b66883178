"""BadgeForge: templates de stickers/badges -> preview con zoom y export SVG/PNG/WebP/PDF."""

from __future__ import annotations

from badgeforge.core.version import APP_VERSION as __version__

__all__ = ["__version__"]
