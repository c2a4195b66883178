"""Estado de zoom/pan del preview (sin Qt)."""

from __future__ import annotations
