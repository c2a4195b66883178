"""Geometry helpers.

Pure math (coordinates, viewBox, transforms, fit) plus an optional
svgelements adapter for drawn-content bounds.
"""

from __future__ import annotations
