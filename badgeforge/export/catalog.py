# File: badgeforge/export/catalog.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-08
# Purpose: Catálogo de fuentes web: family -> URL de stylesheet (@import) para embebido.
# Notes:
# - Familias de sistema (Arial, Helvetica, serif...) NO se importan: no hay nada que descargar.
# - Lookup case-insensitive sobre la PRIMERA familia de una lista CSS ("Inter, sans-serif").
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote_plus

from badgeforge.core.policy import GOOGLE_FONTS_CSS_URL


@dataclass(frozen=True)
class FontEntry:
    family: str
    weights: tuple[int, ...] = (400, 700)
    category: str = "sans-serif"
    fallback: str = "sans-serif"

    def family_query(self) -> str:
        fam = quote_plus(self.family)
        if not self.weights or self.weights == (400,):
            return fam
        return f"{fam}:wght@{';'.join(str(w) for w in sorted(self.weights))}"

    def css_url(self, template: str = GOOGLE_FONTS_CSS_URL) -> str:
        return template.replace("{family}", self.family_query())


def _e(family: str, weights: Iterable[int], category: str, fallback: str) -> FontEntry:
    return FontEntry(family, tuple(weights), category, fallback)


BUILTIN_FONTS: tuple[FontEntry, ...] = (
    # sans-serif
    _e("Inter", (400, 500, 600, 700), "sans-serif", "system-ui, sans-serif"),
    _e("Roboto", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Open Sans", (400, 600, 700), "sans-serif", "Arial, sans-serif"),
    _e("Lato", (400, 700), "sans-serif", "Arial, sans-serif"),
    _e("Poppins", (400, 500, 600, 700), "sans-serif", "Arial, sans-serif"),
    _e("Montserrat", (400, 500, 600, 700, 800), "sans-serif", "Arial, sans-serif"),
    _e("Raleway", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Nunito", (400, 600, 700), "sans-serif", "Arial, sans-serif"),
    _e("Rubik", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Work Sans", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("DM Sans", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Manrope", (400, 600, 800), "sans-serif", "Arial, sans-serif"),
    _e("Space Grotesk", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Quicksand", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Barlow", (400, 500, 700), "sans-serif", "Arial, sans-serif"),
    _e("Josefin Sans", (400, 600, 700), "sans-serif", "Arial, sans-serif"),
    # serif
    _e("Playfair Display", (400, 700), "serif", "Georgia, serif"),
    _e("Merriweather", (400, 700), "serif", "Georgia, serif"),
    _e("Libre Baskerville", (400, 700), "serif", "Georgia, serif"),
    _e("Lora", (400, 700), "serif", "Georgia, serif"),
    _e("Crimson Text", (400, 600, 700), "serif", "Georgia, serif"),
    _e("PT Serif", (400, 700), "serif", "Georgia, serif"),
    _e("EB Garamond", (400, 600, 700), "serif", "Georgia, serif"),
    _e("Bitter", (400, 700), "serif", "Georgia, serif"),
    _e("Arvo", (400, 700), "serif", "Georgia, serif"),
    # monospace
    _e("JetBrains Mono", (400, 700), "monospace", "monospace"),
    _e("Fira Code", (400, 500, 700), "monospace", "monospace"),
    _e("Source Code Pro", (400, 600), "monospace", "monospace"),
    _e("Space Mono", (400, 700), "monospace", "monospace"),
    _e("Roboto Mono", (400, 700), "monospace", "monospace"),
    # display
    _e("Oswald", (400, 500, 700), "display", "Impact, sans-serif"),
    _e("Bebas Neue", (400,), "display", "Impact, sans-serif"),
    _e("Anton", (400,), "display", "Impact, sans-serif"),
    _e("Bangers", (400,), "display", "Impact, sans-serif"),
    _e("Righteous", (400,), "display", "Arial, sans-serif"),
    _e("Abril Fatface", (400,), "display", "Georgia, serif"),
    _e("Lobster", (400,), "display", "cursive"),
    _e("Press Start 2P", (400,), "display", "monospace"),
    _e("Orbitron", (400, 700), "display", "Arial, sans-serif"),
    # handwriting
    _e("Dancing Script", (400, 700), "handwriting", "cursive"),
    _e("Pacifico", (400,), "handwriting", "cursive"),
    _e("Caveat", (400, 700), "handwriting", "cursive"),
    _e("Permanent Marker", (400,), "handwriting", "cursive"),
    _e("Great Vibes", (400,), "handwriting", "cursive"),
    _e("Indie Flower", (400,), "handwriting", "cursive"),
)

SYSTEM_FAMILIES = frozenset(
    s.lower()
    for s in (
        "Arial",
        "Helvetica",
        "Times New Roman",
        "Times",
        "Georgia",
        "Verdana",
        "Courier New",
        "Courier",
        "Impact",
        "Tahoma",
        "Trebuchet MS",
        "system-ui",
        "serif",
        "sans-serif",
        "monospace",
        "cursive",
        "fantasy",
    )
)


def primary_family(css_family: str) -> str:
    """'"Open Sans", Arial, sans-serif' -> 'Open Sans'."""
    first = str(css_family or "").split(",", 1)[0]
    return first.strip().strip("\"'").strip()


class FontCatalog:
    def __init__(self, entries: Iterable[FontEntry] = BUILTIN_FONTS, *, css_url_template: str = GOOGLE_FONTS_CSS_URL) -> None:
        self._by_key = {e.family.lower(): e for e in entries}
        self.css_url_template = css_url_template

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, family: object) -> bool:
        return isinstance(family, str) and self.lookup(family) is not None

    def families(self) -> list[str]:
        return sorted(e.family for e in self._by_key.values())

    def lookup(self, css_family: str) -> Optional[FontEntry]:
        fam = primary_family(css_family)
        if not fam or fam.lower() in SYSTEM_FAMILIES:
            return None
        return self._by_key.get(fam.lower())

    def import_url(self, css_family: str) -> Optional[str]:
        entry = self.lookup(css_family)
        return entry.css_url(self.css_url_template) if entry else None

    def imports_css(self, families: Iterable[str]) -> str:
        """@import por cada familia conocida (sin repetir URL)."""
        urls: list[str] = []
        for fam in families:
            url = self.import_url(fam)
            if url and url not in urls:
                urls.append(url)
        return "\n".join(f"@import url('{u}');" for u in urls)
