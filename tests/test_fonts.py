"""
Tests for the font catalog and FontEmbedder (no network: in-memory fetcher).
"""

import base64

import pytest
from conftest import FONT_BYTES, FakeFetcher, stylesheet_for

from badgeforge.export import fonts
from badgeforge.export.catalog import FontCatalog, FontEntry, primary_family
from badgeforge.export.fonts import (
    FontEmbedder,
    extract_font_faces,
    extract_imports,
    font_cache_size,
)

INTER_WOFF = "https://fonts.gstatic.com/s/inter/v13/inter-400.woff2"
INTER_WOFF_B = "https://fonts.gstatic.com/s/inter/v13/inter-500.woff2"


@pytest.fixture
def catalog():
    return FontCatalog()


class TestCatalog:
    def test_system_families_are_not_imported(self, catalog):
        assert catalog.import_url("Arial") is None
        assert catalog.import_url("sans-serif") is None
        assert catalog.imports_css(["Arial", "Helvetica"]) == ""

    def test_lookup_is_case_insensitive_on_first_family(self, catalog):
        assert primary_family('"Open Sans", Arial, sans-serif') == "Open Sans"
        assert catalog.lookup("inter, sans-serif").family == "Inter"
        assert "Inter" in catalog

    def test_import_url(self, catalog):
        url = catalog.import_url("Open Sans")
        assert url.startswith("https://fonts.googleapis.com/css2?family=Open+Sans:wght@")
        assert url.endswith("&display=swap")

    def test_imports_css_dedupes(self, catalog):
        css = catalog.imports_css(["Inter", "inter", "Roboto"])
        assert css.count("@import") == 2

    def test_entries_are_keyed_case_insensitively(self):
        cat = FontCatalog(
            [
                FontEntry("Lato", (400,), "sans-serif", "Arial, sans-serif"),
                FontEntry("lato", (700,), "sans-serif", "Arial, sans-serif"),
                FontEntry("Merriweather", (400,), "serif", "Georgia, serif"),
            ]
        )
        assert len(cat) == 2
        assert cat.families() == ["Merriweather", "lato"]
        assert cat.lookup("LATO").weights == (700,)

    def test_custom_url_template(self):
        cat = FontCatalog(css_url_template="https://fonts.example/css?f={family}")
        assert cat.import_url("Lato") == "https://fonts.example/css?f=Lato:wght@400;700"


class TestParsing:
    def test_extract_imports(self):
        css = "@import url('https://a/x.css');\n@import \"https://b/y.css\";"
        assert [r.url for r in extract_imports(css)] == ["https://a/x.css", "https://b/y.css"]

    def test_extract_font_faces_keeps_descriptors(self):
        (rule,) = extract_font_faces(stylesheet_for("Inter", INTER_WOFF), "https://fonts.googleapis.com/css2")
        assert rule.url == INTER_WOFF
        assert rule.format == "woff2"
        desc = rule.descriptors()
        assert "font-weight: 400" in desc
        assert "unicode-range: U+0000-00FF, U+0131" in desc
        assert "src" not in desc

    def test_relative_urls_are_resolved(self):
        (rule,) = extract_font_faces(stylesheet_for("X", "fonts/x.woff2"), "https://cdn.example/css/x.css")
        assert rule.url == "https://cdn.example/css/fonts/x.woff2"


class TestEmbedder:
    async def test_reachable_font_is_inlined(self, catalog):
        url = catalog.import_url("Inter")
        fetcher = FakeFetcher({url: stylesheet_for("Inter", INTER_WOFF)}, {INTER_WOFF: FONT_BYTES})
        out = await FontEmbedder(fetcher).embed(catalog.imports_css(["Inter"]))
        assert "@import" not in out
        assert "@font-face" in out
        assert f"data:font/woff2;base64,{base64.b64encode(FONT_BYTES).decode('ascii')}" in out
        assert "font-family: 'Inter'" in out
        assert "format('woff2')" in out

    async def test_unreachable_font_keeps_import(self, catalog):
        css = catalog.imports_css(["Inter"])
        out = await FontEmbedder(FakeFetcher()).embed(css)
        assert out == css

    async def test_partial_failure_is_per_font(self, catalog):
        inter = catalog.import_url("Inter")
        fetcher = FakeFetcher({inter: stylesheet_for("Inter", INTER_WOFF)}, {INTER_WOFF: FONT_BYTES})
        out = await FontEmbedder(fetcher).embed(catalog.imports_css(["Inter", "Roboto"]))
        assert "@font-face" in out
        assert out.count("@import") == 1
        assert catalog.import_url("Roboto") in out

    async def test_failed_face_is_skipped(self, catalog):
        url = catalog.import_url("Inter")
        sheet = stylesheet_for("Inter", INTER_WOFF, INTER_WOFF_B)
        fetcher = FakeFetcher({url: sheet}, {INTER_WOFF: FONT_BYTES})
        out = await FontEmbedder(fetcher).embed(catalog.imports_css(["Inter"]))
        assert out.count("@font-face") == 1
        assert "@import" not in out

    async def test_binaries_are_cached(self, catalog):
        url = catalog.import_url("Inter")
        fetcher = FakeFetcher({url: stylesheet_for("Inter", INTER_WOFF)}, {INTER_WOFF: FONT_BYTES})
        embedder = FontEmbedder(fetcher)
        css = catalog.imports_css(["Inter"])
        first = await embedder.embed(css)
        second = await embedder.embed(css)
        assert first == second
        assert fetcher.bytes_calls == [INTER_WOFF]
        assert font_cache_size() == 1

    async def test_cache_is_bounded(self, catalog, monkeypatch):
        monkeypatch.setattr(fonts, "FONT_CACHE_MAX_ENTRIES", 1)
        url = catalog.import_url("Inter")
        sheet = stylesheet_for("Inter", INTER_WOFF, INTER_WOFF_B)
        fetcher = FakeFetcher({url: sheet}, {INTER_WOFF: FONT_BYTES, INTER_WOFF_B: FONT_BYTES})
        embedder = FontEmbedder(fetcher)
        css = catalog.imports_css(["Inter"])
        out = await embedder.embed(css)
        assert out.count("@font-face") == 2
        assert font_cache_size() == 1
        # Con una sola entrada, el segundo export vuelve a bajar al menos un archivo
        await embedder.embed(css)
        assert len(fetcher.bytes_calls) >= 3
        assert font_cache_size() == 1

    async def test_css_without_imports_is_untouched(self):
        fetcher = FakeFetcher()
        assert await FontEmbedder(fetcher).embed("text { fill: red; }") == "text { fill: red; }"
        assert fetcher.text_calls == []
