"""
Tests for foreign SVG sanitising and paint injection (string level).
"""

import pytest

from badgeforge.render.styling import (
    apply_stroke_properties,
    has_root_svg,
    inject_colors,
    is_valid_color,
    prepare_foreign_svg,
    sanitize_color,
    sanitize_svg_markup,
    set_root_attributes,
)
from badgeforge.utils.errors import ForeignContentError


class TestColors:
    @pytest.mark.parametrize("c", ["#fff", "#1e88e5", "#1e88e5cc", "rgb(10, 20, 30)", "hsl(120 50% 50%)", "tomato"])
    def test_valid(self, c):
        assert is_valid_color(c)
        assert sanitize_color(c) == c

    @pytest.mark.parametrize("c", ["", None, "url(#x)", 'red" onload="x', "#12", "red; fill: blue"])
    def test_invalid_falls_back(self, c):
        assert sanitize_color(c) == "currentColor"
        assert sanitize_color(c, "#000") == "#000"


class TestSanitize:
    def test_strips_prolog_scripts_and_handlers(self):
        raw = (
            '<?xml version="1.0"?>\n<!DOCTYPE svg>\n<!-- exported -->\n'
            '<svg viewBox="0 0 24 24" onload="alert(1)"><script>alert(2)</script>'
            '<a href="javascript:evil()"><path d="M0 0"/></a></svg>'
        )
        out = sanitize_svg_markup(raw)
        assert out.startswith("<svg")
        for bad in ("<?xml", "DOCTYPE", "<!--", "script", "onload", "javascript"):
            assert bad not in out
        assert '<path d="M0 0"/>' in out

    def test_empty(self):
        assert sanitize_svg_markup("") == ""
        assert not has_root_svg("")

    def test_root_attributes_require_svg(self):
        with pytest.raises(ForeignContentError):
            set_root_attributes("<path d='M0 0'/>", {"x": "0"})


class TestInjectColors:
    ICON = (
        '<svg viewBox="0 0 24 24">'
        '<path d="M0 0" fill="#000"/>'
        '<path fill="none" d="M1 1"/>'
        '<circle style="fill:#123456;stroke:none" r="2"/>'
        '<rect fill="url(#grad)" width="2" height="2"/>'
        "</svg>"
    )

    def test_fill_on_root_and_shapes(self):
        out = inject_colors(self.ICON, fill="#ff0000")
        assert '<svg viewBox="0 0 24 24" fill="#ff0000">' in out
        assert '<path d="M0 0" fill="#ff0000"/>' in out
        assert "fill:#ff0000" in out

    def test_none_and_gradients_are_respected(self):
        out = inject_colors(self.ICON, fill="#ff0000")
        assert 'fill="none"' in out
        assert 'fill="url(#grad)"' in out
        assert "stroke:none" in out

    def test_current_color_follows_fill(self):
        out = inject_colors('<svg><path stroke="currentColor" d="M0 0"/></svg>', fill="#abcdef")
        assert "currentColor" not in out
        assert 'stroke="#abcdef"' in out

    def test_nothing_to_inject(self):
        assert inject_colors(self.ICON) == self.ICON

    def test_stroke_properties(self):
        out = apply_stroke_properties('<svg><path d="M0 0" stroke-width="9"/></svg>', 2, "round")
        assert out.count('stroke-width="2"') == 2
        assert 'stroke-width="9"' not in out
        assert 'stroke-linejoin="round"' in out


class TestPrepareForeign:
    def test_nests_in_layer_box(self):
        out = prepare_foreign_svg('<svg viewBox="0 0 24 24" width="24"><path d="M0 0"/></svg>', width=48, height=32)
        assert 'x="0"' in out
        assert 'width="48"' in out
        assert 'height="32"' in out
        assert 'width="24"' not in out
        assert 'overflow="visible"' in out

    def test_markup_without_root_passes_through(self):
        raw = "<path d='M0 0'/>"
        assert prepare_foreign_svg(raw, width=10, height=10, fill="#f00") == raw

    def test_markup_without_root_is_still_sanitized(self):
        raw = '<g onload="alert(1)"><script>alert(2)</script><path d="M0 0"/></g>'
        out = prepare_foreign_svg(raw, width=10, height=10, fill="#f00")
        assert "<script" not in out
        assert "onload" not in out
        assert "alert" not in out
        assert '<path d="M0 0"/>' in out
