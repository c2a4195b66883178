"""
Tests for clip/mask generation and the serialized SVG document.
"""

import xml.etree.ElementTree as ET

from badgeforge.core.models import LayerOverride, Template, TemplateLayer
from badgeforge.render.clipmask import build_clip_defs, build_defs
from badgeforge.render.document import (
    detect_font_families,
    foreign_to_element,
    inject_style,
    parse_document,
    render_document,
)
from badgeforge.render.elements import SVG_NS
from badgeforge.render.resolver import resolve_layers

NS = {"svg": SVG_NS}


def layer_group(root: ET.Element, layer_id: str):
    for g in root.iter(f"{{{SVG_NS}}}g"):
        if g.get("id") == f"layer-{layer_id}":
            return g
    return None


def with_layer(template: Template, extra: TemplateLayer) -> Template:
    return Template(
        id=template.id,
        name=template.name,
        width=template.width,
        height=template.height,
        layers=template.layers + (extra,),
    )


def with_second_label(template: Template) -> Template:
    extra = TemplateLayer(id="subtitle", kind="text", text="Engineer", position=(100, 45), clip_ref="badge-bg")
    return with_layer(template, extra)


class TestClipPath:
    def test_one_clip_per_referenced_shape(self, badge_template):
        root = parse_document(render_document(with_second_label(badge_template), clip_mode="clip"))
        clips = root.findall(".//svg:defs/svg:clipPath", NS)
        assert [c.get("id") for c in clips] == ["clip-badge-bg"]
        assert clips[0].get("clipPathUnits") == "userSpaceOnUse"
        assert clips[0].find("svg:path", NS).get("d") == badge_template.layers[0].path

    def test_text_element_references_clip(self, badge_template):
        root = parse_document(render_document(badge_template, clip_mode="clip"))
        text = layer_group(root, "label").find("svg:text", NS)
        assert text.get("clip-path") == "url(#clip-badge-bg)"
        assert layer_group(root, "label").get("clip-path") is None
        # El shape se sigue dibujando
        assert layer_group(root, "badge-bg") is not None
        assert layer_group(root, "badge-bg").get("clip-path") is None

    def test_mask_mode(self, badge_template):
        root = parse_document(render_document(badge_template, clip_mode="mask"))
        assert root.findall(".//svg:clipPath", NS) == []
        masks = root.findall(".//svg:defs/svg:mask", NS)
        assert [m.get("id") for m in masks] == ["mask-badge-bg"]
        assert masks[0].find("svg:path", NS).get("fill") == "white"
        assert layer_group(root, "label").find("svg:text", NS).get("mask") == "url(#mask-badge-bg)"

    def test_rotated_text_keeps_clip_and_rotation(self, badge_template):
        root = parse_document(render_document(badge_template, {"label": LayerOverride(id="label", rotation=15)}))
        text = layer_group(root, "label").find("svg:text", NS)
        assert text.get("transform") == "rotate(15 100 30)"
        assert text.get("clip-path") == "url(#clip-badge-bg)"

    def test_svg_image_layer_is_clipped(self, badge_template):
        icon = TemplateLayer(
            id="icon",
            kind="svgImage",
            position=(30, 30),
            width=24,
            height=24,
            svg_content='<svg viewBox="0 0 24 24"><circle cx="12" cy="12" r="12"/></svg>',
            clip_ref="badge-bg",
        )
        t = with_layer(badge_template, icon)
        root = parse_document(render_document(t, clip_mode="clip"))
        # Un solo clipPath aunque lo usen el texto y el icono
        assert [c.get("id") for c in root.findall(".//svg:defs/svg:clipPath", NS)] == ["clip-badge-bg"]
        g = layer_group(root, "icon")
        assert g.get("clip-path") == "url(#clip-badge-bg)"
        # La caja transformada va dentro del <g> recortado
        assert g.get("transform") is None

    def test_svg_image_without_clip_target_is_unclipped(self, badge_template):
        icon = TemplateLayer(id="icon", kind="svgImage", svg_content="<svg><rect/></svg>", clip_ref="missing")
        root = parse_document(render_document(with_layer(badge_template, icon)))
        assert layer_group(root, "icon").get("clip-path") is None

    def test_ids_are_stable_between_renders(self, badge_template):
        a = render_document(badge_template, clip_mode="clip")
        b = render_document(badge_template, clip_mode="clip")
        assert a == b

    def test_no_defs_without_references(self, hello_template):
        assert build_defs(resolve_layers(hello_template)) is None
        root = parse_document(render_document(hello_template))
        assert root.find("svg:defs", NS) is None

    def test_invalid_mode_falls_back_to_clip(self, badge_template):
        defs = build_clip_defs(resolve_layers(badge_template), "bogus")
        assert [d.mode for d in defs] == ["clip"]


class TestTextPath:
    def test_guide_path_goes_to_defs(self):
        t = Template(
            id="arc",
            width=200,
            height=100,
            layers=(
                TemplateLayer(id="arc", kind="shape", path="M20 80 A80 80 0 0 1 180 80", subtype="path"),
                TemplateLayer(id="curved", kind="text", text="Around", text_path="arc"),
            ),
        )
        root = parse_document(render_document(t))
        guide = root.find(".//svg:defs/svg:path", NS)
        assert guide.get("id") == "textpath-arc"
        assert layer_group(root, "arc") is None
        tp = root.find(".//svg:textPath", NS)
        assert tp.get("href") == "#textpath-arc"
        assert tp.text == "Around"


class TestDocument:
    def test_intrinsic_size(self, hello_template):
        svg = render_document(hello_template)
        assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = parse_document(svg)
        assert root.get("width") == "200"
        assert root.get("height") == "60"
        assert root.get("viewBox") == "0 0 200 60"
        (text,) = root.findall(".//svg:text", NS)
        assert (text.get("x"), text.get("y")) == ("100", "30")
        assert text.text == "Hello"

    def test_responsive_template(self):
        t = Template(id="r", layers=(TemplateLayer(id="t", kind="text", text="x", position=(10, 10)),))
        root = parse_document(render_document(t))
        assert root.get("width") is None
        assert root.get("viewBox") is None

    def test_multiline_uses_tspans(self):
        t = Template(id="m", width=100, height=100, layers=(TemplateLayer(id="t", kind="text", text="a\nb"),))
        root = parse_document(render_document(t))
        spans = root.findall(".//svg:text/svg:tspan", NS)
        assert [s.text for s in spans] == ["a", "b"]
        assert all(s.get("x") == "50" for s in spans)

    def test_svg_image_is_nested(self):
        icon = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24"><circle cx="12" cy="12" r="10"/></svg>'
        t = Template(
            id="i",
            width=100,
            height=100,
            layers=(TemplateLayer(id="icon", kind="svgImage", svg_content=icon, width=40, height=40),),
        )
        root = parse_document(render_document(t))
        g = layer_group(root, "icon")
        assert g.get("data-kind") == "svgImage"
        nested = g.find("svg:g/svg:svg", NS)
        assert nested is not None
        assert nested.get("width") == "40"
        assert nested.find("svg:circle", NS) is not None

    def test_foreign_fragments_are_wrapped(self):
        el = foreign_to_element('<path d="M0 0"/><path d="M1 1"/>')
        assert el.tag == f"{{{SVG_NS}}}g"
        assert len(list(el)) == 2

    def test_broken_foreign_markup_is_dropped(self):
        el = foreign_to_element("<svg><path></svg>")
        assert el.tag == f"{{{SVG_NS}}}g"
        assert len(list(el)) == 0

    def test_font_detection(self, badge_template, hello_template):
        assert detect_font_families(render_document(badge_template)) == ["Inter"]
        assert detect_font_families(render_document(hello_template)) == ["Arial"]
        assert detect_font_families("<svg") == []

    def test_inject_style_replaces_previous(self, hello_template):
        svg = inject_style(render_document(hello_template), "@import url('a.css');")
        svg = inject_style(svg, "text { fill: red; }")
        root = parse_document(svg)
        styles = root.findall(".//svg:style", NS)
        assert len(styles) == 1
        assert styles[0].text == "text { fill: red; }"
        assert list(root)[0] is styles[0]
