"""
Template Interpreter -- Node Rendering Tests

Covers the closed primitive vocabulary, the generic fallback for unknown
types, arrays as fragments, children/items precedence, and the fixed
error node for documents that are not valid JSON.
"""

import json

import pytest

from engine.composer.interpreter import PRIMITIVES, render
from engine.composer.types import ERROR_MESSAGE, UINode, error_node


def code(document):
    return json.dumps(document)


# ============================================================================
# Invalid JSON
# ============================================================================


class TestErrorNode:
    @pytest.mark.parametrize("raw", ["not json", "{", "", "{'single': 'quotes'}", "[1, 2,]"])
    def test_invalid_json_yields_error_node(self, raw):
        node = render(raw, {"sectionId": "s1"})
        assert isinstance(node, UINode)
        assert node.is_error
        assert node.text() == ERROR_MESSAGE

    def test_error_node_is_fixed(self):
        assert render("oops") == error_node()

    def test_error_node_is_idempotent(self):
        first = render("{bad")
        second = render("{bad")
        assert first == second

    def test_error_node_is_marked_for_display(self):
        node = render("{bad")
        assert node.tag == "div"
        assert node.props["className"] == "custom-code-error"
        assert node.props["role"] == "alert"

    def test_none_code_yields_error_node(self):
        assert render(None).is_error


# ============================================================================
# Primitives
# ============================================================================


class TestPrimitives:
    @pytest.mark.parametrize(
        "node_type,tag",
        [
            ("container", "div"),
            ("section", "section"),
            ("h1", "h1"),
            ("h4", "h4"),
            ("paragraph", "p"),
            ("text", "span"),
            ("button", "button"),
            ("icon", "i"),
        ],
    )
    def test_primitive_tag(self, node_type, tag):
        node = render(code({"type": node_type, "children": "x"}))
        assert node.kind == node_type
        assert node.tag == tag
        assert node.children == ["x"]

    def test_every_primitive_has_a_tag(self):
        for node_type, tag in PRIMITIVES.items():
            node = render(code({"type": node_type}))
            assert node.tag == tag

    def test_void_primitives_drop_children(self):
        assert render(code({"type": "image", "children": ["ignored"]})).children == []
        assert render(code({"type": "divider", "children": "ignored"})).children == []

    def test_flex_gets_base_display(self):
        node = render(code({"type": "flex", "style": {"gap": 8}}))
        assert node.style == {"display": "flex", "gap": 8}

    def test_node_style_overrides_base(self):
        node = render(code({"type": "grid", "style": {"display": "block"}}))
        assert node.style["display"] == "block"

    def test_badge_and_card_have_base_styles(self):
        assert "borderRadius" in render(code({"type": "badge"})).style
        assert "padding" in render(code({"type": "card"})).style


# ============================================================================
# Unknown types
# ============================================================================


class TestGenericFallback:
    def test_unknown_type_becomes_generic_div(self):
        node = render(code({"type": "marquee", "children": "scrolling"}))
        assert node.kind == "generic"
        assert node.tag == "div"
        assert node.children == ["scrolling"]

    def test_known_html_tag_is_kept(self):
        node = render(code({"type": "ul", "children": [{"type": "li", "children": "one"}]}))
        assert node.kind == "generic"
        assert node.tag == "ul"
        assert node.children[0].tag == "li"

    def test_script_never_becomes_a_script_tag(self):
        node = render(code({"type": "script", "children": "alert(1)"}))
        assert node.tag == "div"

    def test_generic_keeps_props_and_style(self):
        node = render(code({"type": "strong", "props": {"title": "t"}, "style": {"color": "red"}}))
        assert node.props == {"title": "t"}
        assert node.style == {"color": "red"}


# ============================================================================
# Structure
# ============================================================================


class TestStructure:
    def test_array_root_is_fragment(self):
        node = render(code(["a", {"type": "text", "children": "b"}]))
        assert node.kind == "fragment"
        assert node.children[0] == "a"
        assert node.children[1].kind == "text"

    def test_nested_array_is_nested_fragment(self):
        node = render(code({"type": "container", "children": [["a", "b"], "c"]}))
        assert node.children[0].kind == "fragment"
        assert node.children[0].children == ["a", "b"]
        assert node.children[1] == "c"

    def test_items_used_when_no_children(self):
        node = render(code({"type": "container", "items": ["a", "b"]}))
        assert node.children == ["a", "b"]

    def test_children_take_precedence_over_items(self):
        node = render(code({"type": "container", "children": ["c"], "items": ["i"]}))
        assert node.children == ["c"]

    def test_single_object_child(self):
        node = render(code({"type": "card", "children": {"type": "h3", "children": "x"}}))
        assert len(node.children) == 1
        assert node.children[0].tag == "h3"

    def test_null_and_boolean_children_render_nothing(self):
        node = render(code({"type": "container", "children": ["a", None, True, 3]}))
        assert node.children == ["a", "3"]

    def test_node_without_type_renders_nothing(self):
        assert render(code({"props": {"id": "x"}})) is None

    def test_untyped_children_are_skipped(self):
        node = render(code({"type": "container", "children": [{"children": "lost"}, "kept"]}))
        assert node.children == ["kept"]

    def test_bare_number_root(self):
        assert render("42") == "42"

    def test_null_root(self):
        assert render("null") is None

    def test_text_collects_subtree(self):
        node = render(code({"type": "card", "children": [{"type": "h3", "children": "A"}, "B"]}))
        assert node.text() == "AB"

    def test_to_dict_is_json_ready(self):
        node = render(code({"type": "h2", "props": {"id": "t"}, "children": "Hi"}))
        assert node.to_dict() == {
            "kind": "h2",
            "tag": "h2",
            "props": {"id": "t"},
            "style": {},
            "children": ["Hi"],
        }
