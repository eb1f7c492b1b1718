"""
Template Interpreter -- Placeholder Substitution Tests

Strings anywhere in a custom-code document may carry {{ name }} placeholders.
They are filled from the scalar entries of the render context:
  - whitespace inside the braces is ignored
  - unknown names stay verbatim so the author can see them
  - non-scalar entries (lists, objects, booleans, null) never substitute
  - substitution is a single pass

Rendering is deterministic: identical (code, context) → identical output.
"""

import json

from engine.composer.interpreter import render, scalar_entries, substitute
from engine.composer.types import UINode


def code(document):
    return json.dumps(document)


# ============================================================================
# Plain strings
# ============================================================================


class TestStringSubstitution:
    def test_known_name_is_replaced(self):
        assert render(code("Hello {{name}}"), {"name": "Asha"}) == "Hello Asha"

    def test_unknown_name_is_left_verbatim(self):
        assert render(code("Hello {{name}}"), {}) == "Hello {{name}}"

    def test_no_context_at_all(self):
        assert render(code("Hello {{name}}")) == "Hello {{name}}"

    def test_whitespace_inside_braces_is_ignored(self):
        assert render(code("Hi {{  name }}!"), {"name": "Asha"}) == "Hi Asha!"

    def test_dotted_product_keys(self):
        context = {"product.name": "Silk Saree", "product.price": 1299}
        result = render(code("{{product.name}} at {{ product.price }}"), context)
        assert result == "Silk Saree at 1299"

    def test_integer_valued_float_renders_without_decimal(self):
        assert render(code("{{n}}"), {"n": 10.0}) == "10"

    def test_fractional_float_keeps_decimal(self):
        assert render(code("{{n}}"), {"n": 9.5}) == "9.5"

    def test_repeated_placeholder(self):
        assert render(code("{{a}}-{{a}}"), {"a": "x"}) == "x-x"


class TestNonScalarContext:
    """Only strings and numbers take part in substitution."""

    def test_list_entries_do_not_substitute(self):
        context = {"relatedProducts": [{"id": "p1"}]}
        assert render(code("{{relatedProducts}}"), context) == "{{relatedProducts}}"

    def test_boolean_entries_do_not_substitute(self):
        assert render(code("{{flag}}"), {"flag": True}) == "{{flag}}"

    def test_null_entries_do_not_substitute(self):
        assert render(code("{{gone}}"), {"gone": None}) == "{{gone}}"

    def test_scalar_entries_filters_context(self):
        scalars = scalar_entries({"a": "x", "b": 2, "c": [1], "d": {"k": 1}, "e": False})
        assert scalars == {"a": "x", "b": "2"}


class TestSinglePass:
    def test_substituted_values_are_not_rescanned(self):
        context = {"a": "{{b}}", "b": "boom"}
        assert render(code("{{a}}"), context) == "{{b}}"

    def test_substitute_without_braces_is_identity(self):
        assert substitute("plain text", {"a": "x"}) == "plain text"

    def test_malformed_placeholder_is_untouched(self):
        assert substitute("{{ a b }}", {"a": "x", "b": "y"}) == "{{ a b }}"


# ============================================================================
# Inside elements
# ============================================================================


class TestElementSubstitution:
    def test_children_text_is_substituted(self):
        node = render(code({"type": "h2", "children": "{{product.name}}"}), {"product.name": "Kurta"})
        assert isinstance(node, UINode)
        assert node.children == ["Kurta"]

    def test_prop_values_are_substituted(self):
        document = {"type": "image", "props": {"src": "{{product.imageUrl}}", "alt": "{{product.name}}"}}
        node = render(code(document), {"product.imageUrl": "/img/k.jpg", "product.name": "Kurta"})
        assert node.props == {"src": "/img/k.jpg", "alt": "Kurta"}

    def test_style_values_are_substituted(self):
        document = {"type": "container", "style": {"color": "{{accent}}"}}
        node = render(code(document), {"accent": "#e11d48"})
        assert node.style == {"color": "#e11d48"}

    def test_non_string_props_pass_through(self):
        document = {"type": "button", "props": {"disabled": True, "tabIndex": 0}}
        node = render(code(document), {})
        assert node.props == {"disabled": True, "tabIndex": 0}


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:
    def test_same_input_same_output(self):
        document = code(
            {
                "type": "card",
                "children": [
                    {"type": "h3", "children": "{{product.name}}"},
                    {"type": "badge", "children": "{{product.discountPercent}}% OFF"},
                    {"type": "coupon", "content": {"code": "SAVE10"}},
                ],
            }
        )
        context = {"sectionId": "promo", "product.name": "Kurta", "product.discountPercent": 25}
        first = render(document, context)
        for _ in range(20):
            assert render(document, context) == first
