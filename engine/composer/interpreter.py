"""
Storefront Composer — Safe Template Interpreter

Pure function: (raw_code, context) → UINode | str | None
No script. No raw markup. No IO. Deterministic: same input → same output.

A custom-code block is a JSON document. Each node is one of:
- a string: text, with {{ name }} placeholders filled from scalar context entries
- an array: rendered in order into a fragment
- an object: {type, props, style, children | items} built from a closed
  primitive vocabulary; unknown types fall back to a generic container

`coupon` nodes are handed to the widget registry with their content and
design passed through untouched.
"""

from __future__ import annotations

import json
import re
from typing import Any

from engine.composer.types import UINode, error_node
from engine.composer.widgets import WIDGETS, create_widget

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

PRIMITIVES: dict[str, str] = {
    "container": "div",
    "section": "section",
    "flex": "div",
    "grid": "div",
    "h1": "h1",
    "h2": "h2",
    "h3": "h3",
    "h4": "h4",
    "h5": "h5",
    "h6": "h6",
    "paragraph": "p",
    "text": "span",
    "image": "img",
    "button": "button",
    "badge": "span",
    "card": "div",
    "icon": "i",
    "divider": "hr",
}

# Base styles that give flex/grid/card/badge their shape; node styles override
_PRIMITIVE_STYLES: dict[str, dict[str, Any]] = {
    "flex": {"display": "flex"},
    "grid": {"display": "grid"},
    "card": {"borderRadius": "0.5rem", "border": "1px solid #e5e7eb", "padding": 16},
    "badge": {"display": "inline-block", "borderRadius": "9999px", "padding": "2px 8px", "fontSize": 12},
}

# Tags an unknown type may map onto verbatim
GENERIC_TAGS: set[str] = {
    "span",
    "div",
    "ul",
    "ol",
    "li",
    "strong",
    "em",
    "small",
    "blockquote",
    "a",
    "hr",
    "br",
    "label",
    "figure",
    "figcaption",
    "table",
    "thead",
    "tbody",
    "tr",
    "td",
    "th",
    "code",
    "pre",
}

VOID_TAGS: set[str] = {"img", "hr", "br"}

BLOCKED_PROPS: set[str] = {"dangerouslysetinnerhtml", "innerhtml", "outerhtml", "srcdoc"}
URL_PROPS: set[str] = {"href", "src", "action", "formaction", "poster", "xlink:href"}
_UNSAFE_URL_RE = re.compile(r"^(javascript|vbscript|data:text/html)", re.IGNORECASE)
# Browsers ignore control characters and whitespace inside a scheme
_URL_NOISE_RE = re.compile(r"[\x00-\x20\x7f]+")
_UNSAFE_STYLE_RE = re.compile(r"expression\s*\(|javascript:", re.IGNORECASE)

# Subtrees nested deeper than this render nothing
MAX_DEPTH = 64

PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")
_SCOPE_RE = re.compile(r"[^A-Za-z0-9_-]")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render(raw_code: str, context: dict[str, Any] | None = None) -> UINode | str | None:
    """
    Render a custom-code JSON document.

    Returns the rendered root, or the fixed error node when `raw_code` is
    not valid JSON. A root with no renderable output returns None.
    Pure function. No side effects. No IO.
    """
    try:
        document = json.loads(raw_code)
    except (TypeError, ValueError, RecursionError):
        return error_node()

    state = _RenderState(context or {})
    return state.render_node(document)


def scalar_entries(context: dict[str, Any]) -> dict[str, str]:
    """String forms of the context entries that take part in substitution."""
    scalars: dict[str, str] = {}
    for key, value in context.items():
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, float):
            scalars[key] = str(int(value)) if value.is_integer() else str(value)
        elif isinstance(value, (str, int)):
            scalars[key] = str(value)
    return scalars


def substitute(text: str, scalars: dict[str, str]) -> str:
    """
    Replace {{ name }} with the scalar value for `name`.

    Whitespace inside the braces is ignored. Unknown names are left verbatim.
    Single pass: substituted values are not scanned again.
    """
    if "{{" not in text:
        return text

    def _replace(match: re.Match[str]) -> str:
        value = scalars.get(match.group(1))
        return match.group(0) if value is None else value

    return PLACEHOLDER_RE.sub(_replace, text)


def is_blocked_prop(name: str, value: Any) -> bool:
    """True if a prop would let markup or script through the boundary."""
    lowered = name.lower()
    if lowered.startswith("on") or lowered in BLOCKED_PROPS:
        return True
    if lowered in URL_PROPS and isinstance(value, str) and is_unsafe_url(value):
        return True
    return False


def is_unsafe_url(value: str) -> bool:
    """True if the URL would run script once the browser has normalized it."""
    return bool(_UNSAFE_URL_RE.match(_URL_NOISE_RE.sub("", value)))


def is_blocked_style(value: Any) -> bool:
    return isinstance(value, str) and bool(_UNSAFE_STYLE_RE.search(value))


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


class _RenderState:
    """Per-call state. Never shared between render() calls."""

    def __init__(self, context: dict[str, Any]) -> None:
        self.scalars = scalar_entries(context)
        section_id = context.get("sectionId")
        if isinstance(section_id, (str, int)) and not isinstance(section_id, bool) and section_id != "":
            self.scope = _SCOPE_RE.sub("-", str(section_id))
        else:
            self.scope = "custom"
        self.widget_count = 0

    def render_node(self, node: Any, depth: int = 0) -> UINode | str | None:
        if depth > MAX_DEPTH:
            return None
        if isinstance(node, str):
            return substitute(node, self.scalars)
        if isinstance(node, list):
            return UINode(kind="fragment", tag="", children=self.render_children(node, depth + 1))
        if isinstance(node, dict):
            return self.render_element(node, depth)
        # Bare numbers render as their text; null/bool render nothing
        if isinstance(node, (int, float)) and not isinstance(node, bool):
            return str(node)
        return None

    def render_children(self, nodes: list[Any], depth: int) -> list[UINode | str]:
        children: list[UINode | str] = []
        for child in nodes:
            rendered = self.render_node(child, depth)
            if rendered is not None:
                children.append(rendered)
        return children

    def render_element(self, node: dict[str, Any], depth: int) -> UINode | None:
        node_type = node.get("type")
        if not isinstance(node_type, str) or not node_type:
            return None

        if node_type in WIDGETS:
            return self.render_widget(node_type, node)

        props = self.clean_props(node.get("props"))
        style = self.clean_style(node.get("style"))

        content = node.get("children")
        if content is None:
            content = node.get("items")

        if isinstance(content, list):
            children = self.render_children(content, depth + 1)
        elif content is None:
            children = []
        else:
            rendered = self.render_node(content, depth + 1)
            children = [] if rendered is None else [rendered]

        if node_type in PRIMITIVES:
            tag = PRIMITIVES[node_type]
            base = _PRIMITIVE_STYLES.get(node_type)
            if base:
                style = {**base, **style}
            if tag in VOID_TAGS:
                children = []
            return UINode(kind=node_type, tag=tag, props=props, style=style, children=children)

        tag = node_type if node_type in GENERIC_TAGS else "div"
        if tag in VOID_TAGS:
            children = []
        return UINode(kind="generic", tag=tag, props=props, style=style, children=children)

    def render_widget(self, key: str, node: dict[str, Any]) -> UINode | None:
        self.widget_count += 1
        scope = f"{self.scope}-{self.widget_count}"
        widget = create_widget(key, node.get("content"), node.get("design"), scope)
        if widget is None:
            return None
        return UINode(kind="widget", tag="div", props={"className": widget.scoped_class}, widget=widget)

    def clean_props(self, raw: Any) -> dict[str, Any]:
        if not isinstance(raw, dict):
            return {}
        props: dict[str, Any] = {}
        for name, value in raw.items():
            if isinstance(value, str):
                value = substitute(value, self.scalars)
            if is_blocked_prop(name, value):
                continue
            props[name] = value
        return props

    def clean_style(self, raw: Any) -> dict[str, Any]:
        if not isinstance(raw, dict):
            return {}
        style: dict[str, Any] = {}
        for name, value in raw.items():
            if isinstance(value, str):
                value = substitute(value, self.scalars)
            if is_blocked_style(value):
                continue
            style[name] = value
        return style
