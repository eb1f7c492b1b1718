"""
Storefront Composer — Layout Validation

Validates a merchant layout document before it is stored or rendered.
Validation is structural (well-formed?) not semantic (will it show?).
The dispatcher handles semantic checks (is the collection there? any slides?).

Entry points:
  validate_layout   — errors; a non-empty list means reject the document
  inspect_template  — warnings about a custom-code document that still renders
  inspect_layout    — inspect_template over every CustomCode section of a layout
"""

from __future__ import annotations

import json
from typing import Any

from engine.composer.interpreter import MAX_DEPTH, PRIMITIVES, is_blocked_prop, is_blocked_style
from engine.composer.types import SectionType
from engine.composer.widgets import WIDGETS

SECTION_TYPES: set[str] = {t.value for t in SectionType}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_layout(doc: Any) -> list[str]:
    """
    Validate a layout document's structure.
    Returns a list of error strings. Empty list = valid.

    This checks:
    - Is there a list of sections?
    - Does each section have an id and a known type?
    - Are ids unique?
    - Are isActive/settings/code the right shape?
    - Does CustomCode code parse as JSON?
    """
    errors: list[str] = []

    sections = doc.get("sections") if isinstance(doc, dict) else doc
    if not isinstance(sections, list):
        errors.append("Layout must contain a 'sections' list")
        return errors

    seen: set[str] = set()
    for index, section in enumerate(sections):
        errors.extend(_validate_section(index, section, seen))

    return errors


def inspect_template(code: str) -> list[str]:
    """
    Inspect a custom-code document for authoring problems.
    Returns warnings. The document still renders as-is.
    """
    try:
        document = json.loads(code)
    except (TypeError, ValueError, RecursionError) as e:
        return [f"Custom code is not valid JSON: {e}"]

    warnings: list[str] = []
    _inspect_node(document, "$", warnings)
    return warnings


def inspect_layout(doc: Any) -> list[str]:
    """
    Authoring warnings for every CustomCode section in a layout.
    Sections whose code does not parse are left to validate_layout.
    """
    sections = doc.get("sections") if isinstance(doc, dict) else doc
    if not isinstance(sections, list):
        return []

    warnings: list[str] = []
    for index, section in enumerate(sections):
        if not isinstance(section, dict) or section.get("type") != SectionType.CUSTOM_CODE.value:
            continue
        code = section.get("code")
        if not isinstance(code, str):
            continue
        try:
            document = json.loads(code)
        except (ValueError, RecursionError):
            continue
        found: list[str] = []
        _inspect_node(document, "$", found)
        warnings.extend(f"sections[{index}]: {w}" for w in found)
    return warnings


# ---------------------------------------------------------------------------
# Section validation
# ---------------------------------------------------------------------------


def _validate_section(index: int, section: Any, seen: set[str]) -> list[str]:
    errors: list[str] = []
    where = f"sections[{index}]"

    if not isinstance(section, dict):
        errors.append(f"{where}: section must be an object")
        return errors

    section_id = section.get("id")
    if not isinstance(section_id, str) or not section_id:
        errors.append(f"{where}: section requires a non-empty string 'id'")
    elif section_id in seen:
        errors.append(f"{where}: duplicate section id: {section_id}")
    else:
        seen.add(section_id)

    section_type = section.get("type")
    if section_type is None:
        errors.append(f"{where}: section requires 'type'")
    elif section_type not in SECTION_TYPES:
        errors.append(f"{where}: unknown section type: {section_type}")

    if "isActive" in section and not isinstance(section["isActive"], bool):
        errors.append(f"{where}: 'isActive' must be a boolean")

    if "settings" in section and section["settings"] is not None and not isinstance(section["settings"], dict):
        errors.append(f"{where}: 'settings' must be an object")

    if section_type == SectionType.CUSTOM_CODE.value:
        code = section.get("code")
        if not isinstance(code, str):
            errors.append(f"{where}: CustomCode requires a string 'code'")
        else:
            try:
                json.loads(code)
            except (ValueError, RecursionError):
                errors.append(f"{where}: 'code' is not valid JSON")

    return errors


# ---------------------------------------------------------------------------
# Template inspection
# ---------------------------------------------------------------------------


def _inspect_node(node: Any, path: str, warnings: list[str], depth: int = 0) -> None:
    if depth > MAX_DEPTH:
        warnings.append(f"{path}: nested deeper than {MAX_DEPTH} levels and renders nothing")
        return
    if isinstance(node, list):
        for i, child in enumerate(node):
            _inspect_node(child, f"{path}[{i}]", warnings, depth + 1)
        return
    if not isinstance(node, dict):
        return

    node_type = node.get("type")
    if not isinstance(node_type, str) or not node_type:
        warnings.append(f"{path}: node has no type and renders nothing")
        return

    if node_type in WIDGETS:
        if not isinstance(node.get("content"), dict):
            warnings.append(f"{path}: {node_type} widget has no 'content' object")
        return

    if node_type not in PRIMITIVES:
        warnings.append(f"{path}: unknown type '{node_type}' renders as a generic container")

    props = node.get("props")
    if isinstance(props, dict):
        for name, value in props.items():
            if is_blocked_prop(name, value):
                warnings.append(f"{path}: prop '{name}' is not allowed and is dropped")

    style = node.get("style")
    if isinstance(style, dict):
        for name, value in style.items():
            if is_blocked_style(value):
                warnings.append(f"{path}: style '{name}' is not allowed and is dropped")

    has_children = node.get("children") is not None
    if has_children and node.get("items") is not None:
        warnings.append(f"{path}: node has both 'children' and 'items'; 'children' is rendered")

    content = node.get("children") if has_children else node.get("items")
    if isinstance(content, list):
        for i, child in enumerate(content):
            _inspect_node(child, f"{path}.children[{i}]" if has_children else f"{path}.items[{i}]", warnings, depth + 1)
    elif isinstance(content, dict):
        _inspect_node(content, f"{path}.children" if has_children else f"{path}.items", warnings, depth + 1)
