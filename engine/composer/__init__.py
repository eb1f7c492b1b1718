"""
Storefront Composer — the page composition core.

Components:
  interpreter  — custom-code JSON → bounded UI tree (no script, no markup)
  widgets      — embedded widgets (coupon card) the interpreter can instantiate
  dispatcher   — (section, sources) → RenderableSection | None
  layout       — grid/slider plans, drag-to-scroll, slide rotation
  validation   — structural checks for merchant layout documents
  html         — mounts resolved sections as HTML
"""

from engine.composer.dispatcher import RenderableSection, build_render_context, compose, resolve
from engine.composer.html import node_to_html, render_page, render_section
from engine.composer.interpreter import render
from engine.composer.layout import ScrollRegion, SliderController, SlideRotation, plan_layout, start_rotation
from engine.composer.types import RenderOptions, SectionConfig, SectionType, Sources, UINode, parse_layout
from engine.composer.validation import inspect_layout, inspect_template, validate_layout

__all__ = [
    "render",
    "resolve",
    "compose",
    "build_render_context",
    "RenderableSection",
    "render_page",
    "render_section",
    "node_to_html",
    "plan_layout",
    "ScrollRegion",
    "SliderController",
    "SlideRotation",
    "start_rotation",
    "parse_layout",
    "RenderOptions",
    "SectionConfig",
    "SectionType",
    "Sources",
    "UINode",
    "validate_layout",
    "inspect_template",
    "inspect_layout",
]
