"""Render routes — compose layouts into HTML and preview custom code."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from backend.config import settings
from backend.models.layout import (
    RenderCustomCodeRequest,
    RenderCustomCodeResponse,
    RenderedSection,
    RenderPageRequest,
    RenderSectionsRequest,
    ValidateLayoutRequest,
    ValidateLayoutResponse,
)
from engine.composer.dispatcher import build_render_context, compose
from engine.composer.html import node_to_html, render_page, render_section
from engine.composer.interpreter import render
from engine.composer.types import RenderOptions, SectionConfig, Sources, UINode, parse_layout
from engine.composer.validation import inspect_layout, validate_layout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["render"])


def _render_options(title: str | None = None, description: str | None = None, footer: str | None = None) -> RenderOptions:
    return RenderOptions(
        title=title or settings.SITE_TITLE,
        description=description or "",
        base_url=settings.PUBLIC_URL,
        currency=settings.CURRENCY_SYMBOL,
        include_fonts=settings.INCLUDE_FONTS,
        footer=footer,
    )


def _sections(req: RenderSectionsRequest) -> list[SectionConfig]:
    """
    Parse the request layout.

    A layout without a section list is always rejected. Individual bad
    sections are skipped unless the client asked for strict validation.
    """
    raw = req.layout.get("sections") if isinstance(req.layout, dict) else req.layout
    errors = validate_layout(req.layout)
    if errors and (req.strict_validation or not isinstance(raw, list)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)
    return parse_layout(req.layout)


@router.post("/render/page", response_class=HTMLResponse)
async def render_page_route(req: RenderPageRequest) -> HTMLResponse:
    """
    Render a complete storefront page.

    Sections render in configuration order; inactive and empty sections
    leave no trace in the output.
    """
    sections = _sections(req)
    options = _render_options(req.title, req.description, req.footer)
    html = render_page(
        sections,
        Sources.from_dict(req.sources),
        options,
        product=req.product,
        related_products=req.related_products,
        cross_sell_products=req.cross_sell_products,
    )
    logger.info("render_page: %d sections configured", len(sections))
    return HTMLResponse(content=html)


@router.post("/render/sections")
async def render_sections_route(req: RenderSectionsRequest) -> list[RenderedSection]:
    """Render each visible section as a standalone fragment."""
    options = _render_options()
    resolved = compose(
        _sections(req),
        Sources.from_dict(req.sources),
        product=req.product,
        related_products=req.related_products,
        cross_sell_products=req.cross_sell_products,
        currency=options.currency,
    )
    return [
        RenderedSection(id=r.id, type=r.type.value, html=render_section(r, options))
        for r in resolved
    ]


@router.post("/render/custom-code")
async def render_custom_code_route(req: RenderCustomCodeRequest) -> RenderCustomCodeResponse:
    """
    Preview a custom-code block against an optional product.

    Invalid JSON is not a request error: it renders the inline error node,
    exactly as it would on the storefront.
    """
    context = build_render_context(
        req.section_id,
        req.product,
        req.related_products,
        req.cross_sell_products,
        settings.CURRENCY_SYMBOL,
    )
    tree = render(req.code, context)

    serialized: dict[str, Any] | str | None
    if isinstance(tree, UINode):
        serialized = tree.to_dict()
    else:
        serialized = tree

    is_error = isinstance(tree, UINode) and tree.is_error
    if is_error:
        logger.info("render_custom_code: section %s code is not valid JSON", req.section_id)

    return RenderCustomCodeResponse(tree=serialized, html=node_to_html(tree), error=is_error)


@router.post("/layout/validate")
async def validate_layout_route(req: ValidateLayoutRequest) -> ValidateLayoutResponse:
    """Check a layout before it is saved. Never raises for a bad layout."""
    errors = validate_layout(req.layout)
    warnings = inspect_layout(req.layout)
    return ValidateLayoutResponse(valid=not errors, errors=errors, warnings=warnings)
