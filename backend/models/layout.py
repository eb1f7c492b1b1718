"""Request and response shapes for the render endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProductScope(BaseModel):
    """The product a page is about. Feeds CustomCode render contexts."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    product: dict[str, Any] | None = None
    related_products: list[dict[str, Any]] = Field(default_factory=list, alias="relatedProducts")
    cross_sell_products: list[dict[str, Any]] = Field(default_factory=list, alias="crossSellProducts")


class RenderSectionsRequest(ProductScope):
    """What the client sends to POST /api/render/sections."""

    layout: dict[str, Any] | list[Any]
    sources: dict[str, Any] = Field(default_factory=dict)
    # Reject the whole layout on any validation error
    strict_validation: bool = Field(default=False, alias="strict")


class RenderPageRequest(RenderSectionsRequest):
    """What the client sends to POST /api/render/page."""

    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=500)
    footer: str | None = Field(default=None, max_length=200)


class RenderedSection(BaseModel):
    """One mounted section."""

    id: str
    type: str
    html: str


class RenderCustomCodeRequest(ProductScope):
    """What the client sends to preview a custom-code block."""

    code: str = Field(max_length=100_000)
    section_id: str = Field(default="preview", min_length=1, max_length=100, alias="sectionId")


class RenderCustomCodeResponse(BaseModel):
    """Interpreter output: the serialized tree, its HTML, and whether it is the error node."""

    tree: dict[str, Any] | str | None
    html: str
    error: bool


class ValidateLayoutRequest(BaseModel):
    """What the client sends to POST /api/layout/validate."""

    model_config = {"extra": "forbid"}

    layout: Any


class ValidateLayoutResponse(BaseModel):
    """Errors reject the layout; warnings are authoring hints."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
