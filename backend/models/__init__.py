"""
Pydantic models for the Storefront Composer API.

All data shapes defined here. No imports from routes.
"""

from backend.models.layout import (
    ProductScope,
    RenderCustomCodeRequest,
    RenderCustomCodeResponse,
    RenderedSection,
    RenderPageRequest,
    RenderSectionsRequest,
    ValidateLayoutRequest,
    ValidateLayoutResponse,
)

__all__ = [
    # Render models
    "ProductScope",
    "RenderPageRequest",
    "RenderSectionsRequest",
    "RenderedSection",
    "RenderCustomCodeRequest",
    "RenderCustomCodeResponse",
    # Validation models
    "ValidateLayoutRequest",
    "ValidateLayoutResponse",
]
