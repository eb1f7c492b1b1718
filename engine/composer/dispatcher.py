"""
Storefront Composer — Section Dispatcher

Pure function: (section, sources) → RenderableSection | None
No IO. Sources are read-only. Deterministic: same input → same output.

Each section type maps to one strategy in _STRATEGIES. A strategy resolves
the section's data dependency (slides, videos, a collection's members, the
product list) and returns None when there is nothing to show, so an empty
section never reserves layout space.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from engine.composer.formatting import discount_percent, format_price
from engine.composer.interpreter import render as render_template
from engine.composer.layout import LayoutPlan, plan_layout
from engine.composer.types import (
    DEFAULT_TITLES,
    CustomCodeSettings,
    DisplayItem,
    HeroSettings,
    ItemSettings,
    NewsletterSettings,
    SectionConfig,
    SectionSettings,
    SectionType,
    Sources,
    UINode,
    VideoSettings,
    record_id,
    settings_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scope:
    """The product a page is about, for CustomCode render contexts."""

    product: dict[str, Any] | None = None
    related_products: tuple[dict[str, Any], ...] = ()
    cross_sell_products: tuple[dict[str, Any], ...] = ()
    currency: str = "₹"


@dataclass(frozen=True)
class RenderableSection:
    """A section resolved to concrete content, ready to mount."""

    section: SectionConfig
    settings: SectionSettings
    title: str = ""
    items: tuple[DisplayItem, ...] = ()
    layout: LayoutPlan | None = None
    tree: UINode | str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.section.id

    @property
    def type(self) -> SectionType:
        return self.section.type


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(
    section: SectionConfig,
    sources: Sources,
    *,
    product: dict[str, Any] | None = None,
    related_products: Iterable[dict[str, Any]] = (),
    cross_sell_products: Iterable[dict[str, Any]] = (),
    currency: str = "₹",
) -> RenderableSection | None:
    """
    Resolve one section against the content sources.
    Returns None for inactive sections and sections with no content.
    """
    scope = Scope(
        product=product,
        related_products=tuple(related_products),
        cross_sell_products=tuple(cross_sell_products),
        currency=currency,
    )
    return _resolve(section, sources, scope)


def compose(
    sections: Iterable[SectionConfig],
    sources: Sources,
    *,
    product: dict[str, Any] | None = None,
    related_products: Iterable[dict[str, Any]] = (),
    cross_sell_products: Iterable[dict[str, Any]] = (),
    currency: str = "₹",
) -> list[RenderableSection]:
    """Resolve a whole layout in configuration order, dropping empty sections."""
    scope = Scope(
        product=product,
        related_products=tuple(related_products),
        cross_sell_products=tuple(cross_sell_products),
        currency=currency,
    )
    resolved = []
    for section in sections:
        renderable = _resolve(section, sources, scope)
        if renderable is not None:
            resolved.append(renderable)
    return resolved


def build_render_context(
    section_id: str,
    product: dict[str, Any] | None = None,
    related_products: Iterable[dict[str, Any]] = (),
    cross_sell_products: Iterable[dict[str, Any]] = (),
    currency: str = "₹",
) -> dict[str, Any]:
    """
    Build the RenderContext for a custom-code block.

    Scalar product fields become `product.<field>`; prices get formatted
    companions. Related and cross-sell lists pass through unmodified and
    are never substituted into text.
    """
    context: dict[str, Any] = {"sectionId": section_id}

    if product:
        for key, value in product.items():
            if isinstance(value, bool) or value is None:
                continue
            if isinstance(value, (str, int, float)):
                context[f"product.{key}"] = value
        if "id" not in product and "_id" in product:
            context["product.id"] = record_id(product)

        price = product.get("price")
        mrp = product.get("mrp")
        formatted = format_price(price, currency)
        if formatted:
            context["product.formattedPrice"] = formatted
        formatted_mrp = format_price(mrp, currency)
        if formatted_mrp:
            context["product.formattedMrp"] = formatted_mrp
        percent = discount_percent(price, mrp)
        if percent is not None:
            context["product.discountPercent"] = percent

    context["relatedProducts"] = list(related_products)
    context["crossSellProducts"] = list(cross_sell_products)
    return context


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _resolve(section: SectionConfig, sources: Sources, scope: Scope) -> RenderableSection | None:
    if not section.is_active:
        logger.debug("resolve: section %s inactive", section.id)
        return None

    settings = settings_for(section)
    strategy = _STRATEGIES[section.type]
    renderable = strategy(section, settings, sources, scope)
    if renderable is None:
        logger.debug("resolve: section %s (%s) has no content", section.id, section.type.value)
    return renderable


def _title(section: SectionConfig) -> str:
    return section.title or DEFAULT_TITLES[section.type]


def _resolve_hero(
    section: SectionConfig, settings: HeroSettings, sources: Sources, scope: Scope
) -> RenderableSection | None:
    if not sources.slides:
        return None
    items = tuple(DisplayItem.of("slide", s) for s in sources.slides)
    return RenderableSection(section=section, settings=settings, title=_title(section), items=items)


def _resolve_items(
    section: SectionConfig, settings: ItemSettings, sources: Sources, scope: Scope
) -> RenderableSection | None:
    members = _collection_members(settings.collection_id, sources)

    if members is None and section.type == SectionType.COLLECTIONS:
        collections = [c for c in sources.collections if c.get("isActive", True) is not False]
        items = [DisplayItem.of("collection", c) for c in collections]
    else:
        products = list(members) if members is not None else list(sources.products)
        products = _order_products(products, settings.sort_by)
        items = [DisplayItem.of("product", p) for p in products]

    if settings.limit is not None:
        items = items[: settings.limit]
    if not items:
        return None

    return RenderableSection(
        section=section,
        settings=settings,
        title=_title(section),
        items=tuple(items),
        layout=plan_layout(len(items), settings),
    )


def _resolve_videos(
    section: SectionConfig, settings: VideoSettings, sources: Sources, scope: Scope
) -> RenderableSection | None:
    videos = list(sources.videos)
    if settings.limit is not None:
        videos = videos[: settings.limit]
    if not videos:
        return None
    items = tuple(DisplayItem.of("video", v) for v in videos)
    return RenderableSection(
        section=section,
        settings=settings,
        title=_title(section),
        items=items,
        layout=plan_layout(len(items), settings),
    )


def _resolve_custom_code(
    section: SectionConfig, settings: CustomCodeSettings, sources: Sources, scope: Scope
) -> RenderableSection | None:
    context = build_render_context(
        section.id,
        scope.product,
        scope.related_products,
        scope.cross_sell_products,
        scope.currency,
    )
    tree = render_template(section.code or "", context)
    if isinstance(tree, UINode) and tree.is_error:
        logger.warning("resolve: custom code in section %s is not valid JSON", section.id)
    return RenderableSection(
        section=section,
        settings=settings,
        title=_title(section),
        tree=tree,
        context=context,
    )


def _resolve_newsletter(
    section: SectionConfig, settings: NewsletterSettings, sources: Sources, scope: Scope
) -> RenderableSection | None:
    return RenderableSection(section=section, settings=settings, title=section.title or settings.title)


_STRATEGIES: dict[SectionType, Callable[..., RenderableSection | None]] = {
    SectionType.HERO: _resolve_hero,
    SectionType.COLLECTIONS: _resolve_items,
    SectionType.NEW_ARRIVALS: _resolve_items,
    SectionType.BEST_SELLERS: _resolve_items,
    SectionType.VIDEOS: _resolve_videos,
    SectionType.CUSTOM_CODE: _resolve_custom_code,
    SectionType.NEWSLETTER: _resolve_newsletter,
}


# ---------------------------------------------------------------------------
# Item resolution helpers
# ---------------------------------------------------------------------------


def _collection_members(collection_id: str | None, sources: Sources) -> list[dict[str, Any]] | None:
    """
    Member products of the targeted collection, in stored order.
    None when there is no target, the target is missing, or it has no members.
    """
    if collection_id is None:
        return None

    collection = next(
        (c for c in sources.collections if collection_id in (record_id(c), c.get("slug"))),
        None,
    )
    if collection is None:
        logger.debug("resolve: collection %s not found, using all products", collection_id)
        return None

    by_id = {record_id(p): p for p in sources.products}
    members = []
    for member in collection.get("products") or []:
        if isinstance(member, dict):
            members.append(member)
        elif isinstance(member, (str, int)) and str(member) in by_id:
            members.append(by_id[str(member)])

    return members or None


def _order_products(products: list[dict[str, Any]], sort_by: str) -> list[dict[str, Any]]:
    """Stable ordering: equal keys keep their source order."""
    if sort_by == "newest":
        return sorted(products, key=_created_at, reverse=True)
    if sort_by == "best_selling":
        return sorted(products, key=_review_count, reverse=True)
    return products


def _created_at(product: dict[str, Any]) -> float:
    """Creation time as epoch seconds; missing or unparseable sorts last."""
    value = product.get("createdAt")
    if isinstance(value, bool):
        return float("-inf")
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as sent by the storefront API
        try:
            seconds = float(value) / 1000.0
        except OverflowError:
            return float("-inf")
        return seconds if math.isfinite(seconds) else float("-inf")
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return float("-inf")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.timestamp()
    return float("-inf")


def _review_count(product: dict[str, Any]) -> int:
    count = product.get("reviewCount")
    if isinstance(count, int) and not isinstance(count, bool):
        return count
    reviews = product.get("reviews")
    if isinstance(reviews, list):
        return len(reviews)
    return 0
