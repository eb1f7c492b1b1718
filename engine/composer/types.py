"""
Storefront Composer — Shared Types

Data classes used across the interpreter, dispatcher, layout controller
and HTML mounting. These are the contracts that bind the composer together.

Key points:
- `SectionType` is a closed set; unknown section types never reach the dispatcher
- Per-family settings dataclasses own every default in one place
- `UINode` is the render output; `fragment`, `generic`, `widget` and `error`
  are the special kinds
- `DisplayItem` wraps a read-only record from one of the content sources
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section types
# ---------------------------------------------------------------------------


class SectionType(str, Enum):
    HERO = "Hero"
    COLLECTIONS = "Collections"
    NEW_ARRIVALS = "NewArrivals"
    BEST_SELLERS = "BestSellers"
    VIDEOS = "Videos"
    CUSTOM_CODE = "CustomCode"
    NEWSLETTER = "Newsletter"


ITEM_SECTION_TYPES: set[SectionType] = {
    SectionType.COLLECTIONS,
    SectionType.NEW_ARRIVALS,
    SectionType.BEST_SELLERS,
}

SORT_VALUES: set[str] = {"newest", "best_selling", "manual"}

DEFAULT_SORT: dict[SectionType, str] = {
    SectionType.NEW_ARRIVALS: "newest",
    SectionType.BEST_SELLERS: "best_selling",
    SectionType.COLLECTIONS: "manual",
}

DEFAULT_TITLES: dict[SectionType, str] = {
    SectionType.HERO: "",
    SectionType.COLLECTIONS: "Curated Collections",
    SectionType.NEW_ARRIVALS: "New Arrivals",
    SectionType.BEST_SELLERS: "Best Sellers",
    SectionType.VIDEOS: "Shop From Video",
    SectionType.CUSTOM_CODE: "",
    SectionType.NEWSLETTER: "Join the Club",
}

DESKTOP_COLUMN_CHOICES: set[int] = {2, 3, 4, 5, 6}
MOBILE_COLUMN_CHOICES: set[int] = {1, 2}

DEFAULT_ITEM_LIMIT = 4
DEFAULT_COLLECTION_LIMIT = 8

_INT_RE = re.compile(r"-?[0-9]{1,18}")


# ---------------------------------------------------------------------------
# Settings coercion
# ---------------------------------------------------------------------------


def _int(bag: dict[str, Any], key: str, default: int | None, allowed: set[int] | None = None) -> int | None:
    value = bag.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return default
    if allowed is not None and value not in allowed:
        return default
    return value


def _bool(bag: dict[str, Any], key: str, default: bool) -> bool:
    value = bag.get(key)
    if isinstance(value, bool):
        return value
    if value in ("true", "false"):
        return value == "true"
    return default


def _str(bag: dict[str, Any], key: str, default: str) -> str:
    value = bag.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return default


def _optional_str(bag: dict[str, Any], key: str) -> str | None:
    value = bag.get(key)
    if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip():
        return str(value)
    return None


# ---------------------------------------------------------------------------
# Settings dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoxSettings:
    """Visual frame shared by every section."""

    padding_top: int = 64
    padding_bottom: int = 64
    background_color: str = "#ffffff"
    text_color: str = "#111827"
    title_size: int = 30
    subtitle: str = ""

    @classmethod
    def from_bag(cls, bag: dict[str, Any]) -> BoxSettings:
        return cls(
            padding_top=_int(bag, "paddingTop", cls.padding_top),
            padding_bottom=_int(bag, "paddingBottom", cls.padding_bottom),
            background_color=_str(bag, "backgroundColor", cls.background_color),
            text_color=_str(bag, "textColor", cls.text_color),
            title_size=_int(bag, "titleSize", cls.title_size),
            subtitle=_str(bag, "subtitle", cls.subtitle),
        )


@dataclass(frozen=True)
class ItemSettings:
    """Collections, NewArrivals, BestSellers."""

    box: BoxSettings = field(default_factory=BoxSettings)
    is_slider: bool = False
    desktop_columns: int = 4
    mobile_columns: int = 2
    item_width: int = 280
    gap: int = 24
    limit: int | None = DEFAULT_ITEM_LIMIT
    collection_id: str | None = None
    sort_by: str = "manual"

    @classmethod
    def from_bag(cls, bag: dict[str, Any], section_type: SectionType) -> ItemSettings:
        collection_id = _optional_str(bag, "collectionId")
        default_limit = DEFAULT_ITEM_LIMIT
        if section_type == SectionType.COLLECTIONS and collection_id is None:
            default_limit = DEFAULT_COLLECTION_LIMIT
        limit = _int(bag, "limit", default_limit)
        if limit is not None and limit < 1:
            limit = default_limit
        sort_by = bag.get("sortBy")
        if sort_by not in SORT_VALUES:
            sort_by = DEFAULT_SORT.get(section_type, "manual")
        return cls(
            box=BoxSettings.from_bag(bag),
            is_slider=_bool(bag, "isSlider", cls.is_slider),
            desktop_columns=_int(bag, "desktopColumns", cls.desktop_columns, DESKTOP_COLUMN_CHOICES),
            mobile_columns=_int(bag, "mobileColumns", cls.mobile_columns, MOBILE_COLUMN_CHOICES),
            item_width=_int(bag, "itemWidth", cls.item_width),
            gap=_int(bag, "gap", cls.gap),
            limit=limit,
            collection_id=collection_id,
            sort_by=sort_by,
        )


@dataclass(frozen=True)
class VideoSettings:
    box: BoxSettings = field(default_factory=BoxSettings)
    is_slider: bool = False
    desktop_columns: int = 4
    mobile_columns: int = 1
    item_width: int = 256
    gap: int = 16
    limit: int | None = None
    autoplay: bool = False

    @classmethod
    def from_bag(cls, bag: dict[str, Any]) -> VideoSettings:
        limit = _int(bag, "limit", cls.limit)
        if limit is not None and limit < 1:
            limit = None
        return cls(
            box=BoxSettings.from_bag(bag),
            is_slider=_bool(bag, "isSlider", cls.is_slider),
            desktop_columns=_int(bag, "desktopColumns", cls.desktop_columns, DESKTOP_COLUMN_CHOICES),
            mobile_columns=_int(bag, "mobileColumns", cls.mobile_columns, MOBILE_COLUMN_CHOICES),
            item_width=_int(bag, "itemWidth", cls.item_width),
            gap=_int(bag, "gap", cls.gap),
            limit=limit,
            autoplay=_bool(bag, "autoplay", cls.autoplay),
        )


@dataclass(frozen=True)
class HeroSettings:
    box: BoxSettings = field(default_factory=lambda: BoxSettings(padding_top=0, padding_bottom=0))
    interval: int = 5000  # ms
    height: int = 600
    show_arrows: bool = True

    @classmethod
    def from_bag(cls, bag: dict[str, Any]) -> HeroSettings:
        interval = _int(bag, "interval", cls.interval)
        if interval is None or interval < 1000:
            interval = cls.interval
        return cls(
            box=BoxSettings(
                padding_top=_int(bag, "paddingTop", 0),
                padding_bottom=_int(bag, "paddingBottom", 0),
                background_color=_str(bag, "backgroundColor", "#1f2937"),
                text_color=_str(bag, "textColor", "#ffffff"),
            ),
            interval=interval,
            height=_int(bag, "height", cls.height),
            show_arrows=_bool(bag, "showArrows", cls.show_arrows),
        )


@dataclass(frozen=True)
class NewsletterSettings:
    box: BoxSettings = field(default_factory=BoxSettings)
    title: str = "Join the Club"
    button_text: str = "Subscribe"
    placeholder: str = "Enter your email address"

    @classmethod
    def from_bag(cls, bag: dict[str, Any]) -> NewsletterSettings:
        return cls(
            box=BoxSettings(
                padding_top=_int(bag, "paddingTop", 80),
                padding_bottom=_int(bag, "paddingBottom", 80),
                background_color=_str(bag, "backgroundColor", "#111827"),
                text_color=_str(bag, "textColor", "#ffffff"),
                title_size=_int(bag, "titleSize", 36),
                subtitle=_str(bag, "subtitle", "Subscribe to our newsletter and get 10% off your first purchase."),
            ),
            title=_str(bag, "title", cls.title),
            button_text=_str(bag, "buttonText", cls.button_text),
            placeholder=_str(bag, "placeholder", cls.placeholder),
        )


@dataclass(frozen=True)
class CustomCodeSettings:
    box: BoxSettings = field(default_factory=lambda: BoxSettings(padding_top=0, padding_bottom=0))

    @classmethod
    def from_bag(cls, bag: dict[str, Any]) -> CustomCodeSettings:
        return cls(
            box=BoxSettings(
                padding_top=_int(bag, "paddingTop", 0),
                padding_bottom=_int(bag, "paddingBottom", 0),
                background_color=_str(bag, "backgroundColor", "transparent"),
                text_color=_str(bag, "textColor", "inherit"),
            )
        )


SectionSettings = ItemSettings | VideoSettings | HeroSettings | NewsletterSettings | CustomCodeSettings


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SectionConfig:
    """One configured, orderable block of the composed page."""

    id: str
    type: SectionType
    is_active: bool = True
    settings: dict[str, Any] = field(default_factory=dict)
    code: str | None = None
    title: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SectionConfig:
        if not isinstance(d, dict):
            raise ValueError("Section must be an object")
        section_id = d.get("id")
        if not isinstance(section_id, str) or not section_id:
            raise ValueError("Section requires a non-empty string 'id'")
        try:
            section_type = SectionType(d.get("type"))
        except ValueError:
            raise ValueError(f"Unknown section type: {d.get('type')!r}") from None
        settings = d.get("settings")
        code = d.get("code")
        title = d.get("title")
        return cls(
            id=section_id,
            type=section_type,
            is_active=d.get("isActive", True) is not False,
            settings=settings if isinstance(settings, dict) else {},
            code=code if isinstance(code, str) else None,
            title=title if isinstance(title, str) and title else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "isActive": self.is_active,
            "settings": self.settings,
        }
        if self.code is not None:
            d["code"] = self.code
        if self.title is not None:
            d["title"] = self.title
        return d


def parse_layout(doc: Any) -> list[SectionConfig]:
    """
    Parse a layout document into section configs, preserving order.

    Accepts `{"sections": [...]}` or a bare list. Entries that cannot be
    parsed are skipped with a warning; the rest of the page still renders.
    """
    raw_sections = doc.get("sections") if isinstance(doc, dict) else doc
    if not isinstance(raw_sections, list):
        logger.warning("parse_layout: layout has no section list")
        return []

    sections: list[SectionConfig] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_sections):
        try:
            section = SectionConfig.from_dict(raw)
        except ValueError as e:
            logger.warning("parse_layout: skipping section %d: %s", index, e)
            continue
        if section.id in seen:
            logger.warning("parse_layout: skipping duplicate section id %s", section.id)
            continue
        seen.add(section.id)
        sections.append(section)
    return sections


def settings_for(section: SectionConfig) -> SectionSettings:
    """Build the typed settings for a section. Called once per resolve."""
    bag = section.settings
    if section.type in ITEM_SECTION_TYPES:
        return ItemSettings.from_bag(bag, section.type)
    if section.type == SectionType.VIDEOS:
        return VideoSettings.from_bag(bag)
    if section.type == SectionType.HERO:
        return HeroSettings.from_bag(bag)
    if section.type == SectionType.NEWSLETTER:
        return NewsletterSettings.from_bag(bag)
    return CustomCodeSettings.from_bag(bag)


# ---------------------------------------------------------------------------
# Content sources and resolved items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Sources:
    """Already-fetched content collections. Read-only to the composer."""

    products: tuple[dict[str, Any], ...] = ()
    collections: tuple[dict[str, Any], ...] = ()
    slides: tuple[dict[str, Any], ...] = ()
    videos: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Sources:
        def records(key: str) -> tuple[dict[str, Any], ...]:
            value = d.get(key) or []
            return tuple(r for r in value if isinstance(r, dict))

        return cls(
            products=records("products"),
            collections=records("collections"),
            slides=records("slides"),
            videos=records("videos"),
        )


def record_id(record: dict[str, Any]) -> str:
    """Source id of a record (`id`, else Mongo-style `_id`)."""
    value = record.get("id", record.get("_id", ""))
    return "" if value is None else str(value)


@dataclass(frozen=True)
class DisplayItem:
    """A resolved, render-ready product, collection, video or slide."""

    kind: str  # "product" | "collection" | "video" | "slide"
    id: str
    record: dict[str, Any]

    @classmethod
    def of(cls, kind: str, record: dict[str, Any]) -> DisplayItem:
        return cls(kind=kind, id=record_id(record), record=record)


# ---------------------------------------------------------------------------
# Render output
# ---------------------------------------------------------------------------

ERROR_MESSAGE = "Invalid JSON in custom code block"


@dataclass
class UINode:
    """
    One element of a render tree.

    `kind` is the primitive name (or `fragment` / `generic` / `widget` /
    `error`); `tag` is the HTML element used when the tree is mounted.
    Children are nodes or already-substituted text.
    """

    kind: str
    tag: str
    props: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    children: list[UINode | str] = field(default_factory=list)
    widget: Any = None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    def text(self) -> str:
        """Concatenated text content of the subtree."""
        parts = []
        for child in self.children:
            parts.append(child if isinstance(child, str) else child.text())
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind,
            "tag": self.tag,
            "props": self.props,
            "style": self.style,
            "children": [c if isinstance(c, str) else c.to_dict() for c in self.children],
        }
        if self.widget is not None:
            d["widget"] = self.widget.to_dict()
        return d


def error_node() -> UINode:
    """The fixed inline error shown for an unparseable custom-code block."""
    return UINode(
        kind="error",
        tag="div",
        props={"className": "custom-code-error", "role": "alert"},
        children=[ERROR_MESSAGE],
    )


@dataclass
class RenderOptions:
    """Options controlling what the page renderer includes in output."""

    title: str = "Storefront"
    description: str = ""
    base_url: str = "http://localhost:8000"
    currency: str = "₹"
    include_fonts: bool = True
    footer: str | None = None
