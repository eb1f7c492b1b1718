"""
Storefront Composer — HTML Mounting

Pure function: (sections, sources, options) → HTML string
No IO. Deterministic: same input → same output, always.

- render_page: full HTML document for a composed layout
- render_section: one resolved section as a self-contained <section>
- node_to_html: serialize an interpreter tree (escaping all text and attributes)

Cards (product, collection, video, slide, coupon) are Mustache templates
rendered with chevron, which HTML-escapes every value.

The markup is static. Sliders and hero carousels carry their behaviour as
data attributes (`data-drag-gain`, `data-scroll`, `data-slide`,
`data-interval`) for the client shell to drive; the drag and rotation
rules it follows are modelled by SliderController and SlideRotation in
layout.py.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from html import escape as _html_escape
from typing import Any

import chevron

from engine.composer.dispatcher import RenderableSection, compose
from engine.composer.formatting import discount_percent, format_price
from engine.composer.interpreter import VOID_TAGS, is_blocked_prop, is_blocked_style
from engine.composer.layout import DRAG_GAIN
from engine.composer.types import (
    BoxSettings,
    DisplayItem,
    HeroSettings,
    NewsletterSettings,
    RenderOptions,
    SectionConfig,
    SectionType,
    Sources,
    UINode,
    VideoSettings,
)
from engine.composer.widgets import CouponWidget

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_page(
    sections: Iterable[SectionConfig],
    sources: Sources,
    options: RenderOptions | None = None,
    *,
    product: dict[str, Any] | None = None,
    related_products: Iterable[dict[str, Any]] = (),
    cross_sell_products: Iterable[dict[str, Any]] = (),
) -> str:
    """
    Render a complete HTML document from a layout and its sources.
    Returns a UTF-8 HTML string.
    Pure function. No side effects. No IO.
    """
    opts = options or RenderOptions()
    resolved = compose(
        sections,
        sources,
        product=product,
        related_products=related_products,
        cross_sell_products=cross_sell_products,
        currency=opts.currency,
    )

    parts: list[str] = []
    parts.append("<!DOCTYPE html>")
    parts.append('<html lang="en">')
    parts.append("<head>")
    parts.append('  <meta charset="utf-8">')
    parts.append('  <meta name="viewport" content="width=device-width, initial-scale=1">')
    parts.append(f"  <title>{escape(opts.title)}</title>")
    if opts.description:
        parts.append(f'  <meta name="description" content="{escape(opts.description)}">')
    parts.append(f'  <meta property="og:title" content="{escape(opts.title)}">')
    parts.append(f'  <meta property="og:url" content="{escape(opts.base_url)}">')

    if opts.include_fonts:
        parts.append('  <link rel="preconnect" href="https://fonts.googleapis.com">')
        parts.append('  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>')
        parts.append(
            '  <link href="https://fonts.googleapis.com/css2?'
            "family=Playfair+Display:wght@600;700"
            '&family=Inter:wght@400;500;600&display=swap" rel="stylesheet">'
        )

    parts.append("  <style>")
    parts.append(BASE_CSS.strip())
    parts.append("  </style>")
    parts.append("</head>")
    parts.append("<body>")
    parts.append('  <main class="sf-page">')

    if resolved:
        for renderable in resolved:
            parts.append(render_section(renderable, opts))
    else:
        parts.append('    <p class="sf-empty">This page is empty.</p>')

    parts.append("  </main>")
    if opts.footer:
        parts.append(f'  <footer class="sf-footer">{escape(opts.footer)}</footer>')
    parts.append("</body>")
    parts.append("</html>")

    return "\n".join(parts)


def render_section(renderable: RenderableSection, options: RenderOptions | None = None) -> str:
    """
    Render one resolved section and its scoped styles.
    Returns an HTML fragment string.
    Pure function. No side effects. No IO.
    """
    opts = options or RenderOptions()
    renderer = _SECTION_RENDERERS[renderable.type]
    ident = section_dom_id(renderable.id)
    css = [_box_css(f"#{ident}", renderable.settings.box)]
    body = renderer(renderable, opts, css)

    return (
        f'<section id="{ident}" class="sf-section sf-{renderable.type.value.lower()}" '
        f'data-section-type="{renderable.type.value}">'
        f"<style>{' '.join(c for c in css if c)}</style>"
        f"{body}</section>"
    )


def node_to_html(node: UINode | str | None) -> str:
    """Serialize an interpreter tree. All text and attribute values are escaped."""
    if node is None:
        return ""
    if isinstance(node, str):
        return escape(node)
    if node.kind == "fragment":
        return "".join(node_to_html(c) for c in node.children)
    if node.kind == "widget":
        return widget_to_html(node.widget)

    attrs = _attributes(node.props, node.style)
    if node.tag in VOID_TAGS:
        return f"<{node.tag}{attrs}>"
    inner = "".join(node_to_html(c) for c in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"


def widget_to_html(widget: Any) -> str:
    if isinstance(widget, CouponWidget):
        data = {
            "scoped_class": widget.scoped_class,
            "css": widget.css(),
            "headline": widget.headline,
            "description": widget.description,
            "has_description": bool(widget.description),
            "code": widget.code,
            "expiry_label": widget.expiry_label,
            "has_expiry": bool(widget.expiry_label),
            "copied": widget.copied,
        }
        return chevron.render(COUPON_TEMPLATE, data)
    return ""


def section_dom_id(section_id: str) -> str:
    return "sec-" + _IDENT_RE.sub("-", section_id)


def escape(text: str) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

BASE_CSS = """
*, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }
body {
  font-family: Inter, system-ui, sans-serif;
  background: #ffffff;
  color: #111827;
  line-height: 1.5;
}
img { max-width: 100%; display: block; }
a { color: inherit; text-decoration: none; }
.sf-empty { color: #888; font-style: italic; padding: 48px 24px; text-align: center; }
.sf-inner { max-width: 1280px; margin: 0 auto; padding: 0 16px; }
.sf-heading { text-align: center; margin-bottom: 32px; }
.sf-heading h2 { font-family: "Playfair Display", serif; font-weight: 700; }
.sf-heading p { opacity: 0.7; margin-top: 4px; }
.sf-card { display: block; border-radius: 12px; overflow: hidden; }
.sf-card-media { position: relative; aspect-ratio: 3 / 4; background: #f3f4f6; }
.sf-card-media img, .sf-card-media video { width: 100%; height: 100%; object-fit: cover; }
.sf-card-body { padding: 12px 4px; }
.sf-card-title { font-size: 15px; font-weight: 600; }
.sf-price { font-weight: 800; margin-top: 4px; }
.sf-mrp { font-weight: 400; opacity: 0.5; margin-left: 6px; }
.sf-badge {
  position: absolute; top: 8px; left: 8px; padding: 2px 8px;
  border-radius: 9999px; background: #e11d48; color: #fff; font-size: 12px; font-weight: 700;
}
.sf-slider { position: relative; }
.sf-arrow {
  position: absolute; top: 50%; transform: translateY(-50%); z-index: 10;
  width: 40px; height: 40px; border-radius: 9999px; border: 1px solid #e5e7eb; background: #fff;
}
.sf-arrow-prev { left: -8px; }
.sf-arrow-next { right: -8px; }
.sf-hero-track { position: relative; overflow: hidden; }
.sf-slide { position: absolute; inset: 0; opacity: 0; transition: opacity 1s ease-in-out; }
.sf-slide.is-active { opacity: 1; }
.sf-slide img { width: 100%; height: 100%; object-fit: cover; }
.sf-slide-copy {
  position: absolute; inset: 0; display: flex; flex-direction: column;
  align-items: center; justify-content: center; text-align: center; padding: 24px;
}
.sf-slide-copy h1 { font-family: "Playfair Display", serif; font-size: clamp(2rem, 5vw, 4.5rem); }
.sf-button { display: inline-block; margin-top: 24px; padding: 14px 32px; border-radius: 9999px; background: #e11d48; color: #fff; font-weight: 600; border: 0; }
.sf-newsletter-form { display: flex; gap: 12px; justify-content: center; max-width: 32rem; margin: 0 auto; }
.sf-newsletter-form input { flex: 1; padding: 14px 20px; border-radius: 6px; border: 0; }
.custom-code-error {
  border: 1px dashed #dc2626; background: #fef2f2; color: #b91c1c;
  padding: 12px 16px; font-family: monospace; font-size: 13px;
}
.coupon-card { max-width: 28rem; margin: 0 auto; border: 2px solid; text-align: center; }
.coupon-code { display: flex; align-items: center; justify-content: center; gap: 8px; margin: 16px 0; padding: 8px; border: 1px dashed rgba(0,0,0,0.1); }
.coupon-code code { font-size: 18px; font-weight: 700; letter-spacing: 0.05em; user-select: all; }
.sf-footer { padding: 24px; text-align: center; font-size: 12px; color: #9ca3af; }
"""

UNITLESS: set[str] = {
    "opacity",
    "zIndex",
    "fontWeight",
    "lineHeight",
    "flex",
    "flexGrow",
    "flexShrink",
    "order",
    "zoom",
    "gridColumn",
    "gridRow",
}

_IDENT_RE = re.compile(r"[^A-Za-z0-9_-]")
_ATTR_NAME_RE = re.compile(r"^[A-Za-z_:][-A-Za-z0-9_:.]*$")
_CSS_NAME_RE = re.compile(r"^-{0,2}[A-Za-z][-A-Za-z0-9]*$")
_ATTR_ALIASES: dict[str, str] = {"className": "class", "htmlFor": "for"}


def _css_value(value: Any, fallback: str = "") -> str:
    """A merchant-supplied CSS value, or `fallback` if it could break out of its declaration."""
    if isinstance(value, bool) or value is None:
        return fallback
    text = str(value)
    if any(ch in text for ch in ";{}<>\\") or is_blocked_style(text):
        return fallback
    return text


def _style_declarations(style: dict[str, Any]) -> str:
    declarations = []
    for name, value in style.items():
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            continue
        if not _CSS_NAME_RE.match(name):
            continue
        prop = name if name.startswith("--") else re.sub(r"([A-Z])", r"-\1", name).lower()
        if isinstance(value, (int, float)) and name not in UNITLESS:
            text = f"{value}px"
        else:
            text = _css_value(value)
        if text == "":
            continue
        declarations.append(f"{prop}: {text}")
    return "; ".join(declarations)


def _attributes(props: dict[str, Any], style: dict[str, Any]) -> str:
    parts = []
    for name, value in props.items():
        if name in ("style", "children") or is_blocked_prop(name, value):
            continue
        attr = _ATTR_ALIASES.get(name, name)
        if not _ATTR_NAME_RE.match(attr):
            continue
        if value is True:
            parts.append(f" {attr}")
        elif value is False or value is None:
            continue
        elif isinstance(value, (str, int, float)):
            parts.append(f' {attr}="{escape(value)}"')
    css = _style_declarations(style)
    if css:
        parts.append(f' style="{escape(css)}"')
    return "".join(parts)


def _box_css(selector: str, box: BoxSettings) -> str:
    return (
        f"{selector} {{ padding-top: {box.padding_top}px; padding-bottom: {box.padding_bottom}px; "
        f"background-color: {_css_value(box.background_color, '#ffffff')}; "
        f"color: {_css_value(box.text_color, 'inherit')}; }}"
        f" {selector} .sf-heading h2 {{ font-size: {box.title_size}px; }}"
    )


# ---------------------------------------------------------------------------
# Card templates
# ---------------------------------------------------------------------------

# Sections open on boolean has_* flags, never on string values.

PRODUCT_CARD_TEMPLATE = (
    '<a class="sf-card sf-product" href="/product/{{slug}}" data-id="{{id}}">'
    '<div class="sf-card-media">'
    '{{#has_image}}<img src="{{image}}" alt="{{name}}" loading="lazy">{{/has_image}}'
    '{{#has_discount}}<span class="sf-badge">{{discount}}% OFF</span>{{/has_discount}}'
    "</div>"
    '<div class="sf-card-body">'
    '<h3 class="sf-card-title">{{name}}</h3>'
    '<p class="sf-price">{{price}}{{#has_discount}}<s class="sf-mrp">{{mrp}}</s>{{/has_discount}}</p>'
    "</div></a>"
)

COLLECTION_CARD_TEMPLATE = (
    '<a class="sf-card sf-collection" href="/collections/{{slug}}" data-id="{{id}}">'
    '<div class="sf-card-media">'
    '{{#has_image}}<img src="{{image}}" alt="{{title}}" loading="lazy">{{/has_image}}'
    "</div>"
    '<div class="sf-card-body"><h3 class="sf-card-title">{{title}}</h3></div></a>'
)

VIDEO_CARD_TEMPLATE = (
    '<div class="sf-card sf-video" data-id="{{id}}">'
    '<div class="sf-card-media">'
    "{{#autoplay}}"
    '<video src="{{video}}" muted loop playsinline autoplay></video>'
    "{{/autoplay}}"
    "{{^autoplay}}"
    '{{#has_thumbnail}}<img src="{{thumbnail}}" alt="{{title}}" loading="lazy">{{/has_thumbnail}}'
    "{{/autoplay}}"
    "</div>"
    '<div class="sf-card-body"><h3 class="sf-card-title">{{title}}</h3>'
    '<p class="sf-price">{{price}}</p>'
    '{{#has_link}}<a class="sf-video-shop" href="{{link}}"{{#external}} target="_blank" rel="noopener"{{/external}}>Shop</a>{{/has_link}}'
    "</div></div>"
)

SLIDE_TEMPLATE = (
    '<div class="sf-slide{{#active}} is-active{{/active}}" data-index="{{index}}">'
    "<picture>"
    '{{#has_mobile_image}}<source media="(max-width: 768px)" srcset="{{mobile_image}}">{{/has_mobile_image}}'
    '<img src="{{image}}" alt="{{title}}">'
    "</picture>"
    '<div class="sf-slide-copy">'
    "{{#has_title}}<h1>{{title}}</h1>{{/has_title}}"
    "{{#has_subtitle}}<p>{{subtitle}}</p>{{/has_subtitle}}"
    '{{#has_button}}<a class="sf-button" href="{{link}}">{{button_text}}</a>{{/has_button}}'
    "</div></div>"
)

COUPON_TEMPLATE = (
    '<div class="{{scoped_class}}" data-widget="coupon">'
    "<style>{{{css}}}</style>"
    '<div class="coupon-card">'
    '<h3 class="coupon-text coupon-headline">{{headline}}</h3>'
    '{{#has_description}}<p class="coupon-text">{{description}}</p>{{/has_description}}'
    '<div class="coupon-code"><code class="coupon-text">{{code}}</code>'
    '<button type="button" class="coupon-copy" data-copy="{{code}}">'
    "{{#copied}}Copied{{/copied}}{{^copied}}Copy{{/copied}}</button>"
    "</div>"
    '{{#has_expiry}}<p class="coupon-text coupon-expiry">{{expiry_label}}</p>{{/has_expiry}}'
    "</div></div>"
)


def _safe_url(value: Any) -> str:
    if not isinstance(value, str) or is_blocked_prop("src", value):
        return ""
    return value


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value)


def _product_card(item: DisplayItem, opts: RenderOptions) -> str:
    record = item.record
    price = record.get("price")
    mrp = record.get("mrp")
    percent = discount_percent(price, mrp)
    image = _safe_url(record.get("imageUrl"))
    data = {
        "id": item.id,
        "slug": _text(record.get("slug")) or item.id,
        "name": _text(record.get("name")),
        "image": image,
        "has_image": bool(image),
        "price": format_price(price, opts.currency),
        "mrp": format_price(mrp, opts.currency),
        "discount": percent or 0,
        "has_discount": bool(percent),
    }
    return chevron.render(PRODUCT_CARD_TEMPLATE, data)


def _collection_card(item: DisplayItem, opts: RenderOptions) -> str:
    record = item.record
    image = _safe_url(record.get("imageUrl"))
    data = {
        "id": item.id,
        "slug": _text(record.get("slug")) or item.id,
        "title": _text(record.get("title")),
        "image": image,
        "has_image": bool(image),
    }
    return chevron.render(COLLECTION_CARD_TEMPLATE, data)


def _video_card(item: DisplayItem, opts: RenderOptions, autoplay: bool) -> str:
    record = item.record
    video_url = _safe_url(record.get("videoUrl"))
    thumbnail = _safe_url(record.get("thumbnailUrl"))
    if not thumbnail and video_url.endswith(".mp4"):
        thumbnail = video_url[: -len(".mp4")] + ".jpg"

    link = _text(record.get("productLink"))
    external = link.startswith("http")
    if link and not external:
        link = link if link.startswith("/") else f"/product/{link}"
    link = _safe_url(link)
    data = {
        "id": item.id,
        "title": _text(record.get("title")),
        "price": _text(record.get("price")),
        "video": video_url,
        "thumbnail": thumbnail,
        "has_thumbnail": bool(thumbnail),
        "autoplay": autoplay and bool(video_url),
        "link": link,
        "has_link": bool(link),
        "external": external,
    }
    return chevron.render(VIDEO_CARD_TEMPLATE, data)


def _slide(index: int, item: DisplayItem) -> str:
    record = item.record
    title = _text(record.get("title"))
    subtitle = _text(record.get("subtitle"))
    button_text = _text(record.get("buttonText"))
    mobile_image = _safe_url(record.get("mobileImageUrl"))
    data = {
        "index": index,
        "active": index == 0,
        "image": _safe_url(record.get("imageUrl")),
        "mobile_image": mobile_image,
        "has_mobile_image": bool(mobile_image),
        "title": title,
        "has_title": bool(title),
        "subtitle": subtitle,
        "has_subtitle": bool(subtitle),
        "button_text": button_text,
        "has_button": bool(button_text),
        "link": _safe_url(record.get("link")) or "#",
    }
    return chevron.render(SLIDE_TEMPLATE, data)


# ---------------------------------------------------------------------------
# Section renderers
# ---------------------------------------------------------------------------


def _heading(title: str, subtitle: str) -> str:
    if not title and not subtitle:
        return ""
    parts = ['<div class="sf-heading">']
    if title:
        parts.append(f"<h2>{escape(title)}</h2>")
    if subtitle:
        parts.append(f"<p>{escape(subtitle)}</p>")
    parts.append("</div>")
    return "".join(parts)


def _track(renderable: RenderableSection, cards: list[str], css: list[str]) -> str:
    """Grid or slider track around rendered cards."""
    plan = renderable.layout
    ident = section_dom_id(renderable.id)
    css.append(plan.css(f"#{ident} .sf-track"))
    items = "".join(f'<div class="sf-item">{card}</div>' for card in cards)

    if not plan.is_slider:
        return f'<div class="sf-track sf-grid">{items}</div>'

    return (
        f'<div class="sf-slider" data-drag-gain="{DRAG_GAIN:g}">'
        '<button type="button" class="sf-arrow sf-arrow-prev" data-scroll="prev" aria-label="Previous">&lsaquo;</button>'
        f'<div class="sf-track sf-slider-track">{items}</div>'
        '<button type="button" class="sf-arrow sf-arrow-next" data-scroll="next" aria-label="Next">&rsaquo;</button>'
        "</div>"
    )


def _render_hero(renderable: RenderableSection, opts: RenderOptions, css: list[str]) -> str:
    settings: HeroSettings = renderable.settings
    ident = section_dom_id(renderable.id)
    css.append(f"#{ident} .sf-hero-track {{ height: {settings.height}px; }}")
    mobile_height = max(settings.height * 2 // 3, 240)
    css.append(f"@media (max-width: 768px) {{ #{ident} .sf-hero-track {{ height: {mobile_height}px; }} }}")

    slides = [_slide(index, item) for index, item in enumerate(renderable.items)]

    rotating = len(slides) > 1
    attrs = f' data-slide-count="{len(slides)}"'
    if rotating:
        attrs += f' data-interval="{settings.interval}"'

    parts = [f'<div class="sf-hero-track"{attrs}>', "".join(slides)]
    if rotating and settings.show_arrows:
        parts.append('<button type="button" class="sf-arrow sf-arrow-prev" data-slide="prev" aria-label="Previous slide">&lsaquo;</button>')
        parts.append('<button type="button" class="sf-arrow sf-arrow-next" data-slide="next" aria-label="Next slide">&rsaquo;</button>')
    parts.append("</div>")
    return "".join(parts)


def _render_items(renderable: RenderableSection, opts: RenderOptions, css: list[str]) -> str:
    cards = []
    for item in renderable.items:
        if item.kind == "collection":
            cards.append(_collection_card(item, opts))
        else:
            cards.append(_product_card(item, opts))
    heading = _heading(renderable.title, renderable.settings.box.subtitle)
    return f'<div class="sf-inner">{heading}{_track(renderable, cards, css)}</div>'


def _render_videos(renderable: RenderableSection, opts: RenderOptions, css: list[str]) -> str:
    settings: VideoSettings = renderable.settings
    cards = [_video_card(item, opts, settings.autoplay) for item in renderable.items]
    heading = _heading(renderable.title, settings.box.subtitle)
    return f'<div class="sf-inner">{heading}{_track(renderable, cards, css)}</div>'


def _render_custom_code(renderable: RenderableSection, opts: RenderOptions, css: list[str]) -> str:
    heading = _heading(renderable.section.title or "", "")
    return f'<div class="custom-section-container">{heading}{node_to_html(renderable.tree)}</div>'


def _render_newsletter(renderable: RenderableSection, opts: RenderOptions, css: list[str]) -> str:
    settings: NewsletterSettings = renderable.settings
    return (
        '<div class="sf-inner">'
        f"{_heading(renderable.title, settings.box.subtitle)}"
        '<form class="sf-newsletter-form" method="post">'
        f'<input type="email" name="email" required placeholder="{escape(settings.placeholder)}">'
        f'<button type="submit" class="sf-button">{escape(settings.button_text)}</button>'
        "</form></div>"
    )


_SECTION_RENDERERS = {
    SectionType.HERO: _render_hero,
    SectionType.COLLECTIONS: _render_items,
    SectionType.NEW_ARRIVALS: _render_items,
    SectionType.BEST_SELLERS: _render_items,
    SectionType.VIDEOS: _render_videos,
    SectionType.CUSTOM_CODE: _render_custom_code,
    SectionType.NEWSLETTER: _render_newsletter,
}
