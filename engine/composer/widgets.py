"""
Storefront Composer — Embedded Widget Registry

Named composite widgets a custom-code document may instantiate in place
of a primitive. Each widget owns its ephemeral state and its scoped CSS.

Design tokens cascade from the broadest breakpoint down:
  desktop → built-in defaults
  tablet  → desktop's resolved value
  mobile  → tablet's resolved value
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

# ---------------------------------------------------------------------------
# Design tokens
# ---------------------------------------------------------------------------

BREAKPOINTS: list[tuple[str, int | None]] = [
    ("desktop", None),
    ("tablet", 1024),
    ("mobile", 768),
]

RADIUS_VALUES: dict[str, str] = {
    "none": "0px",
    "sm": "0.125rem",
    "md": "0.375rem",
    "lg": "0.5rem",
    "full": "2rem",
}

SHADOW_VALUES: dict[str, str] = {
    "none": "none",
    "sm": "0 1px 2px 0 rgb(0 0 0 / 0.05)",
    "md": "0 4px 6px -1px rgb(0 0 0 / 0.1)",
    "lg": "0 10px 15px -3px rgb(0 0 0 / 0.1)",
}

# wire key → DesignTokens attribute
_TOKEN_KEYS: dict[str, str] = {
    "backgroundColor": "background_color",
    "textColor": "text_color",
    "borderColor": "border_color",
    "radius": "radius",
    "shadow": "shadow",
    "padding": "padding",
}


@dataclass(frozen=True)
class DesignTokens:
    background_color: str = "#ffffff"
    text_color: str = "#111827"
    border_color: str = "#e5e7eb"
    radius: str = "md"
    shadow: str = "md"
    padding: int = 24

    def css(self) -> str:
        rules = [
            f"background-color: {self.background_color};",
            f"color: {self.text_color};",
            f"--text-color: {self.text_color};",
            f"border-color: {self.border_color};",
            f"border-radius: {RADIUS_VALUES.get(self.radius, RADIUS_VALUES['md'])};",
            f"box-shadow: {SHADOW_VALUES.get(self.shadow, SHADOW_VALUES['md'])};",
            f"padding: {self.padding}px;",
        ]
        return " ".join(rules)


DEFAULT_DESIGN = DesignTokens()


def _overrides(raw: Any) -> dict[str, Any]:
    """Token overrides set at one breakpoint. Unset values are skipped."""
    if not isinstance(raw, dict):
        return {}
    overrides: dict[str, Any] = {}
    for wire_key, attr in _TOKEN_KEYS.items():
        value = raw.get(wire_key)
        if value is None or value == "":
            continue
        if attr == "padding":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            if (isinstance(value, float) and not math.isfinite(value)) or value < 0:
                continue
            value = int(value)
        elif attr == "radius":
            if value not in RADIUS_VALUES:
                continue
        elif attr == "shadow":
            if value not in SHADOW_VALUES:
                continue
        elif not isinstance(value, str) or any(ch in value for ch in ";{}<>"):
            continue
        overrides[attr] = value
    return overrides


def resolve_design(design: Any) -> dict[str, DesignTokens]:
    """Resolve each breakpoint's tokens from the design payload."""
    design = design if isinstance(design, dict) else {}
    resolved: dict[str, DesignTokens] = {}
    inherited = DEFAULT_DESIGN
    for name, _width in BREAKPOINTS:
        inherited = replace(inherited, **_overrides(design.get(name)))
        resolved[name] = inherited
    return resolved


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------


class Clipboard(Protocol):
    def write_text(self, text: str) -> None: ...


def _text(content: dict[str, Any], key: str) -> str:
    value = content.get(key)
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


@dataclass
class CouponWidget:
    """Coupon-code card with a copy-to-clipboard action."""

    key = "coupon"

    scope: str
    code: str = ""
    discount: str = ""
    description: str = ""
    expiry: str = ""
    design: dict[str, DesignTokens] = field(default_factory=lambda: resolve_design({}))
    copied: bool = field(default=False, compare=False)

    @classmethod
    def from_payload(cls, content: Any, design: Any, scope: str) -> CouponWidget:
        content = content if isinstance(content, dict) else {}
        return cls(
            scope=scope,
            code=_text(content, "code"),
            discount=_text(content, "discount"),
            description=_text(content, "description"),
            expiry=_text(content, "expiry"),
            design=resolve_design(design),
        )

    @property
    def scoped_class(self) -> str:
        return f"coupon-{self.scope}"

    @property
    def headline(self) -> str:
        return self.discount or "Special Offer"

    @property
    def expiry_label(self) -> str:
        return f"Valid until {self.expiry}" if self.expiry else ""

    def copy_code(self, clipboard: Clipboard) -> bool:
        """Copy the code and acknowledge. Returns False when there is no code."""
        if not self.code:
            return False
        clipboard.write_text(self.code)
        self.copied = True
        return True

    def reset(self) -> None:
        self.copied = False

    def css(self) -> str:
        """Scoped stylesheet: one rule per breakpoint, desktop first."""
        selector = f".{self.scoped_class} .coupon-card"
        lines = []
        for name, max_width in BREAKPOINTS:
            rule = f"{selector} {{ {self.design[name].css()} }}"
            if max_width is None:
                lines.append(rule)
            else:
                lines.append(f"@media (max-width: {max_width}px) {{ {rule} }}")
        lines.append(f".{self.scoped_class} .coupon-text {{ color: var(--text-color, inherit); }}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "scope": self.scope,
            "code": self.code,
            "discount": self.discount,
            "description": self.description,
            "expiry": self.expiry,
            "copied": self.copied,
        }


WIDGETS: dict[str, Any] = {
    CouponWidget.key: CouponWidget.from_payload,
}


def create_widget(key: str, content: Any, design: Any, scope: str) -> CouponWidget | None:
    """Instantiate a registered widget, or None for an unknown key."""
    factory = WIDGETS.get(key)
    if factory is None:
        return None
    return factory(content, design, scope)
