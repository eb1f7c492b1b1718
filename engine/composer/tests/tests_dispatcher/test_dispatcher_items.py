"""
Section Dispatcher -- Item Section Tests

Collections, NewArrivals and BestSellers resolve to an ordered, limited
item list plus a layout plan. A section with nothing to show resolves to
None so it reserves no space.

Ordering:
  NewArrivals  — creation time, newest first, stable on ties
  BestSellers  — review count, highest first, stable on ties
  Collections  — stored order
"""

import pytest

from engine.composer.dispatcher import resolve
from engine.composer.types import SectionConfig, SectionType, Sources

# ============================================================================
# Helpers
# ============================================================================


def section(section_type, settings=None, section_id="s1", **extra):
    return SectionConfig.from_dict(
        {"id": section_id, "type": section_type, "settings": settings or {}, **extra}
    )


def products(n, **fields):
    return [{"id": f"p{i}", "name": f"Product {i}", **fields} for i in range(1, n + 1)]


def ids(renderable):
    return [item.id for item in renderable.items]


# ============================================================================
# Grid scenario
# ============================================================================


class TestGridScenario:
    def test_ten_products_default_limit_grid(self):
        """isSlider false, 4/2 columns, 10 products, no limit → first 4 in a grid."""
        sources = Sources(products=tuple(products(10)))
        config = section(
            "NewArrivals",
            {"isSlider": False, "desktopColumns": 4, "mobileColumns": 2},
        )
        renderable = resolve(config, sources)

        assert ids(renderable) == ["p1", "p2", "p3", "p4"]
        assert renderable.layout.mode == "grid"
        assert not renderable.layout.is_slider
        assert renderable.layout.desktop_columns == 4
        assert renderable.layout.mobile_columns == 2

    def test_slider_mode(self):
        sources = Sources(products=tuple(products(6)))
        renderable = resolve(section("BestSellers", {"isSlider": True, "limit": 6}), sources)
        assert renderable.layout.is_slider
        assert renderable.layout.item_count == 6

    def test_explicit_limit(self):
        sources = Sources(products=tuple(products(10)))
        renderable = resolve(section("NewArrivals", {"limit": 7}), sources)
        assert len(renderable.items) == 7

    def test_string_limit_is_coerced(self):
        sources = Sources(products=tuple(products(10)))
        renderable = resolve(section("NewArrivals", {"limit": "6"}), sources)
        assert len(renderable.items) == 6

    def test_fewer_products_than_limit(self):
        sources = Sources(products=tuple(products(2)))
        renderable = resolve(section("NewArrivals"), sources)
        assert ids(renderable) == ["p1", "p2"]

    def test_no_products_resolves_to_none(self):
        assert resolve(section("NewArrivals"), Sources()) is None
        assert resolve(section("BestSellers"), Sources()) is None

    def test_default_titles(self):
        sources = Sources(products=tuple(products(1)))
        assert resolve(section("NewArrivals"), sources).title == "New Arrivals"
        assert resolve(section("BestSellers"), sources).title == "Best Sellers"
        assert resolve(section("NewArrivals", title="Fresh In"), sources).title == "Fresh In"


# ============================================================================
# Ordering
# ============================================================================


class TestNewestOrdering:
    def test_newest_first(self):
        sources = Sources(
            products=(
                {"id": "old", "createdAt": "2024-01-01T00:00:00Z"},
                {"id": "new", "createdAt": "2024-06-01T00:00:00Z"},
                {"id": "mid", "createdAt": "2024-03-01T00:00:00Z"},
            )
        )
        assert ids(resolve(section("NewArrivals"), sources)) == ["new", "mid", "old"]

    def test_ties_keep_source_order(self):
        stamp = "2024-05-05T10:00:00Z"
        sources = Sources(
            products=(
                {"id": "a", "createdAt": stamp},
                {"id": "b", "createdAt": "2024-05-06T10:00:00Z"},
                {"id": "c", "createdAt": stamp},
                {"id": "d", "createdAt": stamp},
            )
        )
        assert ids(resolve(section("NewArrivals", {"limit": 10}), sources)) == ["b", "a", "c", "d"]

    def test_order_is_non_increasing(self):
        stamps = [1_700_000_000_000, 1_600_000_000_000, 1_750_000_000_000, 1_600_000_000_000, 1_650_000_000_000]
        sources = Sources(products=tuple({"id": f"p{i}", "createdAt": s} for i, s in enumerate(stamps)))
        renderable = resolve(section("NewArrivals", {"limit": 10}), sources)
        resolved = [item.record["createdAt"] for item in renderable.items]
        assert resolved == sorted(stamps, reverse=True)
        assert ids(renderable)[-2:] == ["p1", "p3"]

    def test_epoch_millis_and_iso_compare(self):
        sources = Sources(
            products=(
                {"id": "iso", "createdAt": "2024-01-01T00:00:00+00:00"},
                {"id": "millis", "createdAt": 1_717_200_000_000},  # 2024-06-01
            )
        )
        assert ids(resolve(section("NewArrivals"), sources)) == ["millis", "iso"]

    def test_naive_timestamps_compare_with_aware(self):
        sources = Sources(
            products=(
                {"id": "naive", "createdAt": "2024-01-01T00:00:00"},
                {"id": "aware", "createdAt": "2024-02-01T00:00:00Z"},
            )
        )
        assert ids(resolve(section("NewArrivals"), sources)) == ["aware", "naive"]

    def test_missing_timestamps_sort_last(self):
        sources = Sources(
            products=(
                {"id": "none"},
                {"id": "bad", "createdAt": "not a date"},
                {"id": "dated", "createdAt": "2023-01-01T00:00:00Z"},
            )
        )
        assert ids(resolve(section("NewArrivals"), sources)) == ["dated", "none", "bad"]


class TestBestSellingOrdering:
    def test_most_reviewed_first(self):
        sources = Sources(
            products=(
                {"id": "a", "reviewCount": 3},
                {"id": "b", "reviews": [{}, {}, {}, {}, {}]},
                {"id": "c"},
                {"id": "d", "reviewCount": 3},
            )
        )
        assert ids(resolve(section("BestSellers"), sources)) == ["b", "a", "d", "c"]

    def test_sort_override(self):
        sources = Sources(
            products=(
                {"id": "a", "reviewCount": 1, "createdAt": "2024-02-01T00:00:00Z"},
                {"id": "b", "reviewCount": 9, "createdAt": "2024-01-01T00:00:00Z"},
            )
        )
        renderable = resolve(section("NewArrivals", {"sortBy": "best_selling"}), sources)
        assert ids(renderable) == ["b", "a"]

    def test_manual_keeps_source_order(self):
        sources = Sources(products=({"id": "a", "reviewCount": 1}, {"id": "b", "reviewCount": 9}))
        assert ids(resolve(section("BestSellers", {"sortBy": "manual"}), sources)) == ["a", "b"]


# ============================================================================
# Collections
# ============================================================================


class TestCollections:
    def make_sources(self):
        return Sources(
            products=tuple(products(6)),
            collections=(
                {"id": "c1", "slug": "summer", "title": "Summer", "products": ["p5", "p2", "missing"]},
                {"id": "c2", "slug": "winter", "title": "Winter", "products": []},
                {"id": "c3", "slug": "archive", "title": "Archive", "isActive": False},
                {"_id": "c4", "slug": "gifts", "title": "Gifts", "products": [{"id": "x1", "name": "Inline"}]},
            ),
        )

    def test_untargeted_lists_active_collections(self):
        renderable = resolve(section("Collections"), self.make_sources())
        assert [item.kind for item in renderable.items] == ["collection"] * 3
        assert ids(renderable) == ["c1", "c2", "c4"]
        assert renderable.settings.limit == 8
        assert renderable.title == "Curated Collections"

    def test_targeted_collection_lists_members_in_order(self):
        renderable = resolve(section("Collections", {"collectionId": "c1"}), self.make_sources())
        assert [item.kind for item in renderable.items] == ["product", "product"]
        assert ids(renderable) == ["p5", "p2"]

    def test_target_by_slug(self):
        renderable = resolve(section("Collections", {"collectionId": "summer"}), self.make_sources())
        assert ids(renderable) == ["p5", "p2"]

    def test_target_by_mongo_id_with_embedded_products(self):
        renderable = resolve(section("Collections", {"collectionId": "c4"}), self.make_sources())
        assert ids(renderable) == ["x1"]

    def test_empty_target_falls_back_to_listing(self):
        renderable = resolve(section("Collections", {"collectionId": "c2"}), self.make_sources())
        assert renderable.items[0].kind == "collection"
        assert renderable.settings.limit == 4

    def test_new_arrivals_scoped_to_collection(self):
        renderable = resolve(section("NewArrivals", {"collectionId": "c1"}), self.make_sources())
        assert ids(renderable) == ["p5", "p2"]

    def test_missing_target_uses_all_products(self):
        renderable = resolve(section("BestSellers", {"collectionId": "nope"}), self.make_sources())
        assert ids(renderable) == ["p1", "p2", "p3", "p4"]

    def test_no_collections_and_no_products(self):
        assert resolve(section("Collections"), Sources()) is None


# ============================================================================
# Settings
# ============================================================================


class TestItemSettings:
    def test_out_of_range_columns_use_defaults(self):
        sources = Sources(products=tuple(products(4)))
        renderable = resolve(section("BestSellers", {"desktopColumns": 9, "mobileColumns": 3}), sources)
        assert renderable.layout.desktop_columns == 4
        assert renderable.layout.mobile_columns == 2

    def test_string_booleans(self):
        sources = Sources(products=tuple(products(4)))
        renderable = resolve(section("BestSellers", {"isSlider": "true"}), sources)
        assert renderable.layout.is_slider

    def test_zero_padding_is_kept(self):
        sources = Sources(products=tuple(products(1)))
        renderable = resolve(section("BestSellers", {"paddingTop": 0}), sources)
        assert renderable.settings.box.padding_top == 0
        assert renderable.settings.box.padding_bottom == 64

    def test_sources_are_not_mutated(self):
        records = products(5)
        sources = Sources(products=tuple(records))
        resolve(section("NewArrivals", {"limit": 2}), sources)
        assert [p["id"] for p in sources.products] == ["p1", "p2", "p3", "p4", "p5"]
        assert all(set(p) == {"id", "name"} for p in records)

    def test_section_type_is_enum(self):
        renderable = resolve(section("NewArrivals"), Sources(products=tuple(products(1))))
        assert renderable.type is SectionType.NEW_ARRIVALS
        assert renderable.id == "s1"


# ============================================================================
# Untrusted values
# ============================================================================


class TestUntrustedValues:
    @pytest.mark.parametrize("limit", ["²", "٣", "--5", "5-", "1" * 40, "", "  ", "4.5"])
    def test_malformed_limit_uses_default(self, limit):
        sources = Sources(products=tuple(products(10)))
        renderable = resolve(section("NewArrivals", {"limit": limit}), sources)
        assert len(renderable.items) == 4

    def test_numeric_string_limit(self):
        sources = Sources(products=tuple(products(10)))
        renderable = resolve(section("NewArrivals", {"limit": " 6 "}), sources)
        assert len(renderable.items) == 6

    def test_malformed_numbers_in_other_settings(self):
        sources = Sources(products=tuple(products(2)))
        renderable = resolve(section("BestSellers", {"gap": "¹²", "paddingTop": "--1"}), sources)
        assert renderable.settings.box.padding_top == 64

    def test_non_finite_and_huge_timestamps_sort_last(self):
        sources = Sources(
            products=(
                {"id": "nan", "createdAt": float("nan")},
                {"id": "huge", "createdAt": 10**400},
                {"id": "real", "createdAt": 1717200000000},
            )
        )
        assert ids(resolve(section("NewArrivals"), sources)) == ["real", "nan", "huge"]
