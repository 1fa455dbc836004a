"""Tests for the quote engine."""

from datetime import timedelta

import pytest

from clinic_backend.app.services.booking import normalize_selections, resolve_quote
from clinic_backend.app.services.booking.errors import InvalidServiceSelection
from clinic_backend.app.services.booking.quote import ServiceSelection, calculate_ml_total
from tests.factories import NOW, add_package, add_promotion, add_service

ONE_MS = timedelta(milliseconds=1)


@pytest.fixture
def catalog(db):
    """A: 30 min / 5000, B: 15 min / 2000 with a live promo at 1500."""
    a = add_service(db, "Consultation", 5000, 30)
    b = add_service(db, "Injection", 2000, 15)
    add_promotion(db, b, 1500)
    return a, b


class TestNormalizeSelections:

    def test_bare_ids_and_objects(self):
        result = normalize_selections([1, "2", {"service_id": 3, "quantity": 2}])
        assert result == [
            ServiceSelection(1, 1),
            ServiceSelection(2, 1),
            ServiceSelection(3, 2),
        ]

    def test_duplicates_merged_in_first_seen_order(self):
        result = normalize_selections([5, 3, {"service_id": 5, "quantity": 2}])
        assert result == [ServiceSelection(5, 3), ServiceSelection(3, 1)]

    def test_quantity_floored_to_one(self):
        result = normalize_selections([{"service_id": 1, "quantity": 0}, {"service_id": 2, "quantity": "x"}])
        assert [sel.quantity for sel in result] == [1, 1]

    def test_blank_entries_skipped(self):
        assert normalize_selections([None, "", "  "]) == []

    def test_non_integer_id_rejected(self):
        with pytest.raises(InvalidServiceSelection):
            normalize_selections(["abc"])


class TestResolveQuote:

    def test_promo_replaces_price(self, db, catalog):
        """A + B with B on promo: 45 min, 5000 + 1500."""
        a, b = catalog
        quote = resolve_quote(db, [a.id, b.id], now=NOW)

        assert quote.total_duration_min == 45
        assert quote.total_price == 6500
        assert quote.currency == "RSD"

        items = {item.service_id: item for item in quote.items}
        assert items[a.id].used_promotion is False
        assert items[b.id].used_promotion is True
        assert items[b.id].final_price == 1500
        assert items[b.id].regular_price == 2000

    def test_same_input_same_quote(self, db, catalog):
        a, b = catalog
        first = resolve_quote(db, [a.id, b.id], now=NOW)
        second = resolve_quote(db, [a.id, b.id], now=NOW)
        assert first == second

    def test_empty_selection_rejected(self, db):
        with pytest.raises(InvalidServiceSelection, match="At least one service"):
            resolve_quote(db, [], now=NOW)

    def test_unknown_service_rejects_whole_selection(self, db, catalog):
        a, _ = catalog
        with pytest.raises(InvalidServiceSelection, match="invalid or inactive"):
            resolve_quote(db, [a.id, 9999], now=NOW)

    def test_inactive_service_rejected(self, db):
        retired = add_service(db, "Retired", 1000, 15, is_active=0)
        with pytest.raises(InvalidServiceSelection, match="invalid or inactive"):
            resolve_quote(db, [retired.id], now=NOW)

    def test_quantity_multiplies_price_and_duration(self, db, catalog):
        a, _ = catalog
        quote = resolve_quote(db, [{"service_id": a.id, "quantity": 2}], now=NOW)
        assert quote.total_duration_min == 60
        assert quote.total_price == 10000

    def test_duration_cap(self, db, catalog):
        a, b = catalog
        with pytest.raises(InvalidServiceSelection, match="cannot exceed 40 minutes"):
            resolve_quote(db, [a.id, b.id], now=NOW, max_duration_min=40)


class TestPromotions:

    def test_ends_at_now_is_live(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500, ends_at=NOW)
        assert resolve_quote(db, [service.id], now=NOW).total_price == 2500

    def test_ended_a_millisecond_ago_is_not_live(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500, ends_at=NOW - ONE_MS)
        assert resolve_quote(db, [service.id], now=NOW).total_price == 3000

    def test_starts_at_now_is_live(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500, starts_at=NOW)
        assert resolve_quote(db, [service.id], now=NOW).total_price == 2500

    def test_not_yet_started_is_not_live(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500, starts_at=NOW + ONE_MS)
        assert resolve_quote(db, [service.id], now=NOW).total_price == 3000

    def test_inactive_promotion_ignored(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500, is_active=0)
        assert resolve_quote(db, [service.id], now=NOW).total_price == 3000

    def test_lowest_live_promotion_wins(self, db):
        service = add_service(db, "Peel", 3000, 30)
        add_promotion(db, service, 2500)
        add_promotion(db, service, 2200)
        add_promotion(db, service, 1000, ends_at=NOW - timedelta(days=1))
        assert resolve_quote(db, [service.id], now=NOW).total_price == 2200


class TestPackages:

    def test_package_expands_into_items(self, db):
        a = add_service(db, "Consultation", 5000, 30)
        b = add_service(db, "Injection", 2000, 15)
        package = add_package(db, "Starter", [(a, 1), (b, 2)])

        quote = resolve_quote(db, [package.id], now=NOW)

        assert [item.service_id for item in quote.items] == [a.id, b.id]
        assert quote.total_duration_min == 60
        assert quote.total_price == 9000
        assert all(item.source_package_service_id == package.id for item in quote.items)

    def test_package_without_items_rejected(self, db):
        package = add_package(db, "Empty", [])
        with pytest.raises(InvalidServiceSelection, match="has no configured items"):
            resolve_quote(db, [package.id], now=NOW)

    def test_package_with_inactive_item_rejected(self, db):
        retired = add_service(db, "Retired", 1000, 15, is_active=0)
        package = add_package(db, "Broken", [(retired, 1)])
        with pytest.raises(InvalidServiceSelection, match="missing or inactive"):
            resolve_quote(db, [package.id], now=NOW)

    def test_nested_package_rejected(self, db):
        a = add_service(db, "Consultation", 5000, 30)
        inner = add_package(db, "Inner", [(a, 1)])
        outer = add_package(db, "Outer", [(inner, 1)])
        with pytest.raises(InvalidServiceSelection, match="Only single services"):
            resolve_quote(db, [outer.id], now=NOW)


class TestMlPricing:

    def test_tiered_discount(self):
        assert calculate_ml_total(1000, 3, 10) == 1000 + 900 + 800

    def test_price_factor_floor(self):
        # 5th ml would be 100 - 4*40 < 10%, clamped to 10%
        assert calculate_ml_total(1000, 5, 40) == 1000 + 600 + 200 + 100 + 100

    def test_half_up_rounding(self):
        # 1005 * 90% = 904.5 -> 905
        assert calculate_ml_total(1005, 2, 10) == 1005 + 905

    def test_ml_duration_not_multiplied(self, db):
        filler = add_service(
            db, "Filler", 1000, 30, supports_ml=1, max_ml=3, extra_ml_discount_percent=10,
        )
        quote = resolve_quote(db, [{"service_id": filler.id, "quantity": 3}], now=NOW)
        item = quote.items[0]
        assert item.unit_label == "ml"
        assert item.duration_min == 30
        assert item.final_price == 2700

    def test_ml_limit(self, db):
        filler = add_service(db, "Filler", 1000, 30, supports_ml=1, max_ml=2)
        with pytest.raises(InvalidServiceSelection, match="supports up to 2 ml"):
            resolve_quote(db, [{"service_id": filler.id, "quantity": 3}], now=NOW)
