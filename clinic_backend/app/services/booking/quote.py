# clinic_backend/app/services/booking/quote.py
"""
Service catalog resolver / quote engine.

Turns a selection of services into a priced, durationed quote:

- Selections are normalized to (service_id, quantity), duplicates merged
- Package services expand into their configured items
- A live promotion replaces the base price (lowest promo wins, no stacking)
- ml-priced services get a per-ml tiered discount, duration is not multiplied

The quote is a pure read: nothing is written, so it can be used for
previews as well as inside the commit workflow.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ...config import settings
from ...models import ServicePackageItems, ServicePromotions, Services
from .config import ensure_utc
from .errors import InvalidServiceSelection

CURRENCY = "RSD"
MAX_ML_DISCOUNT_PERCENT = 40
MIN_ML_PRICE_FACTOR_PERCENT = 10


@dataclass(frozen=True)
class ServiceSelection:
    service_id: int
    quantity: int = 1


@dataclass(frozen=True)
class QuoteItem:
    service_id: int
    name: str
    quantity: int
    unit_label: str
    duration_min: int
    final_price: int
    regular_price: int
    used_promotion: bool
    source_package_service_id: int | None = None


@dataclass(frozen=True)
class Quote:
    items: list[QuoteItem]
    total_duration_min: int
    total_price: int
    currency: str = CURRENCY
    selections: list[ServiceSelection] = field(default_factory=list)


# ── Selection normalization ─────────────────────────────────────────────


def _safe_quantity(raw) -> int:
    try:
        return max(1, int(float(raw)))
    except (TypeError, ValueError, OverflowError):
        return 1


def _selection_parts(item) -> tuple[object, object]:
    if isinstance(item, dict):
        return item.get("service_id"), item.get("quantity", 1)
    if hasattr(item, "service_id"):
        return item.service_id, getattr(item, "quantity", 1)
    return item, 1


def normalize_selections(raw: Iterable | None) -> list[ServiceSelection]:
    """
    Normalize bare ids and {service_id, quantity} objects into selections.

    Duplicate ids are merged by summing quantities; first-seen order is kept.
    """
    merged: dict[int, int] = {}

    for item in raw or []:
        if item is None:
            continue

        raw_id, raw_quantity = _selection_parts(item)
        if raw_id is None or (isinstance(raw_id, str) and not raw_id.strip()):
            continue
        if isinstance(raw_id, bool):
            raise InvalidServiceSelection(f"Invalid service id: {raw_id!r}")
        try:
            service_id = int(str(raw_id).strip())
        except ValueError:
            raise InvalidServiceSelection(f"Invalid service id: {raw_id!r}") from None

        merged[service_id] = merged.get(service_id, 0) + _safe_quantity(raw_quantity)

    return [ServiceSelection(service_id=sid, quantity=qty) for sid, qty in merged.items()]


# ── Pricing rules ───────────────────────────────────────────────────────


def is_promotion_live(promotion: ServicePromotions, now: datetime) -> bool:
    """Active flag set and now within [starts_at, ends_at], both bounds inclusive."""
    if not promotion.is_active:
        return False
    if promotion.starts_at is not None and ensure_utc(promotion.starts_at) > now:
        return False
    if promotion.ends_at is not None and ensure_utc(promotion.ends_at) < now:
        return False
    return True


def calculate_ml_total(base_price: int, quantity: int, discount_percent: int) -> int:
    """
    Total for `quantity` ml where the n-th ml costs
    base * max(10%, 100% - (n-1) * discount%), each unit rounded half-up.
    """
    total = 0
    for index in range(1, quantity + 1):
        factor = max(MIN_ML_PRICE_FACTOR_PERCENT, 100 - (index - 1) * discount_percent)
        total += (base_price * factor + 50) // 100
    return total


def _best_live_promotions(
    promotions: Iterable[ServicePromotions],
    now: datetime,
) -> dict[int, ServicePromotions]:
    best: dict[int, ServicePromotions] = {}
    for promo in promotions:
        if not is_promotion_live(promo, now):
            continue
        current = best.get(promo.service_id)
        if current is None or (promo.promo_price, promo.id) < (current.promo_price, current.id):
            best[promo.service_id] = promo
    return best


# ── Quote ───────────────────────────────────────────────────────────────


def resolve_quote(
    db: Session,
    selections: Iterable | None,
    now: datetime | None = None,
    max_duration_min: int | None = None,
) -> Quote:
    """
    Resolve requested services into a Quote.

    Raises:
        InvalidServiceSelection: empty selection, unknown/inactive service,
            broken package, ml quantity over the limit, duration cap exceeded.
    """
    normalized = normalize_selections(selections)
    if not normalized:
        raise InvalidServiceSelection("At least one service is required.")

    # One instant for the whole evaluation
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    if max_duration_min is None:
        max_duration_min = settings.clinic_max_booking_duration_min

    # Step 1: Root services (all-or-nothing)
    root_ids = [sel.service_id for sel in normalized]
    root_rows = _get_active_services(db, root_ids)
    if len(root_rows) != len(root_ids):
        raise InvalidServiceSelection("Some services are invalid or inactive.")

    # Step 2: Expand packages into their items
    package_ids = [sid for sid, row in root_rows.items() if row.kind == "package"]
    items_by_package = _get_package_items(db, package_ids)

    expanded: dict[int, dict] = {}
    for sel in normalized:
        root = root_rows[sel.service_id]
        if root.kind == "package":
            package_items = items_by_package.get(root.id, [])
            if not package_items:
                raise InvalidServiceSelection(f"Package '{root.name}' has no configured items.")
            for pkg_item in package_items:
                entry = expanded.setdefault(pkg_item.service_id, {"quantity": 0, "packages": set()})
                entry["quantity"] += max(1, pkg_item.quantity or 1) * sel.quantity
                entry["packages"].add(root.id)
        else:
            entry = expanded.setdefault(root.id, {"quantity": 0, "packages": set()})
            entry["quantity"] += sel.quantity

    # Step 3: Expanded services must exist, be active and directly bookable
    expanded_rows = _get_active_services(db, list(expanded))
    if len(expanded_rows) != len(expanded):
        raise InvalidServiceSelection("Some package items reference missing or inactive services.")

    promotions = _best_live_promotions(_get_promotions(db, list(expanded)), now)

    # Step 4: Price each line
    items: list[QuoteItem] = []
    for service_id, entry in expanded.items():
        row = expanded_rows[service_id]
        if row.kind != "single":
            raise InvalidServiceSelection("Only single services can be booked directly.")

        items.append(_price_line(row, entry["quantity"], entry["packages"], promotions.get(service_id)))

    total_duration_min = sum(item.duration_min for item in items)
    if max_duration_min is not None and total_duration_min > max_duration_min:
        raise InvalidServiceSelection(
            f"Booking duration cannot exceed {max_duration_min} minutes."
        )

    return Quote(
        items=items,
        total_duration_min=total_duration_min,
        total_price=sum(item.final_price for item in items),
        selections=normalized,
    )


def _price_line(
    row: Services,
    quantity: int,
    packages: set[int],
    promotion: ServicePromotions | None,
) -> QuoteItem:
    regular_base = int(row.price)
    final_base = int(promotion.promo_price) if promotion else regular_base

    if row.supports_ml:
        max_ml = int(row.max_ml or 1)
        if quantity > max_ml:
            raise InvalidServiceSelection(f"Service '{row.name}' supports up to {max_ml} ml.")
        discount = max(0, min(MAX_ML_DISCOUNT_PERCENT, int(row.extra_ml_discount_percent or 0)))
        final_price = calculate_ml_total(final_base, quantity, discount)
        regular_price = calculate_ml_total(regular_base, quantity, discount)
        duration_min = int(row.duration_min)
        unit_label = "ml"
    else:
        final_price = final_base * quantity
        regular_price = regular_base * quantity
        duration_min = int(row.duration_min) * quantity
        unit_label = "kom"

    return QuoteItem(
        service_id=row.id,
        name=row.name,
        quantity=quantity,
        unit_label=unit_label,
        duration_min=duration_min,
        final_price=final_price,
        regular_price=regular_price,
        used_promotion=promotion is not None,
        source_package_service_id=next(iter(packages)) if len(packages) == 1 else None,
    )


# ── Database helpers ─────────────────────────────────────────────────────


def _get_active_services(db: Session, service_ids: list[int]) -> dict[int, Services]:
    if not service_ids:
        return {}
    rows = (
        db.query(Services)
        .filter(Services.id.in_(service_ids), Services.is_active == 1)
        .all()
    )
    return {row.id: row for row in rows}


def _get_package_items(db: Session, package_ids: list[int]) -> dict[int, list[ServicePackageItems]]:
    if not package_ids:
        return {}
    rows = (
        db.query(ServicePackageItems)
        .filter(ServicePackageItems.package_service_id.in_(package_ids))
        .order_by(ServicePackageItems.sort_order, ServicePackageItems.id)
        .all()
    )
    grouped: dict[int, list[ServicePackageItems]] = {}
    for row in rows:
        grouped.setdefault(row.package_service_id, []).append(row)
    return grouped


def _get_promotions(db: Session, service_ids: list[int]) -> list[ServicePromotions]:
    if not service_ids:
        return []
    return (
        db.query(ServicePromotions)
        .filter(
            ServicePromotions.service_id.in_(service_ids),
            ServicePromotions.is_active == 1,
        )
        .all()
    )
