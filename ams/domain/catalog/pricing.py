"""
Service pricing.

A service's live price is its base price, adjusted by a selected quality
variation and then by every discount active at the evaluation instant.
Bookings copy the result once at creation (the pricing snapshot).
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from ...models import Service

DateLike = Union[str, datetime, None]


def _to_naive_utc(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def is_discount_active(discount: dict[str, Any], now: datetime) -> bool:
    if not discount.get("isActive", True):
        return False
    valid_from = _to_naive_utc(discount.get("validFrom"))
    valid_to = _to_naive_utc(discount.get("validTo"))
    if valid_from and valid_from > now:
        return False
    if valid_to and valid_to < now:
        return False
    return True


def active_discounts(discounts: Optional[list[dict[str, Any]]], now: datetime) -> list[dict[str, Any]]:
    return [d for d in (discounts or []) if is_discount_active(d, now)]


def apply_modifier(price: float, modifier_type: Optional[str], value: Optional[float]) -> float:
    """Apply one percentage or fixed adjustment. Fixed adjustments never go below zero."""
    if value is None:
        return price
    if modifier_type == "percentage":
        return price * (1 - value / 100)
    if modifier_type == "fixed":
        return max(0.0, price - value)
    return price


def apply_variation(price: float, price_modifier: Optional[dict[str, Any]]) -> float:
    """Quality variations raise (or lower, when negative) the price."""
    if not price_modifier or price_modifier.get("value") is None:
        return price
    value = price_modifier["value"]
    if price_modifier.get("type") == "percentage":
        return max(0.0, price * (1 + value / 100))
    return max(0.0, price + value)


def find_quality_variation(service: Service, name: Optional[str]) -> Optional[dict[str, Any]]:
    if not name:
        return None
    for variation in service.quality_variations or []:
        if variation.get("name", "").lower() == name.strip().lower():
            return variation
    return None


def compute_final_price(
    base_price: float,
    discounts: Optional[list[dict[str, Any]]],
    now: datetime,
    price_modifier: Optional[dict[str, Any]] = None,
) -> float:
    price = apply_variation(float(base_price), price_modifier)
    for discount in active_discounts(discounts, now):
        price = apply_modifier(price, discount.get("type"), discount.get("value"))
    return round(price, 2)


def service_final_price(service: Service, now: Optional[datetime] = None) -> float:
    return compute_final_price(service.base_price, service.discounts, now or datetime.utcnow())


def build_pricing_snapshot(
    service: Service, now: datetime, variation: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    """Point-in-time copy of the service's pricing, stored on the booking."""
    price_modifier = variation.get("priceModifier") if variation else None
    applied = active_discounts(service.discounts, now)
    return {
        "basePrice": float(service.base_price),
        "qualityVariation": (
            {"name": variation["name"], "priceModifier": price_modifier} if variation else None
        ),
        "discounts": [
            {"type": d.get("type"), "value": d.get("value"), "description": d.get("description")}
            for d in applied
        ],
        "finalPrice": compute_final_price(service.base_price, applied, now, price_modifier),
        "currency": service.currency,
    }
