"""Survival and expiry aggregations over an inventory snapshot.

Pure functions; nothing here is cached, callers recompute on demand.
"""
from __future__ import annotations
from datetime import date as _date
import math
from typing import Any, Dict, Iterable, List, Optional

from stockpile.domain.InventoryItem import InventoryItem
from stockpile.utilities.config import DAILY_CALORIES, EXPIRY_WINDOW_DAYS
from stockpile.utilities.constants import DATE_FORMAT, STOCK_HEALTH_DEFAULT_TARGET

__all__ = [
    "total_calories", "survival_days", "days_to_expiry", "compute_expiring_soon",
    "compute_stock_health", "compute_dashboard"
]


def total_calories(items: Iterable[InventoryItem]) -> int:
    return sum((item.calories or 0) * item.quantity for item in items)


def survival_days(items: Iterable[InventoryItem], daily_calories: int = DAILY_CALORIES) -> int:
    """Whole days the stock lasts at daily_calories per day."""
    if daily_calories <= 0:
        raise ValueError(f"daily_calories must be positive: {daily_calories}")
    return total_calories(items) // daily_calories


def days_to_expiry(item: InventoryItem, today: Optional[_date] = None) -> Optional[int]:
    """Days until the expiry date (negative once expired); None if the date is unknown."""
    if item.expiry_date is None:
        return None
    return (item.expiry_date - (today or _date.today())).days


def compute_expiring_soon(items: Iterable[InventoryItem], *, window: int | None = None,
                          today: Optional[_date] = None) -> List[Dict[str, Any]]:
    """Return stocked items expiring in <= window days (including already expired), soonest first."""
    expiring_window = window if window is not None else EXPIRY_WINDOW_DAYS
    today = today or _date.today()
    result: List[Dict[str, Any]] = []
    for item in items:
        if item.quantity <= 0:
            continue
        days_left = days_to_expiry(item, today)
        if days_left is None or days_left > expiring_window:
            continue
        result.append({
            'id': item.id,
            'name': item.name,
            'quantity': item.quantity,
            'unit': item.unit,
            'exp': item.expiry_date.strftime(DATE_FORMAT),
            'days_left': days_left,
            'expired': days_left < 0,
            'category': item.category,
        })
    result.sort(key=lambda x: x['exp'])
    return result


def compute_stock_health(items: Iterable[InventoryItem]) -> int:
    """Percentage of rolling-stock items at or above target (100 when there are none)."""
    rolling = [item for item in items if item.is_rolling_stock]
    if not rolling:
        return 100
    low = [item for item in rolling if item.quantity < (item.max_quantity or STOCK_HEALTH_DEFAULT_TARGET)]
    # Halves round up, not to even
    return math.floor((len(rolling) - len(low)) * 100 / len(rolling) + 0.5)


def compute_dashboard(items: Iterable[InventoryItem], *, window: int | None = None,
                      daily_calories: int = DAILY_CALORIES,
                      today: Optional[_date] = None) -> Dict[str, Any]:
    snapshot = list(items)
    return {
        'total_calories': total_calories(snapshot),
        'survival_days': survival_days(snapshot, daily_calories),
        'stock_health': compute_stock_health(snapshot),
        'expiring_soon': compute_expiring_soon(snapshot, window=window, today=today),
        'emergency_safe_count': sum(1 for item in snapshot if item.is_emergency_safe),
        'item_count': len(snapshot),
    }
