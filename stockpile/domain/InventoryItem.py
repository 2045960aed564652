"""InventoryItem domain entity: stocked product with quantity, rolling-stock target and emergency metadata."""
from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from stockpile.utilities.constants import (
    CATEGORIES, DATE_FORMAT, DEFAULT_CATEGORY, DEFAULT_LOCATION, DEFAULT_UNIT, LOCATIONS
)


def to_non_negative_int(value, default: int = 0) -> int:
    '''Coerces user/AI supplied numbers to an int >= 0. Garbage becomes the default.'''
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return default
    return max(0, number)


def parse_date(value) -> Optional[date]:
    '''Parses a YYYY-MM-DD string. Returns None for missing or malformed values.'''
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip()[:10], DATE_FORMAT).date()
    except ValueError:
        return None


class InventoryItem:
    FIELDS = (
        "id", "name", "quantity", "max_quantity", "unit", "expiry_date", "category", "notes",
        "is_rolling_stock", "calories", "requires_fire", "requires_water", "location",
    )

    def __init__(self, name: str = "", quantity: int = 0, max_quantity: Optional[int] = None,
                 unit: str = DEFAULT_UNIT, expiry_date=None, category: str = DEFAULT_CATEGORY,
                 notes: str = "", is_rolling_stock: bool = False, calories: int = 0,
                 requires_fire: bool = False, requires_water: bool = False,
                 location: str = DEFAULT_LOCATION, id: Optional[str] = None):
        self.id = id or uuid4().hex
        self.name = name
        self.quantity = to_non_negative_int(quantity)
        self.max_quantity = None if max_quantity is None else to_non_negative_int(max_quantity)
        self.unit = unit or DEFAULT_UNIT
        self.expiry_date = parse_date(expiry_date)
        self.category = category if category in CATEGORIES else DEFAULT_CATEGORY
        self.notes = notes or ""
        self.is_rolling_stock = bool(is_rolling_stock)
        self.calories = to_non_negative_int(calories)
        self.requires_fire = bool(requires_fire)
        self.requires_water = bool(requires_water)
        self.location = location if location in LOCATIONS else DEFAULT_LOCATION

    @property
    def target(self) -> int:
        '''Rolling-stock target; an absent target counts as 0.'''
        return self.max_quantity or 0

    @property
    def deficit(self) -> int:
        return max(0, self.target - self.quantity)

    @property
    def is_emergency_safe(self) -> bool:
        '''Usable without fire or water (water itself always counts).'''
        return (not self.requires_fire and not self.requires_water) or self.category == "water"

    def adjusted(self, delta: int) -> "InventoryItem":
        '''Returns a copy with quantity changed by delta, clamped at zero.'''
        return self.updated(quantity=max(0, self.quantity + int(delta)))

    def updated(self, **changes) -> "InventoryItem":
        '''Returns a copy with the given fields replaced. Unknown fields and id changes are rejected.'''
        unknown = set(changes) - set(self.FIELDS)
        if unknown:
            raise ValueError(f"Unknown inventory fields: {', '.join(sorted(unknown))}")
        if "id" in changes and changes["id"] != self.id:
            raise ValueError("Inventory item id cannot be changed")
        values = {field: getattr(self, field) for field in self.FIELDS}
        values.update(changes)
        return InventoryItem(**values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, InventoryItem):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __str__(self) -> str:
        parts = [f"{self.name} - {self.quantity} {self.unit}"]
        if self.max_quantity:
            parts.append(f"Target: {self.max_quantity}")
        if self.expiry_date:
            parts.append(f"Exp: {self.expiry_date.strftime(DATE_FORMAT)}")
        if self.is_rolling_stock:
            parts.append("Rolling")
        return " - ".join(parts)

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates an InventoryItem from a dictionary. Ignores unknown keys.'''
        d = dict(data) if isinstance(data, dict) else {}
        filtered = {k: v for k, v in d.items() if k in InventoryItem.FIELDS}
        filtered.setdefault("name", "")
        return InventoryItem(**filtered)

    def to_dict(self):
        '''Converts the item to a JSON-friendly dictionary.'''
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "max_quantity": self.max_quantity,
            "unit": self.unit,
            "expiry_date": self.expiry_date.strftime(DATE_FORMAT) if self.expiry_date else None,
            "category": self.category,
            "notes": self.notes,
            "is_rolling_stock": self.is_rolling_stock,
            "calories": self.calories,
            "requires_fire": self.requires_fire,
            "requires_water": self.requires_water,
            "location": self.location,
            "is_emergency_safe": self.is_emergency_safe,
        }
