"""ShoppingEntry domain entity: one line of the auto-replenishment list."""
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote
from uuid import uuid4

from stockpile.utilities.constants import (
    AMAZON_SEARCH_URL, ENRICHMENT_PENDING, ENRICHMENT_READY, REASON_BELOW_TARGET
)


class ShoppingEntry:
    def __init__(self, name: str, quantity: int, checked: bool = False,
                 enrichment: str = ENRICHMENT_PENDING, search_query: Optional[str] = None,
                 reason: str = REASON_BELOW_TARGET, added_at: Optional[str] = None,
                 id: Optional[str] = None):
        if enrichment not in (ENRICHMENT_PENDING, ENRICHMENT_READY):
            raise ValueError(f"Unknown enrichment state: {enrichment}")
        self.id = id or uuid4().hex
        self.name = name
        self.quantity = int(quantity)
        self.checked = bool(checked)
        self.enrichment = enrichment
        self.search_query = search_query
        self.reason = reason
        self.added_at = added_at or datetime.now(timezone.utc).isoformat()

    @property
    def is_pending(self) -> bool:
        return self.enrichment == ENRICHMENT_PENDING

    @property
    def search_url(self) -> str:
        return AMAZON_SEARCH_URL.format(query=quote(self.search_query or self.name))

    def replace(self, **changes) -> "ShoppingEntry":
        '''Returns a copy with the given fields replaced (identity is kept).'''
        values = {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "checked": self.checked,
            "enrichment": self.enrichment,
            "search_query": self.search_query,
            "reason": self.reason,
            "added_at": self.added_at,
        }
        values.update(changes)
        return ShoppingEntry(**values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ShoppingEntry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __str__(self) -> str:
        mark = "x" if self.checked else " "
        return f"[{mark}] {self.name} +{self.quantity} ({self.enrichment})"

    __repr__ = __str__

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "checked": self.checked,
            "enrichment": self.enrichment,
            "search_query": self.search_query,
            "reason": self.reason,
            "added_at": self.added_at,
            "search_url": self.search_url,
        }
