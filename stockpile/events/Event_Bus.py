"""Simple Event Bus / Observer implementation for stock and shopping-list events.

Event names:
  inventory.changed        -> payload {"inventory": [InventoryItem], "revision": int}
  shopping.entry_added     -> payload {"entry": ShoppingEntry}
  shopping.entry_updated   -> payload {"entry": ShoppingEntry}
  shopping.entry_removed   -> payload {"entry": ShoppingEntry}
  shopping.entry_enriched  -> payload {"entry": ShoppingEntry, "ok": bool}
  shopping.entry_toggled   -> payload {"entry": ShoppingEntry}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
INVENTORY_CHANGED = "inventory.changed"
SHOPPING_ENTRY_ADDED = "shopping.entry_added"
SHOPPING_ENTRY_UPDATED = "shopping.entry_updated"
SHOPPING_ENTRY_REMOVED = "shopping.entry_removed"
SHOPPING_ENTRY_ENRICHED = "shopping.entry_enriched"
SHOPPING_ENTRY_TOGGLED = "shopping.entry_toggled"

SHOPPING_EVENTS = (
	SHOPPING_ENTRY_ADDED, SHOPPING_ENTRY_UPDATED, SHOPPING_ENTRY_REMOVED,
	SHOPPING_ENTRY_ENRICHED, SHOPPING_ENTRY_TOGGLED,
)


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any):
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception:
				logger.exception("Error delivering %s to %r", event_name, cb)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS', 'INVENTORY_CHANGED', 'SHOPPING_ENTRY_ADDED',
	'SHOPPING_ENTRY_UPDATED', 'SHOPPING_ENTRY_REMOVED', 'SHOPPING_ENTRY_ENRICHED',
	'SHOPPING_ENTRY_TOGGLED', 'SHOPPING_EVENTS'
]
