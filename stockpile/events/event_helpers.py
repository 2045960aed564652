"""Event helper utilities.

Turns store-level results (reconciliation diffs, enrichment merges) into
individual bus events so subscribers never have to know about diff objects.
"""
from __future__ import annotations
from typing import Any, Iterable

from .Event_Bus import (
    EventBus,
    INVENTORY_CHANGED, SHOPPING_ENTRY_ADDED, SHOPPING_ENTRY_UPDATED,
    SHOPPING_ENTRY_REMOVED, SHOPPING_ENTRY_ENRICHED, SHOPPING_ENTRY_TOGGLED
)

__all__ = [
    'publish_inventory_changed', 'publish_shopping_diff', 'publish_entries_enriched',
    'publish_entry_toggled'
]


def publish_inventory_changed(bus: EventBus, inventory: Iterable[Any], revision: int):
    """Publish an inventory.changed event with a snapshot of the items."""
    bus.publish(INVENTORY_CHANGED, {'inventory': list(inventory), 'revision': revision})


def publish_shopping_diff(bus: EventBus, diff):
    """Publish one event per added, updated and removed shopping entry."""
    for entry in diff.added:
        bus.publish(SHOPPING_ENTRY_ADDED, {'entry': entry})
    for entry in diff.updated:
        bus.publish(SHOPPING_ENTRY_UPDATED, {'entry': entry})
    for entry in diff.removed:
        bus.publish(SHOPPING_ENTRY_REMOVED, {'entry': entry})


def publish_entries_enriched(bus: EventBus, entries: Iterable[Any], ok: bool):
    for entry in entries:
        bus.publish(SHOPPING_ENTRY_ENRICHED, {'entry': entry, 'ok': ok})


def publish_entry_toggled(bus: EventBus, entry):
    bus.publish(SHOPPING_ENTRY_TOGGLED, {'entry': entry})
