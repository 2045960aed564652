"""ItemStore aggregate: owns the inventory and the derived shopping list.

Every inventory mutation goes through apply_inventory_mutation, which runs a
reconciliation pass and swaps in the new shopping list in the same critical
section. Shopping-list writes (toggle, enrichment merge, clear) never trigger
a pass, so the dependency only runs inventory -> shopping list.
"""
import logging
from threading import RLock
from typing import Callable, List

from stockpile.domain.InventoryItem import InventoryItem, to_non_negative_int
from stockpile.domain.ShoppingEntry import ShoppingEntry
from stockpile.domain.errors import ItemNotFoundError
from stockpile.events.Event_Bus import GLOBAL_EVENT_BUS
from stockpile.events.event_helpers import (
    publish_entries_enriched, publish_entry_toggled, publish_inventory_changed,
    publish_shopping_diff
)
from stockpile.logic.shopping.reconciliation import (
    EnrichmentRequest, EnrichmentResult, ShoppingListDiff, apply_enrichment, reconcile
)

logger = logging.getLogger(__name__)

# A mutation receives the current inventory (a fresh list it may modify) and returns the new one
InventoryMutation = Callable[[List[InventoryItem]], List[InventoryItem]]


class MutationResult:
    def __init__(self, inventory: List[InventoryItem], diff: ShoppingListDiff,
                 enrichment_requests: List[EnrichmentRequest]):
        self.inventory = inventory
        self.diff = diff
        self.enrichment_requests = enrichment_requests

    def __repr__(self) -> str:
        return f"MutationResult({len(self.inventory)} items, {self.diff}, {len(self.enrichment_requests)} requests)"


class ItemStore:
    def __init__(self, event_bus=None):
        self._inventory: List[InventoryItem] = []
        self._shopping_list: List[ShoppingEntry] = []
        self._lock = RLock()
        self._reconciling = False
        self._revision = 0
        self._event_bus = event_bus or GLOBAL_EVENT_BUS

    # --- Observer helpers -------------------------------------------------
    def set_event_bus(self, bus):
        self._event_bus = bus
        return self

    # --- Reads ------------------------------------------------------------
    @property
    def revision(self) -> int:
        '''Bumped on every write to either collection.'''
        return self._revision

    def get_inventory(self) -> List[InventoryItem]:
        with self._lock:
            return list(self._inventory)

    def get_shopping_list(self) -> List[ShoppingEntry]:
        with self._lock:
            return list(self._shopping_list)

    def get_item(self, item_id: str) -> InventoryItem:
        with self._lock:
            for item in self._inventory:
                if item.id == item_id:
                    return item
        raise ItemNotFoundError("Inventory item", item_id)

    # --- Inventory mutations (each one reconciles) ------------------------
    def apply_inventory_mutation(self, mutation: InventoryMutation) -> MutationResult:
        '''
        Applies a mutation to the inventory, then re-derives the shopping list.
        The returned enrichment requests are for the caller to dispatch.
        '''
        with self._lock:
            if self._reconciling:
                raise RuntimeError("Inventory mutated from inside a reconciliation pass")
            self._reconciling = True
            try:
                new_inventory = list(mutation(list(self._inventory)))
                result = reconcile(new_inventory, self._shopping_list)
                inventory_changed = new_inventory != self._inventory
                if inventory_changed:
                    self._inventory = new_inventory
                if result.diff.changed:
                    self._shopping_list = result.shopping_list
                if inventory_changed or result.diff.changed:
                    self._revision += 1
                revision = self._revision
            finally:
                self._reconciling = False

        if result.diff.changed:
            logger.info("Shopping list reconciled: %s", result.diff)
        if inventory_changed:
            publish_inventory_changed(self._event_bus, new_inventory, revision)
        publish_shopping_diff(self._event_bus, result.diff)
        return MutationResult(list(new_inventory), result.diff, result.enrichment_requests)

    def reconcile_now(self) -> MutationResult:
        '''Runs a pass without changing the inventory (no-op when already reconciled).'''
        return self.apply_inventory_mutation(lambda current: current)

    def add_item(self, item: InventoryItem) -> MutationResult:
        '''
        Adds an item to the inventory. New items go first, like the add form does.
        '''
        def mutation(current):
            if any(existing.id == item.id for existing in current):
                raise ValueError(f"Inventory item '{item.id}' already exists")
            return [item] + current
        return self.apply_inventory_mutation(mutation)

    def load_items(self, items: List[InventoryItem]) -> MutationResult:
        '''Appends a batch of items (seed data) in a single pass.'''
        return self.apply_inventory_mutation(lambda current: current + list(items))

    def remove_item(self, item_id: str) -> MutationResult:
        def mutation(current):
            remaining = [item for item in current if item.id != item_id]
            if len(remaining) == len(current):
                raise ItemNotFoundError("Inventory item", item_id)
            return remaining
        return self.apply_inventory_mutation(mutation)

    def update_item(self, item_id: str, **updates) -> MutationResult:
        return self.apply_inventory_mutation(self._replace(item_id, lambda item: item.updated(**updates)))

    def update_quantity(self, item_id: str, delta: int) -> MutationResult:
        '''Changes the quantity by delta; the result is clamped at zero.'''
        return self.apply_inventory_mutation(self._replace(item_id, lambda item: item.adjusted(delta)))

    def set_quantity(self, item_id: str, quantity: int) -> MutationResult:
        return self.apply_inventory_mutation(
            self._replace(item_id, lambda item: item.updated(quantity=to_non_negative_int(quantity)))
        )

    def toggle_rolling_stock(self, item_id: str) -> MutationResult:
        return self.apply_inventory_mutation(
            self._replace(item_id, lambda item: item.updated(is_rolling_stock=not item.is_rolling_stock))
        )

    @staticmethod
    def _replace(item_id: str, change: Callable[[InventoryItem], InventoryItem]) -> InventoryMutation:
        def mutation(current):
            for idx, item in enumerate(current):
                if item.id == item_id:
                    current[idx] = change(item)
                    return current
            raise ItemNotFoundError("Inventory item", item_id)
        return mutation

    # --- Shopping list writes (never reconcile) ----------------------------
    def toggle_shopping_entry(self, entry_id: str) -> ShoppingEntry:
        with self._lock:
            for idx, entry in enumerate(self._shopping_list):
                if entry.id == entry_id:
                    toggled = entry.replace(checked=not entry.checked)
                    new_list = list(self._shopping_list)
                    new_list[idx] = toggled
                    self._shopping_list = new_list
                    self._revision += 1
                    break
            else:
                raise ItemNotFoundError("Shopping entry", entry_id)
        publish_entry_toggled(self._event_bus, toggled)
        return toggled

    def clear_checked(self) -> List[ShoppingEntry]:
        '''Drops archived (checked) entries so their names can be re-added.'''
        with self._lock:
            cleared = [e for e in self._shopping_list if e.checked]
            if cleared:
                self._shopping_list = [e for e in self._shopping_list if not e.checked]
                self._revision += 1
        if cleared:
            publish_shopping_diff(self._event_bus, ShoppingListDiff(removed=cleared))
        return cleared

    def apply_enrichment(self, result: EnrichmentResult) -> List[ShoppingEntry]:
        '''
        Merges an enrichment completion message. Safe to call from any thread;
        an entry removed or already resolved in the meantime makes this a no-op.
        '''
        with self._lock:
            new_list, enriched = apply_enrichment(self._shopping_list, result)
            if enriched:
                self._shopping_list = new_list
                self._revision += 1
        if enriched:
            publish_entries_enriched(self._event_bus, enriched, result.ok)
        else:
            logger.debug("No pending shopping entry for %r; enrichment dropped", result.name)
        return enriched

    def __str__(self) -> str:
        items_str = ",\n\t".join(str(item) for item in self.get_inventory())
        entries_str = ",\n\t".join(str(entry) for entry in self.get_shopping_list())
        return f"Inventory:\n\t{items_str}\nShopping list:\n\t{entries_str}"

    def __repr__(self) -> str:
        return self.__str__()
