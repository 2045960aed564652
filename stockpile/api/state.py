"""Process-wide ItemStore used by the HTTP layer."""
import logging
from threading import Lock
from typing import Optional

from stockpile.domain.ItemStore import ItemStore, MutationResult
from stockpile.infra.Inventory_Repository import reading_from_seed

logger = logging.getLogger(__name__)

_lock = Lock()
_store: Optional[ItemStore] = None


def get_store() -> ItemStore:
    """Return the shared store, creating an empty one on first use."""
    global _store
    with _lock:
        if _store is None:
            _store = ItemStore()
        return _store


def reset_store(event_bus=None) -> ItemStore:
    """Replace the shared store with an empty one (tests and demo resets)."""
    global _store
    with _lock:
        _store = ItemStore(event_bus=event_bus)
        return _store


def seed_store(store: Optional[ItemStore] = None) -> MutationResult:
    """Load the demo inventory into the store; the caller dispatches the enrichment requests."""
    store = store or get_store()
    items = reading_from_seed()
    result = store.load_items(items)
    logger.info("Item store seeded with %d item(s)", len(items))
    return result
