"""Rolling-stock reconciliation.

Derives the auto-replenishment shopping list from inventory deficits.

reconcile(inventory, shopping_list) is pure: it never mutates its arguments
and returns the list that should replace the current one, a diff describing
what changed and the enrichment requests for newly created entries. When
nothing changes the *same* list object is returned with an empty diff, so
callers can skip the write entirely.

apply_enrichment(shopping_list, result) merges one enrichment completion
message into a list, touching only pending entries with the result's name.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from stockpile.domain.InventoryItem import InventoryItem
from stockpile.domain.ShoppingEntry import ShoppingEntry
from stockpile.utilities.constants import (
    ENRICHMENT_READY, REASON_BELOW_TARGET, REASON_ENRICHMENT_FAILED
)

__all__ = [
    'ShoppingListDiff', 'EnrichmentRequest', 'EnrichmentResult', 'ReconcileResult',
    'reconcile', 'apply_enrichment'
]


class ShoppingListDiff:
    def __init__(self, added: Optional[List[ShoppingEntry]] = None,
                 updated: Optional[List[ShoppingEntry]] = None,
                 removed: Optional[List[ShoppingEntry]] = None):
        self.added = added[:] if added else []
        self.updated = updated[:] if updated else []
        self.removed = removed[:] if removed else []

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)

    def __str__(self) -> str:
        return f"ShoppingListDiff(+{len(self.added)} ~{len(self.updated)} -{len(self.removed)})"

    __repr__ = __str__

    def to_dict(self) -> Dict[str, Any]:
        return {
            'added': [e.to_dict() for e in self.added],
            'updated': [e.to_dict() for e in self.updated],
            'removed': [e.to_dict() for e in self.removed],
        }


class EnrichmentRequest:
    '''Ask the advisory collaborator for a search query for a newly added entry.'''

    def __init__(self, entry_id: str, name: str):
        self.entry_id = entry_id
        self.name = name

    def __eq__(self, other) -> bool:
        if not isinstance(other, EnrichmentRequest):
            return NotImplemented
        return (self.entry_id, self.name) == (other.entry_id, other.name)

    __hash__ = None

    def __repr__(self) -> str:
        return f"EnrichmentRequest({self.name!r}, entry={self.entry_id})"


class EnrichmentResult:
    '''Completion message posted back to the store when an enrichment request finishes.'''

    def __init__(self, entry_id: str, name: str, search_query: Optional[str],
                 reason: str, ok: bool = True):
        self.entry_id = entry_id
        self.name = name
        self.search_query = search_query
        self.reason = reason
        self.ok = ok

    @classmethod
    def success(cls, request: EnrichmentRequest, details: Dict[str, Any]) -> "EnrichmentResult":
        query = (details or {}).get('search_query') or request.name
        reason = (details or {}).get('reason') or REASON_BELOW_TARGET
        return cls(request.entry_id, request.name, str(query), str(reason), ok=True)

    @classmethod
    def failure(cls, request: EnrichmentRequest) -> "EnrichmentResult":
        return cls(request.entry_id, request.name, None, REASON_ENRICHMENT_FAILED, ok=False)

    def __repr__(self) -> str:
        state = "ok" if self.ok else "failed"
        return f"EnrichmentResult({self.name!r}, {state}, query={self.search_query!r})"


class ReconcileResult:
    def __init__(self, shopping_list: List[ShoppingEntry], diff: ShoppingListDiff,
                 enrichment_requests: List[EnrichmentRequest]):
        self.shopping_list = shopping_list
        self.diff = diff
        self.enrichment_requests = enrichment_requests


def _find_entry(entries: Sequence[ShoppingEntry], name: str, *, checked: bool) -> Optional[int]:
    for idx, entry in enumerate(entries):
        if entry.name == name and entry.checked == checked:
            return idx
    return None


def reconcile(inventory: Iterable[InventoryItem], shopping_list: List[ShoppingEntry]) -> ReconcileResult:
    """Run one reconciliation pass.

    For every rolling-stock item the unchecked entry with the same name is
    created, resized or removed so that its quantity equals the item's
    deficit. Checked entries are never touched and, while one exists for a
    name, no new entry is created for that name.

    Args:
        inventory: Current inventory snapshot.
        shopping_list: Current shopping list snapshot (not mutated).

    Returns:
        ReconcileResult with the new list (the input object itself when
        nothing changed), the diff and one enrichment request per new name.
    """
    working: List[ShoppingEntry] = list(shopping_list)
    added: Dict[str, ShoppingEntry] = {}
    updated: Dict[str, ShoppingEntry] = {}
    removed: List[ShoppingEntry] = []

    for item in inventory:
        if not item.is_rolling_stock:
            continue
        deficit = item.deficit
        idx = _find_entry(working, item.name, checked=False)

        if deficit > 0:
            if idx is not None:
                current = working[idx]
                if current.quantity == deficit:
                    continue
                resized = current.replace(quantity=deficit)
                working[idx] = resized
                if resized.id in added:
                    added[resized.id] = resized
                else:
                    updated[resized.id] = resized
            elif _find_entry(working, item.name, checked=True) is None:
                entry = ShoppingEntry(name=item.name, quantity=deficit, reason=REASON_BELOW_TARGET)
                working.append(entry)
                added[entry.id] = entry
        elif idx is not None:
            gone = working.pop(idx)
            if gone.id in added:
                # created earlier in this pass by a same-named item
                del added[gone.id]
            else:
                updated.pop(gone.id, None)
                removed.append(gone)

    diff = ShoppingListDiff(list(added.values()), list(updated.values()), removed)
    if not diff.changed:
        return ReconcileResult(shopping_list, diff, [])

    requests: List[EnrichmentRequest] = []
    seen_names = set()
    for entry in diff.added:
        if entry.name in seen_names:
            continue
        seen_names.add(entry.name)
        requests.append(EnrichmentRequest(entry.id, entry.name))
    return ReconcileResult(working, diff, requests)


def apply_enrichment(shopping_list: List[ShoppingEntry],
                     result: EnrichmentResult) -> Tuple[List[ShoppingEntry], List[ShoppingEntry]]:
    """Merge one enrichment completion into a shopping list.

    Only entries whose name matches and that are still pending change; all
    other entries (and every other field) are carried over untouched.

    Returns:
        (new_list, enriched_entries). new_list is the input object when no
        pending entry matched.
    """
    enriched: List[ShoppingEntry] = []
    merged: List[ShoppingEntry] = []
    for entry in shopping_list:
        if entry.name == result.name and entry.is_pending:
            entry = entry.replace(
                enrichment=ENRICHMENT_READY,
                search_query=result.search_query,
                reason=result.reason,
            )
            enriched.append(entry)
        merged.append(entry)
    if not enriched:
        return shopping_list, []
    return merged, enriched
