"""Asynchronous restock enrichment.

Newly created shopping entries arrive with a provisional reason; this module
asks the AI collaborator for a search query and a short reason and posts the
answer back to the store as an EnrichmentResult message. Each request runs as
its own asyncio task, so completions may arrive in any order. A failed or
timed-out lookup still posts a message (ok=False) so the entry leaves the
pending state with the fallback reason.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from stockpile.logic.shopping.reconciliation import EnrichmentRequest, EnrichmentResult
from stockpile.utilities.config import ENRICHMENT_TIMEOUT

logger = logging.getLogger(__name__)

__all__ = ['EnrichmentDispatcher', 'run_enrichment', 'default_fetcher']

RestockFetcher = Callable[[str], Awaitable[Dict[str, Any]]]


async def default_fetcher(name: str) -> Dict[str, Any]:
    """Run the blocking OpenAI lookup in a worker thread."""
    from stockpile.api.api_ai import get_restock_details
    return await asyncio.to_thread(get_restock_details, name)


class EnrichmentDispatcher:
    def __init__(self, store, fetcher: Optional[RestockFetcher] = None,
                 timeout: Optional[float] = None):
        self.store = store
        self.fetcher = fetcher or default_fetcher
        self.timeout = ENRICHMENT_TIMEOUT if timeout is None else timeout

    def dispatch(self, requests: Iterable[EnrichmentRequest]) -> List["asyncio.Task[EnrichmentResult]"]:
        """Schedule one task per request on the running loop and return the handles."""
        tasks = [
            asyncio.create_task(self._enrich(request), name=f"enrich:{request.name}")
            for request in requests
        ]
        if tasks:
            logger.debug("Dispatched %d enrichment request(s)", len(tasks))
        return tasks

    async def _enrich(self, request: EnrichmentRequest) -> EnrichmentResult:
        try:
            details = await asyncio.wait_for(self.fetcher(request.name), timeout=self.timeout)
            result = EnrichmentResult.success(request, details)
        except asyncio.TimeoutError:
            logger.warning("Restock lookup for %r timed out after %ss", request.name, self.timeout)
            result = EnrichmentResult.failure(request)
        except Exception:
            logger.exception("Restock lookup for %r failed", request.name)
            result = EnrichmentResult.failure(request)
        self.store.apply_enrichment(result)
        return result


async def run_enrichment(store, requests: Iterable[EnrichmentRequest],
                         fetcher: Optional[RestockFetcher] = None,
                         timeout: Optional[float] = None) -> List[EnrichmentResult]:
    """Dispatch the requests and wait until every completion has been merged."""
    tasks = EnrichmentDispatcher(store, fetcher=fetcher, timeout=timeout).dispatch(requests)
    if not tasks:
        return []
    return list(await asyncio.gather(*tasks))
