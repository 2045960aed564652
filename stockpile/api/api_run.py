from contextlib import asynccontextmanager
import asyncio
from typing import Optional
import logging

from fastapi import FastAPI, APIRouter, BackgroundTasks, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from stockpile.api.state import get_store, seed_store
from stockpile.domain.InventoryItem import InventoryItem
from stockpile.domain.ItemStore import MutationResult
from stockpile.domain.errors import AIResponseError, AIUnavailableError, ItemNotFoundError
from stockpile.events.Event_Bus import GLOBAL_EVENT_BUS
from stockpile.events.web_observers import start as start_event_observers, get_events as get_web_events
from stockpile.logic.pantry.analysis import compute_dashboard
from stockpile.logic.shopping.enrichment import run_enrichment
from stockpile.utilities.config import DAILY_CALORIES, EXPIRY_WINDOW_DAYS, SEED_INVENTORY
from stockpile.utilities.validators import (
    InventoryItemInput, InventoryItemUpdate, QuantityDeltaInput, QuantitySetInput
)

# Routers
from stockpile.api.routes.ai import router as ai_router

# Logging
logger = logging.getLogger("stockpile_app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_event_observers(GLOBAL_EVENT_BUS)
    if SEED_INVENTORY and not get_store().get_inventory():
        result = seed_store()
        app.state.seed_enrichment = _start_seed_enrichment(app, result)
    yield


app = FastAPI(title="Stockpile", lifespan=lifespan)
# Async callable taking an item name; None means the OpenAI-backed default
app.state.restock_fetcher = None
router = APIRouter()


def _start_seed_enrichment(app: FastAPI, result: MutationResult):
    if not result.enrichment_requests:
        return None
    return asyncio.create_task(
        run_enrichment(get_store(), result.enrichment_requests, fetcher=app.state.restock_fetcher)
    )


def _schedule_enrichment(request: Request, background_tasks: BackgroundTasks, result: MutationResult):
    if result.enrichment_requests:
        background_tasks.add_task(
            run_enrichment, get_store(), result.enrichment_requests,
            fetcher=request.app.state.restock_fetcher
        )


def _mutation_response(result: MutationResult, item: Optional[InventoryItem] = None):
    body = {"success": True, "shopping_list_changes": result.diff.to_dict()}
    if item is not None:
        body["item"] = item.to_dict()
    return body


# -------------------- Error mapping --------------------
@app.exception_handler(ItemNotFoundError)
async def _not_found_handler(request: Request, exc: ItemNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AIUnavailableError)
async def _ai_unavailable_handler(request: Request, exc: AIUnavailableError):
    logger.warning("AI unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(AIResponseError)
async def _ai_response_handler(request: Request, exc: AIResponseError):
    logger.warning("AI response unusable: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


# -------------------- API: Inventory --------------------
@router.get('/api/inventory')
def list_inventory():
    items = get_store().get_inventory()
    return {"count": len(items), "items": [i.to_dict() for i in items]}


@router.post('/api/inventory', status_code=201)
def add_inventory_item(payload: InventoryItemInput, request: Request, background_tasks: BackgroundTasks):
    item = InventoryItem(**payload.model_dump())
    result = get_store().add_item(item)
    logger.info("Inventory item added: %s", item)
    _schedule_enrichment(request, background_tasks, result)
    return _mutation_response(result, item)


@router.get('/api/inventory/{item_id}')
def get_inventory_item(item_id: str):
    return get_store().get_item(item_id).to_dict()


@router.patch('/api/inventory/{item_id}')
def edit_inventory_item(item_id: str, payload: InventoryItemUpdate, request: Request,
                        background_tasks: BackgroundTasks):
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    store = get_store()
    result = store.update_item(item_id, **updates)
    _schedule_enrichment(request, background_tasks, result)
    return _mutation_response(result, store.get_item(item_id))


@router.delete('/api/inventory/{item_id}')
def delete_inventory_item(item_id: str):
    result = get_store().remove_item(item_id)
    logger.info("Inventory item removed: %s", item_id)
    return _mutation_response(result)


@router.post('/api/inventory/{item_id}/quantity')
def change_quantity(item_id: str, payload: QuantityDeltaInput, request: Request,
                    background_tasks: BackgroundTasks):
    store = get_store()
    result = store.update_quantity(item_id, payload.delta)
    _schedule_enrichment(request, background_tasks, result)
    return _mutation_response(result, store.get_item(item_id))


@router.put('/api/inventory/{item_id}/quantity')
def set_quantity(item_id: str, payload: QuantitySetInput, request: Request,
                 background_tasks: BackgroundTasks):
    store = get_store()
    result = store.set_quantity(item_id, payload.quantity)
    _schedule_enrichment(request, background_tasks, result)
    return _mutation_response(result, store.get_item(item_id))


@router.post('/api/inventory/{item_id}/rolling-stock')
def toggle_rolling_stock(item_id: str, request: Request, background_tasks: BackgroundTasks):
    store = get_store()
    result = store.toggle_rolling_stock(item_id)
    _schedule_enrichment(request, background_tasks, result)
    return _mutation_response(result, store.get_item(item_id))


# -------------------- API: Shopping list --------------------
@router.get('/api/shopping-list')
def api_shopping_list():
    entries = get_store().get_shopping_list()
    return {
        "count": len(entries),
        "pending": sum(1 for e in entries if e.is_pending and not e.checked),
        "items": [e.to_dict() for e in entries],
    }


@router.post('/api/shopping-list/clear-checked')
def clear_checked():
    cleared = get_store().clear_checked()
    return {"cleared": [e.to_dict() for e in cleared], "total_cleared": len(cleared)}


@router.post('/api/shopping-list/{entry_id}/toggle')
def toggle_shopping_entry(entry_id: str):
    return get_store().toggle_shopping_entry(entry_id).to_dict()


# -------------------- API: Dashboard & events --------------------
@router.get('/api/dashboard')
def api_dashboard(window: int = Query(default=EXPIRY_WINDOW_DAYS, ge=0, le=3650)):
    return compute_dashboard(get_store().get_inventory(), window=window, daily_calories=DAILY_CALORIES)


@router.get('/api/events')
def api_events(
    since: Optional[int] = Query(default=None, description="Return events with id greater than this value")
):
    """
    Return recent shopping-list events (entry added/updated/removed/enriched/toggled).

    Client polling strategy:
        1. First call without 'since' to load the backlog.
        2. Store 'next_cursor' from response.
        3. Subsequent polls: /api/events?since=<next_cursor>
    """
    return get_web_events(since)


# Register routers
app.include_router(router)
app.include_router(ai_router)
