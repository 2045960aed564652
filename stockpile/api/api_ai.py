import base64
import json
import logging
import re
from datetime import date, timedelta
from json import JSONDecodeError
from typing import Any, Dict, Iterable, List, Optional

from openai import OpenAI

from stockpile.domain.InventoryItem import InventoryItem, parse_date, to_non_negative_int
from stockpile.domain.errors import AIResponseError, AIUnavailableError
from stockpile.utilities import config
from stockpile.utilities.constants import (
    ADVISOR_ERROR_SUGGESTION, ADVISOR_PROMPT_TEMPLATE, ADVISOR_SYSTEM_EMERGENCY,
    ADVISOR_SYSTEM_NORMAL, CATEGORIES, DATE_FORMAT, DEFAULT_UNIT,
    EMERGENCY_ACTIONS_EMPTY_FALLBACK, EMERGENCY_ACTIONS_ERROR_FALLBACK,
    EMERGENCY_PROMPT_TEMPLATE, IDENTIFY_PROMPT, RESTOCK_PROMPT_TEMPLATE,
    SCAN_DEFAULT_CATEGORY, SCAN_DEFAULT_MAX_QUANTITY, SCAN_DEFAULT_QUANTITY,
    SCAN_DEFAULT_SHELF_LIFE_DAYS
)

logger = logging.getLogger(__name__)


# === Helper: Get OpenAI Client ===
def _get_openai_client():
    """Return an OpenAI client if OPENAI_API_KEY is set, otherwise None."""
    if not config.OPENAI_API_KEY:
        return None
    return OpenAI(api_key=config.OPENAI_API_KEY)


def _ask_json(prompt: str, *, instructions: Optional[str] = None,
              image: Optional[bytes] = None, mime_type: str = "image/jpeg",
              model: Optional[str] = None) -> Any:
    """Send a prompt (optionally with an image) and return the decoded JSON answer."""
    client = _get_openai_client()
    if client is None:
        raise AIUnavailableError("OPENAI_API_KEY not set")

    if image is not None:
        encoded = base64.b64encode(image).decode("ascii")
        payload: Any = [{
            "role": "user",
            "content": [
                {"type": "input_text", "text": prompt},
                {"type": "input_image", "image_url": f"data:{mime_type};base64,{encoded}"},
            ],
        }]
    else:
        payload = prompt

    kwargs: Dict[str, Any] = {"model": model or config.OPENAI_MODEL, "input": payload}
    if instructions:
        kwargs["instructions"] = instructions
    try:
        response = client.responses.create(**kwargs)
    except Exception as e:
        raise AIUnavailableError(f"AI request failed: {e}") from e

    text = (response.output_text or "").strip()
    if not text:
        raise AIResponseError("AI returned an empty response")
    return parse_ai_json(text)


# === Text Cleaning Helpers ===
def parse_ai_json(text: str) -> Any:
    """Decode model output that should be JSON, repairing the usual formatting slips."""
    try:
        return json.loads(text)
    except JSONDecodeError:
        pass
    cleaned = _remove_trailing_commas(_strip_code_fences(text))
    try:
        return json.loads(cleaned)
    except JSONDecodeError:
        pass
    candidate = _extract_json_by_balancing(cleaned)
    if candidate:
        try:
            return json.loads(_remove_trailing_commas(candidate))
        except JSONDecodeError:
            logger.debug("Balanced JSON candidate still invalid: %r", candidate[:200])
    raise AIResponseError("AI output is not valid JSON and no JSON substring found")


def _strip_code_fences(text: str) -> str:
    """Remove common markdown code fences and leading/trailing whitespace."""
    text = re.sub(r"```(?:json)?\n(.*?)```", r"\1", text, flags=re.S)
    text = re.sub(r"^```|```$", "", text)
    return text.strip()


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas in JSON-like text to help json.loads succeed."""
    return re.sub(r",\s*(\}|\])", r"\1", text)


def _extract_json_by_balancing(text: str) -> Optional[str]:
    """Extract the first JSON object/array by balancing braces/brackets."""
    start = None
    stack = []
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            if start is None:
                start = i
            stack.append(ch)
        elif ch in "}]":
            if not stack:
                continue
            opening = stack.pop()
            if (opening == "{" and ch != "}") or (opening == "[" and ch != "]"):
                return None
            if not stack and start is not None:
                return text[start:i + 1]
    return None


def _describe_inventory(items: Iterable[InventoryItem], with_expiry: bool = True) -> str:
    parts = []
    for item in items:
        if with_expiry:
            exp = item.expiry_date.strftime(DATE_FORMAT) if item.expiry_date else "不明"
            parts.append(f"{item.name} ({item.quantity} {item.unit}, 期限: {exp})")
        else:
            parts.append(f"{item.name} ({item.quantity} {item.unit})")
    return ", ".join(parts)


# === Image identification ===
def identify_item_from_image(image: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
    """Ask the vision model what product the photo shows.

    Returns a partial item dict (name, quantity, unit, expiry_date, category,
    calories, requires_fire, requires_water). Raises AIUnavailableError or
    AIResponseError when no usable answer comes back.
    """
    if not image:
        raise ValueError("Empty image")
    data = _ask_json(IDENTIFY_PROMPT, image=image, mime_type=mime_type,
                     model=config.OPENAI_VISION_MODEL)
    if not isinstance(data, dict) or not str(data.get("name") or "").strip():
        logger.warning("Vision model returned no product name: %r", data)
        raise AIResponseError("No data returned from AI")

    result: Dict[str, Any] = {
        "name": str(data["name"]).strip(),
        "quantity": to_non_negative_int(data.get("quantity"), default=SCAN_DEFAULT_QUANTITY),
        "unit": str(data.get("unit") or DEFAULT_UNIT),
        "category": data.get("category") if data.get("category") in CATEGORIES else "other",
    }
    expiry = parse_date(data.get("expiry_date") or data.get("expiryDate"))
    if expiry:
        result["expiry_date"] = expiry.strftime(DATE_FORMAT)
    if data.get("calories") is not None:
        result["calories"] = to_non_negative_int(data.get("calories"))
    for key, alt in (("requires_fire", "requiresFire"), ("requires_water", "requiresWater")):
        value = data.get(key, data.get(alt))
        if value is not None:
            result[key] = bool(value)
    return result


def build_item_from_scan(data: Dict[str, Any], today: Optional[date] = None) -> InventoryItem:
    """Turn a partial scan result into a new item using the manual-add defaults."""
    d = dict(data or {})
    today = today or date.today()
    expiry = parse_date(d.get("expiry_date")) or today + timedelta(days=SCAN_DEFAULT_SHELF_LIFE_DAYS)
    return InventoryItem(
        name=str(d.get("name") or "").strip(),
        quantity=to_non_negative_int(d.get("quantity"), default=SCAN_DEFAULT_QUANTITY) or SCAN_DEFAULT_QUANTITY,
        max_quantity=to_non_negative_int(d.get("max_quantity"), default=SCAN_DEFAULT_MAX_QUANTITY) or SCAN_DEFAULT_MAX_QUANTITY,
        unit=d.get("unit") or DEFAULT_UNIT,
        expiry_date=expiry,
        category=d.get("category") or SCAN_DEFAULT_CATEGORY,
        notes=d.get("notes") or "",
        is_rolling_stock=d.get("is_rolling_stock", True),
        calories=d.get("calories", 0),
        requires_fire=d.get("requires_fire", False),
        requires_water=d.get("requires_water", False),
    )


# === Restock details (enrichment collaborator) ===
def get_restock_details(name: str) -> Dict[str, str]:
    """Suggest an Amazon.co.jp search query and a short reason for restocking an item.

    Raises on failure; the enrichment dispatcher owns the fallback.
    """
    data = _ask_json(RESTOCK_PROMPT_TEMPLATE.format(name=name))
    if not isinstance(data, dict):
        raise AIResponseError(f"Unexpected restock payload: {data!r}")
    query = data.get("search_query") or data.get("searchQuery") or name
    reason = data.get("reason") or ""
    return {"search_query": str(query).strip(), "reason": str(reason).strip()}


# === Advisor ===
def get_advisor_suggestions(items: Iterable[InventoryItem], is_emergency: bool) -> List[Dict[str, Any]]:
    """Three recipes (normal mode) or survival plans (emergency mode) from the current stock."""
    instructions = ADVISOR_SYSTEM_EMERGENCY if is_emergency else ADVISOR_SYSTEM_NORMAL
    prompt = ADVISOR_PROMPT_TEMPLATE.format(inventory=_describe_inventory(items))
    try:
        data = _ask_json(prompt, instructions=instructions)
    except Exception:
        logger.exception("Advisor request failed")
        return [dict(ADVISOR_ERROR_SUGGESTION)]

    if isinstance(data, dict):
        data = data.get("suggestions") or [data]
    if not isinstance(data, list):
        logger.warning("Advisor returned unexpected payload: %r", data)
        return [dict(ADVISOR_ERROR_SUGGESTION)]

    suggestions = []
    for raw in data:
        if not isinstance(raw, dict) or not raw.get("title"):
            continue
        used = raw.get("items_used", raw.get("itemsUsed")) or []
        suggestions.append({
            "title": str(raw["title"]),
            "description": str(raw.get("description") or ""),
            "items_used": [str(u) for u in used] if isinstance(used, list) else [],
        })
    return suggestions


# === Emergency actions ===
def get_emergency_actions(items: Iterable[InventoryItem]) -> List[str]:
    """Short imperative survival tips for the current stock."""
    prompt = EMERGENCY_PROMPT_TEMPLATE.format(inventory=_describe_inventory(items, with_expiry=False))
    try:
        data = _ask_json(prompt)
    except Exception:
        logger.exception("Emergency actions request failed")
        return list(EMERGENCY_ACTIONS_ERROR_FALLBACK)

    if isinstance(data, dict):
        data = data.get("actions") or []
    actions = [str(a).strip() for a in data if str(a).strip()] if isinstance(data, list) else []
    return actions or list(EMERGENCY_ACTIONS_EMPTY_FALLBACK)
