import logging

from fastapi import APIRouter, File, HTTPException, UploadFile

from stockpile.api import api_ai
from stockpile.api.state import get_store
from stockpile.utilities.validators import AdvisorRequest, SuggestionOutput

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


# === Scan: photo -> draft inventory item ===
@router.post("/scan")
def scan_item(image: UploadFile = File(...)):
    content = image.file.read(MAX_IMAGE_BYTES + 1)
    if not content:
        raise HTTPException(status_code=400, detail="Empty image upload")
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")
    mime_type = image.content_type or "image/jpeg"
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {mime_type}")
    identified = api_ai.identify_item_from_image(content, mime_type=mime_type)
    logger.info("Scan identified %r", identified.get("name"))
    draft = api_ai.build_item_from_scan(identified).to_dict()
    draft.pop("id", None)
    return {"identified": identified, "draft": draft}


# === Advisor: recipes / survival plans ===
@router.post("/advisor", response_model=list[SuggestionOutput])
def advisor(payload: AdvisorRequest):
    return api_ai.get_advisor_suggestions(get_store().get_inventory(), payload.is_emergency)


# === Emergency actions ===
@router.post("/emergency-actions")
def emergency_actions():
    actions = api_ai.get_emergency_actions(get_store().get_inventory())
    return {"actions": actions}
