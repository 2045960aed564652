"""Inventory seed loading (read-only; the store itself lives in memory)."""

import json
import logging
from pathlib import Path
from typing import List, Optional

from stockpile.domain.InventoryItem import InventoryItem
from stockpile.infra.paths import SEED_INVENTORY_FILE

logger = logging.getLogger(__name__)


def reading_from_seed(path: Optional[Path] = None) -> List[InventoryItem]:
    """Load the demo inventory. A missing or broken file yields an empty list."""
    seed_path = Path(path) if path else SEED_INVENTORY_FILE
    try:
        with open(seed_path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning("Seed inventory not found: %s", seed_path)
        return []
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error reading seed inventory %s: %s", seed_path, e)
        return []
    if not isinstance(raw, list):
        logger.error("Seed inventory %s is not a list", seed_path)
        return []
    items = [InventoryItem.from_dict(entry) for entry in raw if isinstance(entry, dict)]
    logger.info("Loaded %d seed item(s) from %s", len(items), seed_path.name)
    return items
