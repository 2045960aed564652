from pathlib import Path

# Centralized paths for data files (single source of truth)
DATA_DIR = (Path(__file__).parent.parent / 'data').resolve()
SEED_INVENTORY_FILE = DATA_DIR / 'seed_inventory.json'

__all__ = ['DATA_DIR', 'SEED_INVENTORY_FILE']
