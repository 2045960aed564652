"""Configuration management for the Stockpile application."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# AI backend
OPENAI_API_KEY: Final[str] = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL: Final[str] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_VISION_MODEL: Final[str] = os.getenv('OPENAI_VISION_MODEL', 'gpt-4o-mini')

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO').upper()
SEED_INVENTORY: Final[bool] = os.getenv('SEED_INVENTORY', 'True').lower() == 'true'

# Restock enrichment: seconds before an AI lookup is abandoned
ENRICHMENT_TIMEOUT: Final[float] = float(os.getenv('ENRICHMENT_TIMEOUT', '20'))

# Dashboard
EXPIRY_WINDOW_DAYS: Final[int] = int(os.getenv('EXPIRY_WINDOW_DAYS', '30'))
DAILY_CALORIES: Final[int] = int(os.getenv('DAILY_CALORIES', '2000'))

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = BASE_DIR / 'data'
