"""Domain-level exceptions.

The HTTP layer maps each subclass onto a status code, so callers below it
raise these instead of HTTPException.
"""


class StockpileError(Exception):
    """Base class for all stockpile errors."""


class ItemNotFoundError(StockpileError, KeyError):
    """An inventory item or shopping entry with the given id does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} '{item_id}' not found")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        return f"{self.kind} '{self.item_id}' not found"


class AIUnavailableError(StockpileError):
    """The AI backend is not configured (missing key) or could not be reached."""


class AIResponseError(StockpileError):
    """The AI backend answered, but not with usable JSON."""
