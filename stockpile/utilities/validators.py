"""
Input validation schemas using Pydantic for the HTTP layer.
"""
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from stockpile.utilities.constants import DEFAULT_UNIT

Category = Literal["water", "staple", "main", "side", "hygiene", "other"]
Location = Literal["pantry", "fridge", "emergency_bag"]


class InventoryItemInput(BaseModel):
    """Schema for a new inventory item."""
    name: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(1, ge=0, le=100000)
    max_quantity: Optional[int] = Field(None, ge=0, le=100000)
    unit: str = Field(DEFAULT_UNIT, min_length=1, max_length=20)
    expiry_date: Optional[date] = None
    category: Category = "other"
    notes: str = Field("", max_length=500)
    is_rolling_stock: bool = True
    calories: int = Field(0, ge=0)
    requires_fire: bool = False
    requires_water: bool = False
    location: Location = "pantry"

    @field_validator('name', 'unit')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('Value cannot be blank')
        return v


class InventoryItemUpdate(BaseModel):
    """Partial update of an inventory item; only provided fields are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    quantity: Optional[int] = Field(None, ge=0, le=100000)
    max_quantity: Optional[int] = Field(None, ge=0, le=100000)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    expiry_date: Optional[date] = None
    category: Optional[Category] = None
    notes: Optional[str] = Field(None, max_length=500)
    is_rolling_stock: Optional[bool] = None
    calories: Optional[int] = Field(None, ge=0)
    requires_fire: Optional[bool] = None
    requires_water: Optional[bool] = None
    location: Optional[Location] = None

    @field_validator('name', 'unit')
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    # Only max_quantity and expiry_date can be cleared with null
    @field_validator('name', 'quantity', 'unit', 'category', 'notes', 'is_rolling_stock',
                     'calories', 'requires_fire', 'requires_water', 'location')
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class QuantityDeltaInput(BaseModel):
    """Schema for a relative quantity change (+1 / -1 buttons)."""
    delta: int = Field(..., ge=-100000, le=100000)


class QuantitySetInput(BaseModel):
    """Schema for an absolute quantity."""
    quantity: int = Field(..., ge=0, le=100000)


class AdvisorRequest(BaseModel):
    """Schema for an advisor suggestion request."""
    is_emergency: bool = False


class SuggestionOutput(BaseModel):
    """A single advisor suggestion as returned to clients."""
    title: str
    description: str = ""
    items_used: List[str] = Field(default_factory=list)
