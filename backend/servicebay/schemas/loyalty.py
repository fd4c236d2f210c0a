# backend/servicebay/schemas/loyalty.py
from typing import Optional

from pydantic import Field

from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class RewardResponse(StandardizedModel):
    id: str
    name: str
    description: Optional[str] = None
    points_cost: int
    image_url: Optional[str] = None
    is_active: bool
    sort_order: int = 0


class RewardCreate(StrictRequestModel):
    id: Optional[str] = Field(None, max_length=26)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    sort_order: int = 0


class RewardUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    points_cost: Optional[int] = Field(None, gt=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class RedemptionResponse(StandardizedModel):
    redemption_id: str
    reward_id: str
    points_spent: int
    loyalty_points: int
