from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from .item_schemas import ItemResponse


class PlacementResponse(BaseModel):
    id: int
    item_id: int
    shelf_id: Optional[int] = None
    slot_id: Optional[int] = None
    created_at: datetime


class PlacementWithItem(BaseModel):
    """Posicionamento junto com o item do catálogo"""
    item: ItemResponse
    placement: PlacementResponse


class AssignItemRequest(BaseModel):
    item_id: int
