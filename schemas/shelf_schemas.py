from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from .placement_schemas import PlacementWithItem


class ShelfCreateRequest(BaseModel):
    """Request para criação de estante"""
    name: str
    description: Optional[str] = None
    photo_url: Optional[str] = None


class ShelfUpdateRequest(BaseModel):
    """Request para edição de metadados (campos ausentes não mudam)"""
    name: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None


class ShelfResponse(BaseModel):
    id: int
    name: str
    description: str = ""
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ColumnResponse(BaseModel):
    id: int
    col_index: int
    x_start: float
    x_end: float


class RowResponse(BaseModel):
    id: int
    row_index: int
    y_start: float
    y_end: float
    columns: List[ColumnResponse] = []


class SlotResponse(BaseModel):
    """Slot derivado (linha × coluna)"""
    id: int
    shelf_id: int
    row_id: int
    column_id: int
    row_index: int
    col_index: int
    x_start: float
    x_end: float
    y_start: float
    y_end: float


class ShelfWithLayout(BaseModel):
    """Estante + geometria + itens posicionados e não posicionados"""
    shelf: ShelfResponse
    rows: List[RowResponse] = []
    slots: List[SlotResponse] = []
    placements: List[PlacementWithItem] = []
    unplaced: List[PlacementWithItem] = []


class ShelfSummary(BaseModel):
    shelf: ShelfResponse
    item_count: int
    placed_count: int
    slot_count: int


class LayoutUpdateResponse(BaseModel):
    """Resultado da troca de layout: itens deslocados precisam de reposicionamento manual"""
    shelf: ShelfWithLayout
    displaced: List[PlacementWithItem] = []
