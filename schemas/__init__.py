from .layout_schemas import ColumnInput, RowInput, LayoutUpdateRequest
from .item_schemas import ItemCreateRequest, ItemResponse
from .placement_schemas import PlacementResponse, PlacementWithItem, AssignItemRequest
from .shelf_schemas import (
    ShelfCreateRequest,
    ShelfUpdateRequest,
    ShelfResponse,
    ColumnResponse,
    RowResponse,
    SlotResponse,
    ShelfWithLayout,
    ShelfSummary,
    LayoutUpdateResponse,
)

__all__ = [
    "ColumnInput",
    "RowInput",
    "LayoutUpdateRequest",
    "ItemCreateRequest",
    "ItemResponse",
    "PlacementResponse",
    "PlacementWithItem",
    "AssignItemRequest",
    "ShelfCreateRequest",
    "ShelfUpdateRequest",
    "ShelfResponse",
    "ColumnResponse",
    "RowResponse",
    "SlotResponse",
    "ShelfWithLayout",
    "ShelfSummary",
    "LayoutUpdateResponse",
]
