from .database import Base, get_db, engine, SessionLocal, run_in_transaction
from .shelf import Shelf
from .shelf_row import ShelfRow
from .shelf_column import ShelfColumn
from .slot import ShelfSlot
from .item import Item
from .placement import ItemPlacement

__all__ = [
    "Base",
    "get_db",
    "engine",
    "SessionLocal",
    "run_in_transaction",
    "Shelf",
    "ShelfRow",
    "ShelfColumn",
    "ShelfSlot",
    "Item",
    "ItemPlacement",
]
