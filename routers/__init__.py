from .shelves import router as shelves_router
from .placements import router as placements_router
from .items import router as items_router

__all__ = ["shelves_router", "placements_router", "items_router"]
