"""
Taxonomia de erros do domínio de estantes.
Todos são determinísticos (validação) e nunca são repetidos internamente.
"""
import enum
from typing import Optional


class GeometryErrorReason(str, enum.Enum):
    OVERLAP = "overlap"
    BAD_RANGE = "bad-range"
    NON_DENSE_INDEX = "non-dense-index"
    AMBIGUOUS_MAPPING = "ambiguous-mapping"


class ShelfError(Exception):
    """Falha estruturada: tipo + identificadores envolvidos"""
    kind = "shelf_error"

    def __init__(
        self,
        message: str,
        shelf_id: Optional[int] = None,
        slot_id: Optional[int] = None,
        item_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.shelf_id = shelf_id
        self.slot_id = slot_id
        self.item_id = item_id

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "message": self.message}
        for key in ("shelf_id", "slot_id", "item_id"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


class InvalidGeometryError(ShelfError):
    kind = "invalid_geometry"

    def __init__(self, reason: GeometryErrorReason, message: str, shelf_id: Optional[int] = None):
        super().__init__(message, shelf_id=shelf_id)
        self.reason = GeometryErrorReason(reason)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["reason"] = self.reason.value
        return payload


class SlotOccupiedError(ShelfError):
    kind = "slot_occupied"


class ItemAlreadyPlacedError(ShelfError):
    kind = "item_already_placed"


class SlotNotFoundError(ShelfError):
    kind = "slot_not_found"


class ShelfNotFoundError(ShelfError):
    kind = "shelf_not_found"


class ItemNotFoundError(ShelfError):
    kind = "item_not_found"


class ValidationError(ShelfError):
    kind = "validation"
