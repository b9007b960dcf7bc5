from pydantic import BaseModel
from typing import Optional


class ItemCreateRequest(BaseModel):
    """Request para cadastro mínimo de item no catálogo"""
    title: str
    creator: Optional[str] = None
    item_type: Optional[str] = None


class ItemResponse(BaseModel):
    id: int
    title: str
    creator: str = ""
    item_type: str

    class Config:
        from_attributes = True
