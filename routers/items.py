"""
Rotas mínimas do catálogo de itens
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from models.database import get_db, run_in_transaction
from schemas.item_schemas import ItemCreateRequest, ItemResponse
from services.errors import ValidationError
from services.item_catalog import ItemCatalog

router = APIRouter(prefix="/items", tags=["items"])


@router.post("", response_model=ItemResponse, status_code=201)
def create_item(request: ItemCreateRequest, db: Session = Depends(get_db)):
    if not request.title.strip():
        raise ValidationError("title é obrigatório")
    item_id = run_in_transaction(
        db,
        lambda session: ItemCatalog.create_item(session, request.title, request.creator, request.item_type).id
    )
    return ItemCatalog.to_dict(ItemCatalog.item_by_id(db, item_id))


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(item_id: int, db: Session = Depends(get_db)):
    return ItemCatalog.to_dict(ItemCatalog.item_by_id(db, item_id))
