"""
Rotas para estantes: metadados, layout e posicionamento de itens
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List
from models.database import get_db
from schemas.layout_schemas import LayoutUpdateRequest
from schemas.placement_schemas import AssignItemRequest, PlacementWithItem
from schemas.shelf_schemas import (
    ShelfCreateRequest,
    ShelfUpdateRequest,
    ShelfResponse,
    ShelfSummary,
    ShelfWithLayout,
    LayoutUpdateResponse,
)
from services.shelf_service import ShelfService

router = APIRouter(prefix="/shelves", tags=["shelves"])


@router.get("", response_model=List[ShelfSummary])
def list_shelves(db: Session = Depends(get_db)):
    """Lista estantes (mais recentes primeiro) com contagens de itens e slots"""
    return ShelfService.list_shelves(db)


@router.post("", response_model=ShelfResponse, status_code=201)
def create_shelf(request: ShelfCreateRequest, db: Session = Depends(get_db)):
    """Cria estante vazia"""
    return ShelfService.create_shelf(db, request.name, request.description, request.photo_url)


@router.get("/{shelf_id}", response_model=ShelfWithLayout)
def get_shelf(shelf_id: int, db: Session = Depends(get_db)):
    return ShelfService.get_shelf(db, shelf_id)


@router.patch("/{shelf_id}", response_model=ShelfResponse)
def update_shelf(shelf_id: int, request: ShelfUpdateRequest, db: Session = Depends(get_db)):
    return ShelfService.update_shelf(
        db, shelf_id,
        name=request.name,
        description=request.description,
        photo_url=request.photo_url
    )


@router.delete("/{shelf_id}", status_code=204)
def delete_shelf(shelf_id: int, db: Session = Depends(get_db)):
    """Remove a estante; itens voltam ao acervo"""
    ShelfService.delete_shelf(db, shelf_id)
    return Response(status_code=204)


@router.put("/{shelf_id}/layout", response_model=LayoutUpdateResponse)
def replace_layout(shelf_id: int, request: LayoutUpdateRequest, db: Session = Depends(get_db)):
    """
    Substitui todo o layout da estante.
    Itens cujos slots deixaram de existir (ou mudaram de limites) voltam
    para "não posicionados" e são listados em displaced.
    """
    return ShelfService.replace_layout(db, shelf_id, request.rows)


@router.post("/{shelf_id}/slots/{slot_id}/items", response_model=PlacementWithItem)
def assign_item(shelf_id: int, slot_id: int, request: AssignItemRequest, db: Session = Depends(get_db)):
    """Coloca um item em um slot"""
    return ShelfService.assign_item(db, shelf_id, slot_id, request.item_id)


@router.delete("/{shelf_id}/slots/{slot_id}", response_model=PlacementWithItem)
def clear_slot(shelf_id: int, slot_id: int, db: Session = Depends(get_db)):
    """Esvazia o slot; o item continua na estante sem posição"""
    return ShelfService.clear_slot(db, shelf_id, slot_id)


@router.post("/{shelf_id}/unplaced", response_model=PlacementWithItem)
def add_unplaced(shelf_id: int, request: AssignItemRequest, db: Session = Depends(get_db)):
    """Associa item à estante sem slot"""
    return ShelfService.add_unplaced(db, shelf_id, request.item_id)
