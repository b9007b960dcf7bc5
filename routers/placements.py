"""
Rotas para remoção de posicionamentos
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from models.database import get_db
from services.shelf_service import ShelfService

router = APIRouter(prefix="/placements", tags=["placements"])


@router.delete("/items/{item_id}", status_code=204)
def remove_item(item_id: int, db: Session = Depends(get_db)):
    """Remove o item de onde estiver. Item sem posicionamento também retorna 204"""
    ShelfService.remove_item(db, item_id)
    return Response(status_code=204)
