"""
Adaptador do catálogo de itens (colaborador externo).
O núcleo só precisa de ItemByID e ItemExists; create_item existe para o seed
e para a rota mínima de itens.
"""
from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session
from models.item import Item
from services.errors import ItemNotFoundError


class ItemCatalog:
    """Consultas ao catálogo de itens"""

    @staticmethod
    def item_by_id(db: Session, item_id: int) -> Item:
        item = db.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} não encontrado", item_id=item_id)
        return item

    @staticmethod
    def item_exists(db: Session, item_id: int) -> bool:
        return db.query(Item.id).filter(Item.id == item_id).first() is not None

    @staticmethod
    def items_by_ids(db: Session, item_ids: Iterable[int]) -> Dict[int, Item]:
        ids = list(set(item_ids))
        if not ids:
            return {}
        return {item.id: item for item in db.query(Item).filter(Item.id.in_(ids)).all()}

    @staticmethod
    def create_item(db: Session, title: str, creator: Optional[str] = None, item_type: Optional[str] = None) -> Item:
        item = Item(title=title.strip(), creator=(creator or "").strip(), item_type=item_type or "book")
        db.add(item)
        db.flush()
        return item

    @staticmethod
    def to_dict(item: Item) -> dict:
        return {
            "id": item.id,
            "title": item.title,
            "creator": item.creator,
            "item_type": item.item_type,
        }
