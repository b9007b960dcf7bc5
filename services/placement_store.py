"""
Armazenamento de posicionamentos (item → estante/slot).
Único caminho de escrita na tabela item_placements: nenhum outro componente
altera posicionamentos diretamente.
"""
import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.placement import ItemPlacement
from services.errors import ItemAlreadyPlacedError, SlotOccupiedError

logger = logging.getLogger(__name__)


class PlacementStore:
    """Garante no máximo um item por slot e no máximo um posicionamento por item"""

    @staticmethod
    def get_by_item(db: Session, item_id: int) -> Optional[ItemPlacement]:
        return db.query(ItemPlacement).filter(ItemPlacement.item_id == item_id).first()

    @staticmethod
    def get_by_slot(db: Session, slot_id: int) -> Optional[ItemPlacement]:
        return db.query(ItemPlacement).filter(ItemPlacement.slot_id == slot_id).first()

    @staticmethod
    def _flush(db: Session, item_id: int, shelf_id: Optional[int], slot_id: Optional[int]):
        """Flush traduzindo violação de unicidade (escritor concorrente) para erro de domínio"""
        try:
            db.flush()
        except IntegrityError as e:
            if "slot_id" in str(e.orig):
                raise SlotOccupiedError(
                    f"Slot {slot_id} já está ocupado",
                    shelf_id=shelf_id, slot_id=slot_id, item_id=item_id
                ) from e
            raise ItemAlreadyPlacedError(
                f"Item {item_id} já possui posicionamento",
                shelf_id=shelf_id, slot_id=slot_id, item_id=item_id
            ) from e

    @staticmethod
    def assign(db: Session, item_id: int, shelf_id: int, slot_id: int) -> ItemPlacement:
        """
        Coloca o item no slot.
        - SlotOccupiedError se o slot tem outro item (nunca sobrescreve)
        - ItemAlreadyPlacedError se o item já está em outro slot ou outra estante
        - Idempotente se o par (item, slot) já é o posicionamento atual
        Um item não posicionado na mesma estante pode ser colocado no slot.
        """
        occupant = PlacementStore.get_by_slot(db, slot_id)
        if occupant is not None and occupant.item_id != item_id:
            raise SlotOccupiedError(
                f"Slot {slot_id} já está ocupado pelo item {occupant.item_id}",
                shelf_id=shelf_id, slot_id=slot_id, item_id=item_id
            )

        current = PlacementStore.get_by_item(db, item_id)
        if current is not None:
            if current.shelf_id == shelf_id and current.slot_id == slot_id:
                logger.debug("Item %s já está no slot %s, nada a fazer", item_id, slot_id)
                return current

            unplaced_here = current.shelf_id == shelf_id and current.slot_id is None
            if current.is_active and not unplaced_here:
                raise ItemAlreadyPlacedError(
                    f"Item {item_id} já está posicionado na estante {current.shelf_id}"
                    f" (slot {current.slot_id}); remova-o antes",
                    shelf_id=current.shelf_id, slot_id=current.slot_id, item_id=item_id
                )

            current.shelf_id = shelf_id
            current.slot_id = slot_id
            placement = current
        else:
            placement = ItemPlacement(item_id=item_id, shelf_id=shelf_id, slot_id=slot_id)
            db.add(placement)

        PlacementStore._flush(db, item_id, shelf_id, slot_id)
        return placement

    @staticmethod
    def add_unplaced(db: Session, item_id: int, shelf_id: int) -> ItemPlacement:
        """Associa o item à estante sem slot (aguardando posicionamento manual)"""
        current = PlacementStore.get_by_item(db, item_id)
        if current is not None:
            if current.shelf_id == shelf_id:
                return current
            if current.is_active:
                raise ItemAlreadyPlacedError(
                    f"Item {item_id} já está na estante {current.shelf_id}",
                    shelf_id=current.shelf_id, slot_id=current.slot_id, item_id=item_id
                )
            current.shelf_id = shelf_id
            current.slot_id = None
            placement = current
        else:
            placement = ItemPlacement(item_id=item_id, shelf_id=shelf_id, slot_id=None)
            db.add(placement)

        PlacementStore._flush(db, item_id, shelf_id, None)
        return placement

    @staticmethod
    def unassign(db: Session, item_id: int) -> bool:
        """Remove o posicionamento do item. Sem posicionamento não é erro"""
        placement = PlacementStore.get_by_item(db, item_id)
        if placement is None:
            return False
        db.delete(placement)
        db.flush()
        return True

    @staticmethod
    def move_to_unplaced(db: Session, placement_id: int) -> Optional[ItemPlacement]:
        """Limpa o slot e mantém a estante (usado pela reconciliação)"""
        placement = db.get(ItemPlacement, placement_id)
        if placement is None:
            return None
        placement.slot_id = None
        db.flush()
        return placement

    @staticmethod
    def detach_shelf(db: Session, shelf_id: int) -> int:
        """Devolve ao acervo todos os itens da estante (estante sendo removida)"""
        placements = PlacementStore.list_by_shelf(db, shelf_id)
        for placement in placements:
            placement.slot_id = None
            placement.shelf_id = None
        db.flush()
        return len(placements)

    @staticmethod
    def list_by_shelf(db: Session, shelf_id: int) -> List[ItemPlacement]:
        """Todos os posicionamentos da estante, com e sem slot"""
        return db.query(ItemPlacement).filter(
            ItemPlacement.shelf_id == shelf_id
        ).order_by(ItemPlacement.id).all()
