"""
Serviço de estantes: orquestra geometria, reconciliação e posicionamentos.
Toda mutação roda dentro do lock da estante e de uma única transação;
ou tudo é gravado, ou nada muda.
"""
import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from models.database import run_in_transaction
from models.shelf import Shelf
from models.shelf_row import ShelfRow
from models.shelf_column import ShelfColumn
from models.slot import ShelfSlot
from models.placement import ItemPlacement
from services.errors import (
    InvalidGeometryError,
    ItemNotFoundError,
    ShelfNotFoundError,
    SlotNotFoundError,
    ValidationError,
)
from services.geometry_service import GeometryService
from services.item_catalog import ItemCatalog
from services.photo_refs import sanitize_photo_url
from services.placement_store import PlacementStore
from services.reconciliation_service import ReconciliationService
from services.shelf_locks import shelf_locks

logger = logging.getLogger(__name__)


class ShelfService:
    """Operações de estante expostas às rotas"""

    # ------------------------------------------------------------------
    # Leitura / serialização

    @staticmethod
    def _get_shelf(db: Session, shelf_id: int, for_update: bool = False) -> Shelf:
        query = db.query(Shelf).filter(Shelf.id == shelf_id)
        if for_update:
            # Trava a linha da estante em bancos com suporte (ignorado no SQLite)
            query = query.with_for_update()
        shelf = query.first()
        if not shelf:
            raise ShelfNotFoundError(f"Estante {shelf_id} não encontrada", shelf_id=shelf_id)
        return shelf

    @staticmethod
    def _get_slot(db: Session, shelf_id: int, slot_id: int) -> ShelfSlot:
        slot = db.query(ShelfSlot).filter(
            ShelfSlot.id == slot_id,
            ShelfSlot.shelf_id == shelf_id
        ).first()
        if not slot:
            raise SlotNotFoundError(
                f"Slot {slot_id} não encontrado na estante {shelf_id}",
                shelf_id=shelf_id, slot_id=slot_id
            )
        return slot

    @staticmethod
    def _require_item(db: Session, item_id: int) -> None:
        if not ItemCatalog.item_exists(db, item_id):
            raise ItemNotFoundError(f"Item {item_id} não encontrado", item_id=item_id)

    @staticmethod
    def _shelf_dict(shelf: Shelf) -> dict:
        return {
            "id": shelf.id,
            "name": shelf.name,
            "description": shelf.description or "",
            "photo_url": shelf.photo_url,
            "created_at": shelf.created_at,
            "updated_at": shelf.updated_at,
        }

    @staticmethod
    def _slot_dict(slot: ShelfSlot) -> dict:
        return {
            "id": slot.id,
            "shelf_id": slot.shelf_id,
            "row_id": slot.row_id,
            "column_id": slot.column_id,
            "row_index": slot.row_index,
            "col_index": slot.col_index,
            "x_start": slot.x_start,
            "x_end": slot.x_end,
            "y_start": slot.y_start,
            "y_end": slot.y_end,
        }

    @staticmethod
    def _placement_dict(placement: ItemPlacement) -> dict:
        return {
            "id": placement.id,
            "item_id": placement.item_id,
            "shelf_id": placement.shelf_id,
            "slot_id": placement.slot_id,
            "created_at": placement.created_at,
        }

    @staticmethod
    def _with_items(db: Session, placements: List[ItemPlacement]) -> List[dict]:
        """Junta o item do catálogo a cada posicionamento (itens sumidos são ignorados)"""
        items = ItemCatalog.items_by_ids(db, [p.item_id for p in placements])
        hydrated = []
        for placement in placements:
            item = items.get(placement.item_id)
            if item is None:
                continue
            hydrated.append({
                "item": ItemCatalog.to_dict(item),
                "placement": ShelfService._placement_dict(placement),
            })
        return hydrated

    @staticmethod
    def _shelf_with_layout(db: Session, shelf: Shelf) -> dict:
        rows = sorted(shelf.rows, key=lambda r: r.row_index)
        slots = sorted(shelf.slots, key=lambda s: (s.row_index, s.col_index))
        placements = PlacementStore.list_by_shelf(db, shelf.id)

        placed = ShelfService._with_items(db, [p for p in placements if p.slot_id is not None])
        unplaced = ShelfService._with_items(db, [p for p in placements if p.slot_id is None])

        return {
            "shelf": ShelfService._shelf_dict(shelf),
            "rows": [
                {
                    "id": row.id,
                    "row_index": row.row_index,
                    "y_start": row.y_start,
                    "y_end": row.y_end,
                    "columns": [
                        {
                            "id": col.id,
                            "col_index": col.col_index,
                            "x_start": col.x_start,
                            "x_end": col.x_end,
                        }
                        for col in sorted(row.columns, key=lambda c: c.col_index)
                    ],
                }
                for row in rows
            ],
            "slots": [ShelfService._slot_dict(s) for s in slots],
            "placements": placed,
            "unplaced": unplaced,
        }

    @staticmethod
    def get_shelf(db: Session, shelf_id: int) -> dict:
        """Estante com linhas, slots, itens posicionados e não posicionados"""
        shelf = ShelfService._get_shelf(db, shelf_id)
        return ShelfService._shelf_with_layout(db, shelf)

    @staticmethod
    def list_shelves(db: Session) -> List[dict]:
        """Resumo por estante: total de itens, posicionados e quantidade de slots"""
        item_counts = dict(
            db.query(ItemPlacement.shelf_id, func.count(ItemPlacement.id))
            .filter(ItemPlacement.shelf_id.isnot(None))
            .group_by(ItemPlacement.shelf_id)
            .all()
        )
        placed_counts = dict(
            db.query(ItemPlacement.shelf_id, func.count(ItemPlacement.id))
            .filter(ItemPlacement.shelf_id.isnot(None), ItemPlacement.slot_id.isnot(None))
            .group_by(ItemPlacement.shelf_id)
            .all()
        )
        slot_counts = dict(
            db.query(ShelfSlot.shelf_id, func.count(ShelfSlot.id))
            .group_by(ShelfSlot.shelf_id)
            .all()
        )

        shelves = db.query(Shelf).order_by(Shelf.created_at.desc(), Shelf.id.desc()).all()
        return [
            {
                "shelf": ShelfService._shelf_dict(shelf),
                "item_count": item_counts.get(shelf.id, 0),
                "placed_count": placed_counts.get(shelf.id, 0),
                "slot_count": slot_counts.get(shelf.id, 0),
            }
            for shelf in shelves
        ]

    # ------------------------------------------------------------------
    # Estante

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("name é obrigatório")
        return cleaned

    @staticmethod
    def create_shelf(
        db: Session,
        name: str,
        description: Optional[str] = None,
        photo_url: Optional[str] = None
    ) -> dict:
        """Cria estante vazia (sem linhas); o layout vem depois via replace_layout"""
        cleaned_name = ShelfService._clean_name(name)
        cleaned_photo = sanitize_photo_url(photo_url)

        def operation(session: Session):
            shelf = Shelf(
                name=cleaned_name,
                description=(description or "").strip(),
                photo_url=cleaned_photo,
            )
            session.add(shelf)
            session.flush()
            return shelf.id

        shelf_id = run_in_transaction(db, operation)
        logger.info("Estante %s criada (%s)", shelf_id, cleaned_name)
        return ShelfService._shelf_dict(ShelfService._get_shelf(db, shelf_id))

    @staticmethod
    def update_shelf(
        db: Session,
        shelf_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        photo_url: Optional[str] = None
    ) -> dict:
        """Edita metadados; campos None ficam como estão"""
        cleaned_name = ShelfService._clean_name(name) if name is not None else None
        cleaned_photo = sanitize_photo_url(photo_url) if photo_url is not None else None

        def operation(session: Session):
            shelf = ShelfService._get_shelf(session, shelf_id, for_update=True)
            if cleaned_name is not None:
                shelf.name = cleaned_name
            if description is not None:
                shelf.description = description.strip()
            if photo_url is not None:
                shelf.photo_url = cleaned_photo
            session.flush()

        run_in_transaction(db, operation)
        return ShelfService._shelf_dict(ShelfService._get_shelf(db, shelf_id))

    @staticmethod
    def delete_shelf(db: Session, shelf_id: int) -> None:
        """Remove a estante e sua geometria; os itens voltam ao acervo (não são apagados)"""
        def operation(session: Session):
            shelf = ShelfService._get_shelf(session, shelf_id, for_update=True)
            released = PlacementStore.detach_shelf(session, shelf_id)
            session.delete(shelf)
            session.flush()
            return released

        with shelf_locks.hold(shelf_id):
            db.expire_all()
            released = run_in_transaction(db, operation)
        logger.info("Estante %s removida, %d itens devolvidos ao acervo", shelf_id, released)

    # ------------------------------------------------------------------
    # Layout

    @staticmethod
    def _apply_layout(session: Session, shelf: Shelf, normalized, result) -> None:
        """Grava a nova geometria. Linhas/colunas mantêm o id quando o índice permanece"""
        removed = set(result.removed_slot_ids)
        for slot in list(shelf.slots):
            if slot.id in removed:
                shelf.slots.remove(slot)
        session.flush()

        new_row_indexes = {row.row_index for row, _ in normalized}
        for row in list(shelf.rows):
            if row.row_index not in new_row_indexes:
                shelf.rows.remove(row)
        session.flush()

        rows_by_index = {row.row_index: row for row in shelf.rows}
        columns_by_key = {}
        for row_input, columns_input in normalized:
            row = rows_by_index.get(row_input.row_index)
            if row is None:
                row = ShelfRow(row_index=row_input.row_index)
                shelf.rows.append(row)
            row.y_start = row_input.y_start
            row.y_end = row_input.y_end

            new_col_indexes = {c.col_index for c in columns_input}
            for col in list(row.columns):
                if col.col_index not in new_col_indexes:
                    row.columns.remove(col)

            cols_by_index = {col.col_index: col for col in row.columns}
            for col_input in columns_input:
                col = cols_by_index.get(col_input.col_index)
                if col is None:
                    col = ShelfColumn(col_index=col_input.col_index)
                    row.columns.append(col)
                col.x_start = col_input.x_start
                col.x_end = col_input.x_end
                columns_by_key[(row_input.row_index, col_input.col_index)] = (row, col)
        session.flush()

        slots_by_id = {slot.id: slot for slot in shelf.slots}
        for reconciled in result.slots:
            geometry = reconciled.geometry
            row, col = columns_by_key[(geometry.row_index, geometry.col_index)]
            if reconciled.slot_id is not None:
                slot = slots_by_id[reconciled.slot_id]
            else:
                slot = ShelfSlot(row_index=geometry.row_index, col_index=geometry.col_index)
                shelf.slots.append(slot)
            slot.row = row
            slot.column = col
            slot.x_start = geometry.x_start
            slot.x_end = geometry.x_end
            slot.y_start = geometry.y_start
            slot.y_end = geometry.y_end

        shelf.updated_at = func.now()
        session.flush()

    @staticmethod
    def replace_layout(db: Session, shelf_id: int, rows) -> dict:
        """
        Substitui linhas/colunas por completo e reconcilia os posicionamentos.
        Retorna {"shelf": ShelfWithLayout, "displaced": [PlacementWithItem]}.
        Geometria inválida levanta InvalidGeometryError e nada é alterado.
        """
        def operation(session: Session):
            shelf = ShelfService._get_shelf(session, shelf_id, for_update=True)
            try:
                normalized = GeometryService.normalize_rows(rows)
                new_slots = GeometryService.slots_from_normalized(normalized)
                result = ReconciliationService.reconcile(
                    list(shelf.slots),
                    new_slots,
                    PlacementStore.list_by_shelf(session, shelf_id),
                )
            except InvalidGeometryError as e:
                e.shelf_id = shelf_id
                logger.warning("Layout rejeitado para estante %s (%s): %s", shelf_id, e.reason.value, e.message)
                raise

            for placement in result.displaced:
                PlacementStore.move_to_unplaced(session, placement.id)

            ShelfService._apply_layout(session, shelf, normalized, result)

            logger.info(
                "Layout da estante %s substituído: %d slots, %d mantidos, %d deslocados",
                shelf_id, len(new_slots), len(result.retained), len(result.displaced)
            )
            return [p.id for p in result.displaced]

        with shelf_locks.hold(shelf_id):
            db.expire_all()
            displaced_ids = run_in_transaction(db, operation)

        displaced = db.query(ItemPlacement).filter(
            ItemPlacement.id.in_(displaced_ids)
        ).order_by(ItemPlacement.id).all() if displaced_ids else []

        return {
            "shelf": ShelfService.get_shelf(db, shelf_id),
            "displaced": ShelfService._with_items(db, displaced),
        }

    # ------------------------------------------------------------------
    # Posicionamentos

    @staticmethod
    def _placement_with_item(db: Session, placement_id: int) -> dict:
        placement = db.get(ItemPlacement, placement_id)
        item = ItemCatalog.item_by_id(db, placement.item_id)
        return {
            "item": ItemCatalog.to_dict(item),
            "placement": ShelfService._placement_dict(placement),
        }

    @staticmethod
    def assign_item(db: Session, shelf_id: int, slot_id: int, item_id: int) -> dict:
        """Coloca o item no slot (ver PlacementStore.assign para as regras)"""
        def operation(session: Session):
            ShelfService._get_shelf(session, shelf_id, for_update=True)
            ShelfService._get_slot(session, shelf_id, slot_id)
            ShelfService._require_item(session, item_id)
            placement = PlacementStore.assign(session, item_id, shelf_id, slot_id)
            return placement.id

        with shelf_locks.hold(shelf_id):
            db.expire_all()
            placement_id = run_in_transaction(db, operation)
        logger.info("Item %s posicionado no slot %s da estante %s", item_id, slot_id, shelf_id)
        return ShelfService._placement_with_item(db, placement_id)

    @staticmethod
    def add_unplaced(db: Session, shelf_id: int, item_id: int) -> dict:
        """Associa o item à estante sem slot"""
        def operation(session: Session):
            ShelfService._get_shelf(session, shelf_id, for_update=True)
            ShelfService._require_item(session, item_id)
            return PlacementStore.add_unplaced(session, item_id, shelf_id).id

        with shelf_locks.hold(shelf_id):
            db.expire_all()
            placement_id = run_in_transaction(db, operation)
        return ShelfService._placement_with_item(db, placement_id)

    @staticmethod
    def clear_slot(db: Session, shelf_id: int, slot_id: int) -> dict:
        """Tira o item do slot, mantendo-o na estante como não posicionado"""
        def operation(session: Session):
            ShelfService._get_shelf(session, shelf_id, for_update=True)
            ShelfService._get_slot(session, shelf_id, slot_id)
            placement = PlacementStore.get_by_slot(session, slot_id)
            if placement is None:
                raise SlotNotFoundError(
                    f"Slot {slot_id} da estante {shelf_id} está vazio",
                    shelf_id=shelf_id, slot_id=slot_id
                )
            PlacementStore.move_to_unplaced(session, placement.id)
            return placement.id

        with shelf_locks.hold(shelf_id):
            db.expire_all()
            placement_id = run_in_transaction(db, operation)
        return ShelfService._placement_with_item(db, placement_id)

    @staticmethod
    def remove_item(db: Session, item_id: int) -> None:
        """Apaga o posicionamento do item. Item sem posicionamento: nada acontece"""
        while True:
            current = PlacementStore.get_by_item(db, item_id)
            if current is None:
                return
            shelf_id = current.shelf_id

            def operation(session: Session):
                placement = PlacementStore.get_by_item(session, item_id)
                if placement is None:
                    return True
                # O item mudou de estante entre a leitura e o lock: tenta de novo
                if placement.shelf_id != shelf_id:
                    return False
                PlacementStore.unassign(session, item_id)
                return True

            with shelf_locks.hold(shelf_id):
                db.expire_all()
                done = run_in_transaction(db, operation)
            if done:
                logger.info("Posicionamento do item %s removido (estante %s)", item_id, shelf_id)
                return
