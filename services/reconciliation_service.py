"""
Reconciliação de posicionamentos quando a geometria da estante muda.

Um slot novo é o "mesmo slot lógico" de um slot antigo se e somente se tem o
mesmo (row_index, col_index) e nenhum limite mudou mais que SLOT_BOUNDS_EPSILON.
Nesse caso o id do slot é reaproveitado e o item continua nele. Qualquer outro
caso desloca o item (slot_id nulo, continua na estante).
"""
import math
import os
from typing import Dict, List, NamedTuple, Optional, Tuple
from dotenv import load_dotenv
from services.errors import InvalidGeometryError, GeometryErrorReason
from services.geometry_service import GeometrySlot

load_dotenv()

BOUND_FIELDS = ("x_start", "x_end", "y_start", "y_end")


def parse_epsilon(raw: str) -> float:
    """Tolerância precisa ser finita e não negativa"""
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"SLOT_BOUNDS_EPSILON inválido: {raw!r}")
    return value


class ReconciledSlot(NamedTuple):
    """Slot da nova geometria; slot_id é o id reaproveitado ou None (slot novo)"""
    slot_id: Optional[int]
    geometry: GeometrySlot


class ReconciliationResult(NamedTuple):
    slots: List[ReconciledSlot]
    retained: list
    displaced: list
    removed_slot_ids: List[int]


class ReconciliationService:
    """Compara slots antigos × novos contra os posicionamentos atuais"""

    # Tolerância para "limites mudaram de forma desprezível" (fração do eixo normalizado)
    EPSILON = parse_epsilon(os.getenv("SLOT_BOUNDS_EPSILON", "1e-6"))

    @staticmethod
    def bounds_equivalent(old_slot, new_slot, epsilon: Optional[float] = None) -> bool:
        eps = ReconciliationService.EPSILON if epsilon is None else epsilon
        return all(
            abs(getattr(old_slot, field) - getattr(new_slot, field)) <= eps
            for field in BOUND_FIELDS
        )

    @staticmethod
    def _index_by_cell(slots, label: str) -> Dict[Tuple[int, int], object]:
        index = {}
        for slot in slots:
            key = (slot.row_index, slot.col_index)
            if key in index:
                # Nunca mesclar: dois candidatos para a mesma célula é erro, não heurística
                raise InvalidGeometryError(
                    GeometryErrorReason.AMBIGUOUS_MAPPING,
                    f"{label}: mais de um slot para linha {key[0]} coluna {key[1]}"
                )
            index[key] = slot
        return index

    @staticmethod
    def reconcile(
        old_slots,
        new_slots: List[GeometrySlot],
        placements,
        epsilon: Optional[float] = None,
    ) -> ReconciliationResult:
        """
        Args:
            old_slots: slots persistidos (precisam de id, row_index, col_index e limites)
            new_slots: saída de GeometryService.build_slots
            placements: posicionamentos atuais da estante (id, slot_id)

        Não altera nada; quem aplica o resultado é o ShelfService, numa única transação.
        O resultado não depende da ordem das entradas.
        """
        old_index = ReconciliationService._index_by_cell(old_slots, "slots atuais")
        new_index = ReconciliationService._index_by_cell(new_slots, "slots novos")

        reused_ids: Dict[Tuple[int, int], int] = {}
        for key, new_slot in new_index.items():
            old_slot = old_index.get(key)
            if old_slot is not None and ReconciliationService.bounds_equivalent(old_slot, new_slot, epsilon):
                reused_ids[key] = old_slot.id

        slots = [
            ReconciledSlot(slot_id=reused_ids.get(key), geometry=new_index[key])
            for key in sorted(new_index)
        ]

        kept_ids = set(reused_ids.values())
        removed_slot_ids = sorted(s.id for s in old_slots if s.id not in kept_ids)

        old_by_id = {s.id: s for s in old_slots}
        retained = []
        displaced = []
        for placement in sorted(placements, key=lambda p: p.id):
            # Já não posicionados ficam como estão
            if placement.slot_id is None:
                continue
            old_slot = old_by_id.get(placement.slot_id)
            if old_slot is not None and (old_slot.row_index, old_slot.col_index) in reused_ids:
                retained.append(placement)
            else:
                displaced.append(placement)

        return ReconciliationResult(
            slots=slots,
            retained=retained,
            displaced=displaced,
            removed_slot_ids=removed_slot_ids,
        )
