"""
Modelo geométrico da estante: linhas e colunas com limites normalizados (0..1)
e a grade de slots derivada (produto linhas × colunas de cada linha)
"""
import math
from typing import List, NamedTuple, Tuple
from services.errors import InvalidGeometryError, GeometryErrorReason


class GeometrySlot(NamedTuple):
    """Slot calculado (ainda sem identidade persistida)"""
    row_index: int
    col_index: int
    x_start: float
    x_end: float
    y_start: float
    y_end: float

    @property
    def key(self) -> Tuple[int, int]:
        return (self.row_index, self.col_index)


class GeometryService:
    """Valida a geometria e constrói a grade de slots. Funções puras, sem I/O"""

    @staticmethod
    def _check_range(start, end, label: str):
        if start is None or end is None:
            raise InvalidGeometryError(GeometryErrorReason.BAD_RANGE, f"{label}: limites ausentes")
        if not (math.isfinite(start) and math.isfinite(end)):
            raise InvalidGeometryError(GeometryErrorReason.BAD_RANGE, f"{label}: limites não finitos")
        if start < 0 or end > 1:
            raise InvalidGeometryError(
                GeometryErrorReason.BAD_RANGE,
                f"{label}: limites [{start}, {end}] fora de [0, 1]"
            )
        if start >= end:
            raise InvalidGeometryError(
                GeometryErrorReason.BAD_RANGE,
                f"{label}: início {start} deve ser menor que fim {end}"
            )

    @staticmethod
    def _check_dense(indexes: List[int], label: str):
        """Índices precisam ser uma permutação exata de 0..N-1"""
        if sorted(indexes) != list(range(len(indexes))):
            raise InvalidGeometryError(
                GeometryErrorReason.NON_DENSE_INDEX,
                f"{label}: índices {sorted(indexes)} não formam a sequência 0..{len(indexes) - 1}"
            )

    @staticmethod
    def normalize_rows(rows) -> list:
        """
        Valida linhas/colunas e devolve as linhas ordenadas por row_index,
        cada uma como (row, colunas ordenadas por col_index).
        Levanta InvalidGeometryError sem aplicar nada parcialmente.
        """
        rows = list(rows or [])

        for row in rows:
            GeometryService._check_range(row.y_start, row.y_end, f"linha {row.row_index}")
            for col in row.columns or []:
                GeometryService._check_range(
                    col.x_start, col.x_end, f"linha {row.row_index} coluna {col.col_index}"
                )

        GeometryService._check_dense([r.row_index for r in rows], "linhas")
        for row in rows:
            GeometryService._check_dense(
                [c.col_index for c in row.columns or []], f"colunas da linha {row.row_index}"
            )

        ordered_rows = sorted(rows, key=lambda r: r.row_index)

        # Linhas encostadas (fim == início) são permitidas; a ordem em y deve seguir row_index
        for prev, cur in zip(ordered_rows, ordered_rows[1:]):
            if cur.y_start < prev.y_end:
                raise InvalidGeometryError(
                    GeometryErrorReason.OVERLAP,
                    f"linha {cur.row_index} (y_start={cur.y_start}) sobrepõe "
                    f"linha {prev.row_index} (y_end={prev.y_end})"
                )

        normalized = []
        for row in ordered_rows:
            columns = sorted(row.columns or [], key=lambda c: c.col_index)
            # Colunas só não podem se sobrepor; col_index não precisa seguir a ordem em x
            by_x = sorted(columns, key=lambda c: c.x_start)
            for prev, cur in zip(by_x, by_x[1:]):
                if cur.x_start < prev.x_end:
                    raise InvalidGeometryError(
                        GeometryErrorReason.OVERLAP,
                        f"linha {row.row_index}: coluna {cur.col_index} (x_start={cur.x_start}) "
                        f"sobrepõe coluna {prev.col_index} (x_end={prev.x_end})"
                    )
            normalized.append((row, columns))

        return normalized

    @staticmethod
    def build_slots(rows) -> List[GeometrySlot]:
        """
        Constrói a grade de slots em ordem row-major (linha, depois coluna).
        Cada slot herda y da linha e x da coluna.
        """
        return GeometryService.slots_from_normalized(GeometryService.normalize_rows(rows))

    @staticmethod
    def slots_from_normalized(normalized) -> List[GeometrySlot]:
        slots = []
        for row, columns in normalized:
            for col in columns:
                slots.append(GeometrySlot(
                    row_index=row.row_index,
                    col_index=col.col_index,
                    x_start=col.x_start,
                    x_end=col.x_end,
                    y_start=row.y_start,
                    y_end=row.y_end,
                ))
        return slots
