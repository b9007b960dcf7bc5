from pydantic import BaseModel
from typing import List


class ColumnInput(BaseModel):
    """Coluna de uma linha: limites x normalizados"""
    col_index: int
    x_start: float
    x_end: float


class RowInput(BaseModel):
    """Linha da estante: limites y normalizados + colunas"""
    row_index: int
    y_start: float
    y_end: float
    columns: List[ColumnInput] = []


class LayoutUpdateRequest(BaseModel):
    """Substituição completa do layout (nunca parcial)"""
    rows: List[RowInput] = []
