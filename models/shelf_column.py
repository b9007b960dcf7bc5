from sqlalchemy import Column, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class ShelfColumn(Base):
    """Divisão de uma linha, limites em x normalizados (0..1)"""
    __tablename__ = "shelf_columns"

    id = Column(Integer, primary_key=True, index=True)
    row_id = Column(Integer, ForeignKey("shelf_rows.id", ondelete="CASCADE"), nullable=False, index=True)
    col_index = Column(Integer, nullable=False)  # 0..M-1 dentro da linha
    x_start = Column(Float, nullable=False)
    x_end = Column(Float, nullable=False)

    row = relationship("ShelfRow", back_populates="columns")

    __table_args__ = (
        UniqueConstraint("row_id", "col_index", name="uq_row_col_index"),
    )
