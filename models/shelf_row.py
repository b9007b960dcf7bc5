from sqlalchemy import Column, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class ShelfRow(Base):
    """Faixa horizontal da estante, limites em y normalizados (0..1)"""
    __tablename__ = "shelf_rows"

    id = Column(Integer, primary_key=True, index=True)
    shelf_id = Column(Integer, ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False, index=True)
    row_index = Column(Integer, nullable=False)  # 0..N-1
    y_start = Column(Float, nullable=False)
    y_end = Column(Float, nullable=False)

    shelf = relationship("Shelf", back_populates="rows")
    columns = relationship(
        "ShelfColumn",
        back_populates="row",
        cascade="all, delete-orphan",
        order_by="ShelfColumn.col_index",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("shelf_id", "row_index", name="uq_shelf_row_index"),
    )
