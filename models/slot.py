from sqlalchemy import Column, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class ShelfSlot(Base):
    """Célula derivada (linha × coluna). Nunca editada diretamente"""
    __tablename__ = "shelf_slots"

    id = Column(Integer, primary_key=True, index=True)
    shelf_id = Column(Integer, ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False, index=True)
    row_id = Column(Integer, ForeignKey("shelf_rows.id", ondelete="CASCADE"), nullable=False)
    column_id = Column(Integer, ForeignKey("shelf_columns.id", ondelete="CASCADE"), nullable=False)
    row_index = Column(Integer, nullable=False)
    col_index = Column(Integer, nullable=False)
    x_start = Column(Float, nullable=False)
    x_end = Column(Float, nullable=False)
    y_start = Column(Float, nullable=False)
    y_end = Column(Float, nullable=False)

    shelf = relationship("Shelf", back_populates="slots")
    row = relationship("ShelfRow")
    column = relationship("ShelfColumn")
    placement = relationship("ItemPlacement", back_populates="slot", uselist=False)

    __table_args__ = (
        UniqueConstraint("shelf_id", "row_index", "col_index", name="uq_shelf_row_col"),
    )
