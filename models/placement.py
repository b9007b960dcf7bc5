from sqlalchemy import Column, Integer, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .database import Base


class ItemPlacement(Base):
    """
    Tabela canônica de posicionamento, uma linha por item no sistema todo.
    - slot_id nulo: item "não posicionado" mas ainda associado à estante
    - shelf_id nulo: item voltou ao acervo (estante removida)
    """
    __tablename__ = "item_placements"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    shelf_id = Column(Integer, ForeignKey("shelves.id", ondelete="SET NULL"), nullable=True, index=True)
    slot_id = Column(Integer, ForeignKey("shelf_slots.id", ondelete="SET NULL"), unique=True, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    item = relationship("Item", back_populates="placement")
    slot = relationship("ShelfSlot", back_populates="placement")

    @property
    def is_active(self) -> bool:
        return self.shelf_id is not None
