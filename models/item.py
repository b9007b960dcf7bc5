from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .database import Base


class Item(Base):
    """Registro mínimo do catálogo (busca/importação ficam fora deste serviço)"""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    creator = Column(String, nullable=False, default="")
    item_type = Column(String, nullable=False, default="book")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    placement = relationship("ItemPlacement", back_populates="item", uselist=False, passive_deletes=True)
