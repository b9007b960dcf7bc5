from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .database import Base


class Shelf(Base):
    """Estante física: metadados + foto. Linhas/colunas/slots pertencem a ela"""
    __tablename__ = "shelves"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    rows = relationship(
        "ShelfRow",
        back_populates="shelf",
        cascade="all, delete-orphan",
        order_by="ShelfRow.row_index",
        passive_deletes=True,
    )
    slots = relationship(
        "ShelfSlot",
        back_populates="shelf",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
