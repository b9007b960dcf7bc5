"""
Script para popular o banco com uma estante de exemplo:
- 3 linhas (0..2), cada uma com 4 colunas = 12 slots
- 10 itens no catálogo, 6 posicionados e 1 não posicionado
"""
from sqlalchemy.orm import Session
from models.database import SessionLocal, engine, Base, run_in_transaction
from models.shelf import Shelf
from schemas.layout_schemas import RowInput, ColumnInput
from services.item_catalog import ItemCatalog
from services.shelf_service import ShelfService

ROWS = 3
COLUMNS = 4
MARGIN = 0.02


def build_grid(rows: int, columns: int, margin: float = MARGIN):
    """Grade uniforme dentro da margem da foto"""
    span = 1 - 2 * margin
    row_height = span / rows
    col_width = span / columns
    return [
        RowInput(
            row_index=r,
            y_start=round(margin + r * row_height, 6),
            y_end=round(margin + (r + 1) * row_height, 6),
            columns=[
                ColumnInput(
                    col_index=c,
                    x_start=round(margin + c * col_width, 6),
                    x_end=round(margin + (c + 1) * col_width, 6),
                )
                for c in range(columns)
            ],
        )
        for r in range(rows)
    ]


def seed_database():
    """Popula o banco com a estante de exemplo"""
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        if db.query(Shelf).count() > 0:
            print("Banco já possui dados. Use --force para recriar.")
            return

        shelf = ShelfService.create_shelf(db, "Sala", "Estante da sala de estar")
        layout = ShelfService.replace_layout(db, shelf["id"], build_grid(ROWS, COLUMNS))
        slots = layout["shelf"]["slots"]

        item_ids = run_in_transaction(db, lambda session: [
            ItemCatalog.create_item(session, f"Livro {n}", f"Autor {n}").id
            for n in range(1, 11)
        ])

        for item_id, slot in zip(item_ids[:6], slots):
            ShelfService.assign_item(db, shelf["id"], slot["id"], item_id)
        ShelfService.add_unplaced(db, shelf["id"], item_ids[6])

        print(f"✅ Seed concluído!")
        print(f"   - estante {shelf['id']} com {len(slots)} slots")
        print(f"   - {len(item_ids)} itens criados, 6 posicionados, 1 não posicionado")

    except Exception as e:
        db.rollback()
        print(f"❌ Erro ao fazer seed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    import sys
    if "--force" in sys.argv:
        # Deletar tudo e recriar
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        print("⚠️  Banco recriado do zero")

    seed_database()
