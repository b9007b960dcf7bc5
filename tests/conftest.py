import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models.database import Base, get_db, enable_sqlite_foreign_keys
from schemas.layout_schemas import RowInput, ColumnInput
from services.item_catalog import ItemCatalog


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    import main

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_items(db):
    def _make(count, prefix="Livro"):
        ids = [ItemCatalog.create_item(db, f"{prefix} {n}", "Autor").id for n in range(count)]
        db.commit()
        return ids
    return _make


def grid(rows, columns, y_bounds=None):
    """Grade uniforme: rows linhas × columns colunas (columns pode ser lista por linha)"""
    per_row = columns if isinstance(columns, list) else [columns] * rows
    result = []
    for r in range(rows):
        y_start, y_end = y_bounds[r] if y_bounds else (r / rows, (r + 1) / rows)
        count = per_row[r]
        result.append(RowInput(
            row_index=r,
            y_start=y_start,
            y_end=y_end,
            columns=[
                ColumnInput(col_index=c, x_start=c / count, x_end=(c + 1) / count)
                for c in range(count)
            ],
        ))
    return result


def slot_at(layout, row_index, col_index):
    for slot in layout["slots"]:
        if slot["row_index"] == row_index and slot["col_index"] == col_index:
            return slot
    raise AssertionError(f"slot {row_index}/{col_index} ausente")
