import threading

import pytest

from conftest import grid, slot_at
from models.item import Item
from models.placement import ItemPlacement
from models.shelf_row import ShelfRow
from models.slot import ShelfSlot
from schemas.layout_schemas import RowInput, ColumnInput
from services.errors import (
    InvalidGeometryError,
    GeometryErrorReason,
    ItemAlreadyPlacedError,
    ItemNotFoundError,
    ShelfNotFoundError,
    SlotNotFoundError,
    SlotOccupiedError,
    ValidationError,
)
from services.item_catalog import ItemCatalog
from services.shelf_locks import ShelfLockRegistry, shelf_locks
from services.shelf_service import ShelfService

FOUR_ROWS = [(0.0, 0.25), (0.25, 0.5), (0.5, 0.75), (0.75, 1.0)]


@pytest.fixture
def shelf_id(db):
    return ShelfService.create_shelf(db, "Sala", "Estante principal", "https://example.com/sala.jpg")["id"]


def test_create_shelf_starts_empty(db, shelf_id):
    shelf = ShelfService.get_shelf(db, shelf_id)

    assert shelf["shelf"]["name"] == "Sala"
    assert shelf["shelf"]["photo_url"] == "https://example.com/sala.jpg"
    assert shelf["rows"] == []
    assert shelf["slots"] == []


def test_create_shelf_requires_name(db):
    with pytest.raises(ValidationError):
        ShelfService.create_shelf(db, "   ")


def test_missing_shelf(db):
    with pytest.raises(ShelfNotFoundError):
        ShelfService.get_shelf(db, 404)
    with pytest.raises(ShelfNotFoundError):
        ShelfService.replace_layout(db, 404, grid(1, 1))


def test_replace_layout_persists_rows_columns_and_slots(db, shelf_id):
    result = ShelfService.replace_layout(db, shelf_id, grid(2, [3, 1]))
    shelf = result["shelf"]

    assert result["displaced"] == []
    assert [r["row_index"] for r in shelf["rows"]] == [0, 1]
    assert [len(r["columns"]) for r in shelf["rows"]] == [3, 1]
    assert [(s["row_index"], s["col_index"]) for s in shelf["slots"]] == [(0, 0), (0, 1), (0, 2), (1, 0)]
    assert slot_at(shelf, 1, 0)["y_start"] == 0.5


def test_resizing_one_row_displaces_only_that_row(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(4, 2, FOUR_ROWS))["shelf"]
    items = make_items(4)
    for row_index, item_id in enumerate(items):
        ShelfService.assign_item(db, shelf_id, slot_at(shelf, row_index, 0)["id"], item_id)

    changed = list(FOUR_ROWS)
    changed[2] = (0.5, 0.7)
    result = ShelfService.replace_layout(db, shelf_id, grid(4, 2, changed))

    assert [d["item"]["id"] for d in result["displaced"]] == [items[2]]
    assert result["displaced"][0]["placement"]["slot_id"] is None
    placed = {p["item"]["id"]: p["placement"]["slot_id"] for p in result["shelf"]["placements"]}
    for row_index in (0, 1, 3):
        assert placed[items[row_index]] == slot_at(shelf, row_index, 0)["id"]
    assert [u["item"]["id"] for u in result["shelf"]["unplaced"]] == [items[2]]


def test_removing_column_displaces_its_item(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 3))["shelf"]
    kept, dropped = make_items(2)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 1)["id"], kept)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 2)["id"], dropped)

    new_rows = grid(1, 3)
    new_rows[0].columns = new_rows[0].columns[:2]
    result = ShelfService.replace_layout(db, shelf_id, new_rows)

    assert [d["item"]["id"] for d in result["displaced"]] == [dropped]
    assert [p["item"]["id"] for p in result["shelf"]["placements"]] == [kept]
    assert len(result["shelf"]["slots"]) == 2
    assert db.query(ShelfSlot).filter(ShelfSlot.shelf_id == shelf_id).count() == 2


def test_invalid_layout_changes_nothing(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(2, 2))["shelf"]
    (item,) = make_items(1)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 1, 1)["id"], item)
    before = ShelfService.get_shelf(db, shelf_id)

    overlapping = [
        RowInput(row_index=0, y_start=0.0, y_end=0.5, columns=[ColumnInput(col_index=0, x_start=0.0, x_end=1.0)]),
        RowInput(row_index=1, y_start=0.4, y_end=1.0, columns=[ColumnInput(col_index=0, x_start=0.0, x_end=1.0)]),
    ]
    with pytest.raises(InvalidGeometryError) as exc:
        ShelfService.replace_layout(db, shelf_id, overlapping)

    assert exc.value.reason == GeometryErrorReason.OVERLAP
    assert exc.value.shelf_id == shelf_id
    after = ShelfService.get_shelf(db, shelf_id)
    assert after["rows"] == before["rows"]
    assert after["slots"] == before["slots"]
    assert after["placements"] == before["placements"]


def test_row_and_slot_ids_are_stable_across_edits(db, shelf_id):
    first = ShelfService.replace_layout(db, shelf_id, grid(2, 2))["shelf"]
    second = ShelfService.replace_layout(db, shelf_id, grid(2, 2))["shelf"]

    assert [r["id"] for r in first["rows"]] == [r["id"] for r in second["rows"]]
    assert [s["id"] for s in first["slots"]] == [s["id"] for s in second["slots"]]


def test_shrinking_rows_removes_orphans(db, shelf_id):
    ShelfService.replace_layout(db, shelf_id, grid(3, 2))
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 1))["shelf"]

    assert len(shelf["rows"]) == 1
    assert len(shelf["slots"]) == 1
    assert db.query(ShelfRow).filter(ShelfRow.shelf_id == shelf_id).count() == 1


def test_assign_twice_keeps_single_record(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 2))["shelf"]
    (item,) = make_items(1)
    slot = slot_at(shelf, 0, 0)["id"]

    first = ShelfService.assign_item(db, shelf_id, slot, item)
    second = ShelfService.assign_item(db, shelf_id, slot, item)

    assert first["placement"]["id"] == second["placement"]["id"]
    assert db.query(ItemPlacement).filter(ItemPlacement.item_id == item).count() == 1


def test_assign_errors(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 2))["shelf"]
    other_id = ShelfService.create_shelf(db, "Quarto")["id"]
    other = ShelfService.replace_layout(db, other_id, grid(1, 1))["shelf"]
    item_a, item_b = make_items(2)
    slot = slot_at(shelf, 0, 0)["id"]
    ShelfService.assign_item(db, shelf_id, slot, item_a)

    with pytest.raises(SlotOccupiedError):
        ShelfService.assign_item(db, shelf_id, slot, item_b)
    with pytest.raises(ItemAlreadyPlacedError):
        ShelfService.assign_item(db, other_id, slot_at(other, 0, 0)["id"], item_a)
    with pytest.raises(SlotNotFoundError):
        ShelfService.assign_item(db, other_id, slot, item_b)
    with pytest.raises(ItemNotFoundError):
        ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 1)["id"], 9999)

    placed = ShelfService.get_shelf(db, shelf_id)["placements"]
    assert [(p["item"]["id"], p["placement"]["slot_id"]) for p in placed] == [(item_a, slot)]
    assert ShelfService.get_shelf(db, other_id)["placements"] == []


def test_displaced_item_can_be_placed_again(db, shelf_id, make_items):
    ShelfService.replace_layout(db, shelf_id, grid(1, 2))
    shelf = ShelfService.get_shelf(db, shelf_id)
    (item,) = make_items(1)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 1)["id"], item)

    result = ShelfService.replace_layout(db, shelf_id, grid(1, 1))
    assert [d["item"]["id"] for d in result["displaced"]] == [item]

    placed = ShelfService.assign_item(db, shelf_id, slot_at(result["shelf"], 0, 0)["id"], item)
    assert placed["placement"]["slot_id"] == slot_at(result["shelf"], 0, 0)["id"]


def test_remove_item_deletes_placement_and_is_noop_twice(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 1))["shelf"]
    (item,) = make_items(1)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 0)["id"], item)

    ShelfService.remove_item(db, item)
    ShelfService.remove_item(db, item)

    assert db.query(ItemPlacement).count() == 0
    assert db.get(Item, item) is not None


def test_clear_slot_and_add_unplaced(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 2))["shelf"]
    placed_item, loose_item = make_items(2)
    slot = slot_at(shelf, 0, 0)["id"]
    ShelfService.assign_item(db, shelf_id, slot, placed_item)

    cleared = ShelfService.clear_slot(db, shelf_id, slot)
    loose = ShelfService.add_unplaced(db, shelf_id, loose_item)

    assert cleared["placement"]["slot_id"] is None
    assert loose["placement"]["shelf_id"] == shelf_id
    unplaced = ShelfService.get_shelf(db, shelf_id)["unplaced"]
    assert sorted(u["item"]["id"] for u in unplaced) == sorted([placed_item, loose_item])
    with pytest.raises(SlotNotFoundError):
        ShelfService.clear_slot(db, shelf_id, slot)


def test_list_shelves_counts(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(2, 2))["shelf"]
    ShelfService.create_shelf(db, "Vazia")
    a, b = make_items(2)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 0)["id"], a)
    ShelfService.add_unplaced(db, shelf_id, b)

    summaries = {s["shelf"]["name"]: s for s in ShelfService.list_shelves(db)}

    assert (summaries["Sala"]["item_count"], summaries["Sala"]["placed_count"], summaries["Sala"]["slot_count"]) == (2, 1, 4)
    assert (summaries["Vazia"]["item_count"], summaries["Vazia"]["placed_count"], summaries["Vazia"]["slot_count"]) == (0, 0, 0)


def test_delete_shelf_returns_items_to_pool(db, shelf_id, make_items):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 2))["shelf"]
    (item,) = make_items(1)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 0)["id"], item)

    ShelfService.delete_shelf(db, shelf_id)

    with pytest.raises(ShelfNotFoundError):
        ShelfService.get_shelf(db, shelf_id)
    assert db.query(ShelfSlot).count() == 0
    placement = db.query(ItemPlacement).filter(ItemPlacement.item_id == item).one()
    assert (placement.shelf_id, placement.slot_id) == (None, None)
    assert db.get(Item, item) is not None

    # item do acervo pode ir para outra estante
    other_id = ShelfService.create_shelf(db, "Nova")["id"]
    other = ShelfService.replace_layout(db, other_id, grid(1, 1))["shelf"]
    placed = ShelfService.assign_item(db, other_id, slot_at(other, 0, 0)["id"], item)
    assert placed["placement"]["id"] == placement.id


def test_update_shelf(db, shelf_id):
    updated = ShelfService.update_shelf(db, shelf_id, name="Sala de estar", description=" nova ")

    assert updated["name"] == "Sala de estar"
    assert updated["description"] == "nova"
    assert updated["photo_url"] == "https://example.com/sala.jpg"


def test_lock_serializes_same_shelf():
    registry = ShelfLockRegistry()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder():
        with registry.hold(1):
            entered.set()
            release.wait(timeout=5)
            order.append("first")

    def waiter():
        with registry.hold(1):
            order.append("second")

    t1 = threading.Thread(target=holder)
    t1.start()
    entered.wait(timeout=5)
    t2 = threading.Thread(target=waiter)
    t2.start()
    t2.join(timeout=0.2)
    assert order == []
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert order == ["first", "second"]


def test_lock_does_not_block_other_shelves():
    registry = ShelfLockRegistry()
    with registry.hold(1):
        acquired = threading.Event()

        def other():
            with registry.hold(2):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        t.join(timeout=5)

    assert acquired.is_set()


def test_add_unplaced_checks_item_exists(db, shelf_id, make_items):
    (item,) = make_items(1)

    assert ItemCatalog.item_exists(db, item)
    assert not ItemCatalog.item_exists(db, 9999)
    with pytest.raises(ItemNotFoundError) as exc:
        ShelfService.add_unplaced(db, shelf_id, 9999)
    assert exc.value.item_id == 9999
    assert db.query(ItemPlacement).count() == 0


def test_deleted_shelf_keeps_its_lock(db, shelf_id):
    lock = shelf_locks._lock_for(shelf_id)

    ShelfService.delete_shelf(db, shelf_id)

    assert shelf_locks._lock_for(shelf_id) is lock


def _assign(db, shelf_id, slot, item):
    ShelfService.assign_item(db, shelf_id, slot, item)


def _replace(db, shelf_id, slot, item):
    ShelfService.replace_layout(db, shelf_id, grid(1, 1))


def _remove(db, shelf_id, slot, item):
    ShelfService.remove_item(db, item)


@pytest.mark.parametrize("operation", [_assign, _replace, _remove])
def test_service_operations_wait_for_shelf_lock(db, shelf_id, make_items, operation):
    shelf = ShelfService.replace_layout(db, shelf_id, grid(1, 2))["shelf"]
    placed, free = make_items(2)
    ShelfService.assign_item(db, shelf_id, slot_at(shelf, 0, 0)["id"], placed)
    item = placed if operation is _remove else free
    slot = slot_at(shelf, 0, 1)["id"]

    finished = threading.Event()
    errors = []

    def worker():
        try:
            operation(db, shelf_id, slot, item)
        except Exception as e:
            errors.append(e)
        finally:
            finished.set()

    with shelf_locks.hold(shelf_id):
        t = threading.Thread(target=worker)
        t.start()
        assert not finished.wait(timeout=0.3)
    t.join(timeout=5)

    assert finished.is_set()
    assert errors == []
