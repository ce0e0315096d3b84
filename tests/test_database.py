from pathlib import Path

from database import STATUS_MISSING, STATUS_PRESENT, STATUS_UNKNOWN, DatabaseManager


def build_db_paths(root: Path) -> dict[str, Path]:
    return {
        "catalog": root / "catalog.sqlite",
        "state": root / "state.sqlite",
    }


def test_catalog_pages_by_id(tmp_path: Path) -> None:
    manager = DatabaseManager(build_db_paths(tmp_path))
    manager.initialize()

    ids = [manager.add_file(f"public://file{index}.txt") for index in range(5)]
    assert ids == sorted(ids)
    assert manager.add_file("public://file0.txt") == ids[0]
    assert manager.count_checkable() == 5
    assert manager.max_checkable_id() == ids[-1]

    page = manager.iter_checkable_after(ids[0], ids[3], limit=10)
    assert [record.file_id for record in page] == ids[1:4]
    assert manager.iter_checkable_after(ids[1], ids[-1], limit=2)[0].file_id == ids[2]

    record = manager.find_by_uri("public://file2.txt")
    assert record is not None
    assert record.filename == "file2.txt"
    assert record.status == STATUS_UNKNOWN
    assert manager.find_by_uri("public://other.txt") is None

    manager.close()


def test_status_updates_and_missing_listing(tmp_path: Path) -> None:
    manager = DatabaseManager(build_db_paths(tmp_path))
    manager.initialize()

    present_id = manager.add_file("public://a.txt")
    missing_id = manager.add_file("public://b.txt")
    manager.set_file_status(present_id, STATUS_PRESENT)
    manager.set_file_status(missing_id, STATUS_MISSING, "2024-01-01T00:00:00")

    missing = manager.list_missing()
    assert [record.file_id for record in missing] == [missing_id]
    assert missing[0].checked_at == "2024-01-01T00:00:00"
    assert manager.count_by_status() == {STATUS_PRESENT: 1, STATUS_MISSING: 1}

    manager.update_file_uri(missing_id, "public://moved/b.txt")
    assert manager.get_file(missing_id).uri == "public://moved/b.txt"

    manager.delete_file(present_id)
    assert manager.get_file(present_id) is None
    assert manager.count_checkable() == 1

    manager.close()


def test_state_slots_and_operation_log(tmp_path: Path) -> None:
    manager = DatabaseManager(build_db_paths(tmp_path))
    manager.initialize()

    assert manager.get_state("slot") is None
    manager.set_state("slot", {"cursor": 3})
    manager.set_state("slot", {"cursor": 4})
    assert manager.get_state("slot") == {"cursor": 4}
    manager.delete_state("slot")
    assert manager.get_state("slot") is None

    manager.record_file_operation("repair_1", "move", "public://y", "public://x", "completed")
    manager.record_file_operation("repair_2", "move", "public://z", "public://w", "failed", "boom")
    operations = manager.list_file_operations(operation_id="repair_2")
    assert len(operations) == 1
    assert operations[0]["error_message"] == "boom"
    assert len(manager.list_file_operations()) == 2

    manager.close()


def test_bulk_status_update(tmp_path: Path) -> None:
    manager = DatabaseManager(build_db_paths(tmp_path))
    manager.initialize()

    first = manager.add_file("public://a.txt")
    second = manager.add_file("public://b.txt")
    untouched = manager.add_file("public://c.txt")
    manager.set_file_statuses(
        [
            (first, STATUS_PRESENT, "2024-01-01T00:00:00"),
            (second, STATUS_MISSING, "2024-01-01T00:00:01"),
        ]
    )

    assert manager.get_file(first).status == STATUS_PRESENT
    assert manager.get_file(second).checked_at == "2024-01-01T00:00:01"
    assert manager.get_file(untouched).status == STATUS_UNKNOWN
    manager.set_file_statuses([])

    manager.close()
