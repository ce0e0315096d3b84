from pathlib import Path

from database import STATUS_PRESENT, DatabaseManager
from repair import MappingEntry, RepairProcessor
from repair.mapping import MappingFormatError
from storage import FileSystem, StreamWrapperResolver


def build(tmp_path: Path) -> tuple[DatabaseManager, RepairProcessor, Path]:
    public_root = tmp_path / "public"
    public_root.mkdir()
    manager = DatabaseManager({"catalog": tmp_path / "catalog.sqlite", "state": tmp_path / "state.sqlite"})
    manager.initialize()
    resolver = StreamWrapperResolver({"public": public_root})
    processor = RepairProcessor(manager, FileSystem(resolver))
    return manager, processor, public_root


def test_repair_moves_file_to_anchored_destination(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"image")
    anchor_id = manager.add_file("public://x.png")

    report = processor.repair([MappingEntry(1, "public://x.png", "public://y.png")], log=True)

    assert report.completed is True
    assert [outcome.status for outcome in report.outcomes] == ["info", "moved"]
    assert report.outcomes[0].message == "Move public://y.png => public://x.png"
    assert (public_root / "x.png").read_bytes() == b"image"
    assert not (public_root / "y.png").exists()
    assert manager.get_file(anchor_id).status == STATUS_PRESENT
    operations = manager.list_file_operations(operation_id=report.operation_id)
    assert operations[0]["status"] == "completed"
    manager.close()


def test_repair_never_overwrites_existing_destination(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"new")
    (public_root / "x.png").write_bytes(b"old")
    manager.add_file("public://x.png")

    report = processor.repair([MappingEntry(1, "public://x.png", "public://y.png")])

    assert report.outcomes[0].status == "error"
    assert report.outcomes[0].code == "destination_exists"
    assert (public_root / "x.png").read_bytes() == b"old"
    assert (public_root / "y.png").read_bytes() == b"new"
    manager.close()


def test_repair_requires_catalog_anchor(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"image")

    report = processor.repair([MappingEntry(1, "public://x.png", "public://y.png")], log=True)

    assert [outcome.code for outcome in report.outcomes] == ["no_catalog_entry"]
    assert (public_root / "y.png").exists()
    assert not (public_root / "x.png").exists()
    manager.close()


def test_repair_skips_bad_rows_and_continues(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "b.png").write_bytes(b"b")
    manager.add_file("public://a.png")

    entries = [
        MappingEntry(1, "", "public://b.png"),
        MappingEntry(2, "public://a.png", "public://gone.png"),
        MappingEntry(3, "ftp://a.png", "public://b.png"),
        MappingEntry(4, "public://a.png", "public://b.png"),
    ]
    report = processor.repair(entries)

    assert [(outcome.line, outcome.code) for outcome in report.outcomes] == [
        (1, "blank_field"),
        (2, "source_missing"),
        (3, "destination_unresolvable"),
        (4, "moved"),
    ]
    assert report.skipped == 1
    assert report.errors == 2
    assert report.moved == 1
    manager.close()


def test_format_error_stops_processing(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"y")
    (public_root / "w.png").write_bytes(b"w")
    manager.add_file("public://x.png")
    manager.add_file("public://v.png")

    def entries():
        yield MappingEntry(1, "public://x.png", "public://y.png")
        raise MappingFormatError(2, "expected at least 2 columns, found 1")

    report = processor.repair(entries())

    assert report.completed is False
    assert [outcome.status for outcome in report.outcomes] == ["moved", "fatal"]
    assert report.outcomes[-1].line == 2
    assert (public_root / "w.png").exists()
    manager.close()


def test_repair_file_reads_csv(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"y")
    manager.add_file("public://x.png")
    mapping = tmp_path / "list.csv"
    mapping.write_text("public://x.png,public://y.png\npublic://only\npublic://q.png,public://r.png\n", encoding="utf-8")

    report = processor.repair_file(mapping)

    assert [(outcome.line, outcome.status) for outcome in report.outcomes] == [(1, "moved"), (2, "fatal")]
    assert (public_root / "x.png").exists()
    manager.close()


def test_repair_file_stops_at_undecodable_row(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "y.png").write_bytes(b"y")
    (public_root / "r.png").write_bytes(b"r")
    manager.add_file("public://x.png")
    manager.add_file("public://q.png")
    mapping = tmp_path / "list.csv"
    mapping.write_bytes(b"public://x.png,public://y.png\n\xff\xfe,public://z.png\npublic://q.png,public://r.png\n")

    report = processor.repair_file(mapping)

    assert report.completed is False
    assert [(outcome.line, outcome.status) for outcome in report.outcomes] == [(1, "moved"), (2, "fatal")]
    assert (public_root / "x.png").exists()
    assert (public_root / "r.png").exists()
    manager.close()


def test_directory_source_is_not_moved(tmp_path: Path) -> None:
    manager, processor, public_root = build(tmp_path)
    (public_root / "folder").mkdir()
    (public_root / "folder" / "inner.png").write_bytes(b"inner")
    manager.add_file("public://x.png")

    report = processor.repair([MappingEntry(1, "public://x.png", "public://folder")])

    assert [outcome.code for outcome in report.outcomes] == ["source_missing"]
    assert (public_root / "folder" / "inner.png").exists()
    assert not (public_root / "x.png").exists()
    manager.close()
