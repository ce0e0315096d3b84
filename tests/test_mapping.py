from pathlib import Path

import pytest

from repair import MappingFormatError, parse_rows, read_mapping


def test_read_mapping_legacy_two_columns(tmp_path: Path) -> None:
    mapping = tmp_path / "list.csv"
    mapping.write_text(" public://x.png , public://y.png\n\n,public://z.png\n", encoding="utf-8")

    entries = list(read_mapping(mapping))

    assert [(entry.line, entry.expected, entry.current) for entry in entries] == [
        (1, "public://x.png", "public://y.png"),
        (2, "", ""),
        (3, "", "public://z.png"),
    ]
    assert entries[0].is_blank is False
    assert entries[1].is_blank is True
    assert entries[2].is_blank is True


def test_read_mapping_with_extra_columns_and_header(tmp_path: Path) -> None:
    mapping = tmp_path / "export.tsv"
    mapping.write_text(
        "fid\tname\texpected\tcurrent\ttype\n"
        "12\tLogo\tpublic://logo.png\tpublic://old/logo.png\timage/png\n",
        encoding="utf-8",
    )

    entries = list(
        read_mapping(mapping, expected_column=2, current_column=3, delimiter="\t", skip_header=True)
    )

    assert len(entries) == 1
    assert entries[0].line == 2
    assert entries[0].expected == "public://logo.png"
    assert entries[0].current == "public://old/logo.png"


def test_short_row_is_a_format_error() -> None:
    rows = iter([["public://a", "public://b"], ["public://only-one"], ["public://c", "public://d"]])
    entries = parse_rows(rows)

    assert next(entries).line == 1
    with pytest.raises(MappingFormatError) as excinfo:
        next(entries)
    assert excinfo.value.line == 2


def test_broken_quoting_is_a_format_error(tmp_path: Path) -> None:
    mapping = tmp_path / "broken.csv"
    mapping.write_text('public://a,public://b\n"public://c"x,public://d\n', encoding="utf-8")

    entries = read_mapping(mapping)

    assert next(entries).expected == "public://a"
    with pytest.raises(MappingFormatError) as excinfo:
        next(entries)
    assert excinfo.value.line == 2


def test_undecodable_row_is_a_format_error(tmp_path: Path) -> None:
    mapping = tmp_path / "latin.csv"
    mapping.write_bytes(b"public://x.png,public://y.png\n\xff\xfe,public://z.png\npublic://a,public://b\n")

    entries = read_mapping(mapping)

    assert next(entries).current == "public://y.png"
    with pytest.raises(MappingFormatError) as excinfo:
        next(entries)
    assert excinfo.value.line == 2
    assert "UTF-8" in excinfo.value.message
