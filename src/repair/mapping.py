"""
Reader for repair mapping files.

Each row names the URI a file is expected at and the URI it currently sits
at. The legacy layout is two columns, expected first; other exports carry
extra columns (id, display name, type) which are ignored.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator


class MappingFormatError(ValueError):
    """A mapping row could not be parsed; nothing after it can be trusted."""

    def __init__(self, line: int, message: str) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line
        self.message = message


@dataclass(frozen=True)
class MappingEntry:
    line: int
    expected: str
    current: str

    @property
    def is_blank(self) -> bool:
        return not self.expected or not self.current


def parse_rows(
    rows: Iterable[list[str]],
    expected_column: int = 0,
    current_column: int = 1,
    skip_header: bool = False,
) -> Iterator[MappingEntry]:
    """Turn already split rows into entries, numbering lines from 1."""
    required = max(expected_column, current_column) + 1
    iterator = iter(rows)
    line = 0
    while True:
        try:
            row = next(iterator)
        except StopIteration:
            return
        except (csv.Error, UnicodeDecodeError) as exc:
            raise MappingFormatError(line + 1, f"unreadable row ({exc})") from exc
        line += 1
        if not _is_valid_text(row):
            raise MappingFormatError(line, "row is not valid UTF-8 text")
        if skip_header and line == 1:
            continue
        if not row or not any(field.strip() for field in row):
            yield MappingEntry(line=line, expected="", current="")
            continue
        if len(row) < required:
            raise MappingFormatError(line, f"expected at least {required} columns, found {len(row)}")
        yield MappingEntry(
            line=line,
            expected=row[expected_column].strip(),
            current=row[current_column].strip(),
        )


def read_mapping(
    path: Path,
    expected_column: int = 0,
    current_column: int = 1,
    delimiter: str = ",",
    skip_header: bool = False,
) -> Iterator[MappingEntry]:
    """Stream entries from a delimited mapping file."""
    with path.open("r", encoding="utf-8", errors="surrogateescape", newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter, strict=True)
        yield from parse_rows(
            reader,
            expected_column=expected_column,
            current_column=current_column,
            skip_header=skip_header,
        )


def _is_valid_text(row: list[str]) -> bool:
    # Undecodable bytes survive as lone surrogates under surrogateescape.
    try:
        "".join(row).encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
