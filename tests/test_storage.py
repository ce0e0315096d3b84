from pathlib import Path

import pytest

from storage import ExistsPolicy, FileSystem, StreamWrapperResolver


def build_resolver(root: Path) -> StreamWrapperResolver:
    return StreamWrapperResolver({"public": root / "public", "private": root / "private"})


def test_resolver_maps_schemes_to_roots(tmp_path: Path) -> None:
    resolver = build_resolver(tmp_path)

    assert resolver.resolve("public://images/a.png") == tmp_path / "public" / "images" / "a.png"
    assert resolver.resolve("PRIVATE://b.txt") == tmp_path / "private" / "b.txt"
    assert resolver.resolve(str(tmp_path / "plain.txt")) == tmp_path / "plain.txt"


def test_resolver_rejects_unknown_and_escaping_uris(tmp_path: Path) -> None:
    resolver = build_resolver(tmp_path)

    assert resolver.resolve("s3://bucket/key") is None
    assert resolver.resolve("public://../private/secret.txt") is None
    assert resolver.resolve("relative/path.txt") is None
    assert resolver.resolve("") is None


def test_move_creates_parent_and_handles_conflicts(tmp_path: Path) -> None:
    resolver = build_resolver(tmp_path)
    filesystem = FileSystem(resolver)
    source = tmp_path / "public" / "y.png"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"png")

    moved = filesystem.move("public://y.png", "public://nested/x.png", ExistsPolicy.REPLACE)
    assert moved == tmp_path / "public" / "nested" / "x.png"
    assert moved.read_bytes() == b"png"
    assert not source.exists()

    source.write_bytes(b"second")
    renamed = filesystem.move("public://y.png", "public://nested/x.png", ExistsPolicy.RENAME)
    assert renamed.name == "x_0.png"
    assert moved.read_bytes() == b"png"

    source.write_bytes(b"third")
    with pytest.raises(FileExistsError):
        filesystem.move("public://y.png", "public://nested/x.png", ExistsPolicy.ERROR)
    filesystem.move("public://y.png", "public://nested/x.png", ExistsPolicy.REPLACE)
    assert moved.read_bytes() == b"third"


def test_move_rejects_missing_or_unresolvable_source(tmp_path: Path) -> None:
    filesystem = FileSystem(build_resolver(tmp_path))

    with pytest.raises(ValueError):
        filesystem.move("ftp://nowhere", "public://x.png")
    with pytest.raises(FileNotFoundError):
        filesystem.move("public://absent.png", "public://x.png")
    assert filesystem.exists("public://absent.png") is False
