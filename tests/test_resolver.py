"""Tests for collision-free destination resolution."""

from pathlib import Path

from docsort.organization.resolver import DestinationResolver


def test_resolve_returns_plain_name_when_free(tmp_path: Path) -> None:
    resolver = DestinationResolver()

    target = resolver.resolve(tmp_path / "Facturen", "invoice", ".pdf")

    assert target == tmp_path / "Facturen" / "invoice.pdf"
    assert target.parent.is_dir()
    assert not target.exists()


def test_resolve_appends_counter_for_existing_files(tmp_path: Path) -> None:
    (tmp_path / "invoice.pdf").write_text("one", encoding="utf-8")
    (tmp_path / "invoice_1.pdf").write_text("two", encoding="utf-8")
    resolver = DestinationResolver()

    target = resolver.resolve(tmp_path, "invoice", ".pdf")

    assert target.name == "invoice_2.pdf"


def test_resolve_never_hands_out_the_same_path_twice(tmp_path: Path) -> None:
    resolver = DestinationResolver()

    first = resolver.resolve(tmp_path, "scan", ".txt")
    second = resolver.resolve(tmp_path, "scan", ".txt")

    assert first.name == "scan.txt"
    assert second.name == "scan_1.txt"


def test_release_makes_path_available_again(tmp_path: Path) -> None:
    resolver = DestinationResolver()
    first = resolver.resolve(tmp_path, "scan", ".txt")

    resolver.release(first)

    assert resolver.resolve(tmp_path, "scan", ".txt") == first


def test_resolve_treats_dangling_symlinks_as_taken(tmp_path: Path) -> None:
    (tmp_path / "note.md").symlink_to(tmp_path / "missing.md")
    resolver = DestinationResolver()

    target = resolver.resolve(tmp_path, "note", ".md")

    assert target.name == "note_1.md"


def test_resolve_handles_files_without_extension(tmp_path: Path) -> None:
    (tmp_path / "README").write_text("x", encoding="utf-8")
    resolver = DestinationResolver()

    assert resolver.resolve(tmp_path, "README", "").name == "README_1"
