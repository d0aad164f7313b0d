"""Tests for metadata sidecar records."""

import json
from pathlib import Path

import pytest

from docsort.organization.metadata import (
    MetadataWriteError,
    MetadataWriter,
    sidecar_path,
)
from docsort.organization.models import FileProcessingRecord


def _record(**overrides) -> FileProcessingRecord:
    data = {
        "original_path": "/inbox/scan001.pdf",
        "original_filename": "scan001.pdf",
        "category": "Facturen",
        "target_folder": "1. Financiën/1.03. Facturen",
        "suggested_filename": "Factuur_KPN_2024-03.pdf",
        "final_filename": "Factuur_KPN_2024-03.pdf",
        "text_preview": "Factuur KPN maart 2024",
    }
    data.update(overrides)
    return FileProcessingRecord(**data)


def test_sidecar_path_keeps_full_filename() -> None:
    assert sidecar_path(Path("/out/a.pdf")) == Path("/out/a.pdf.metadata.json")
    assert sidecar_path(Path("/out/a.docx")) != sidecar_path(Path("/out/a.pdf"))


def test_write_serializes_all_fields(tmp_path: Path) -> None:
    destination = tmp_path / "Factuur_KPN_2024-03.pdf"
    destination.write_bytes(b"%PDF")

    written = MetadataWriter().write(_record(), destination)

    assert written == sidecar_path(destination)
    payload = json.loads(written.read_text(encoding="utf-8"))
    assert payload["original_filename"] == "scan001.pdf"
    assert payload["category"] == "Facturen"
    assert payload["target_folder"] == "1. Financiën/1.03. Facturen"
    assert payload["final_filename"] == "Factuur_KPN_2024-03.pdf"
    assert payload["processed_at"].endswith("Z") or "+00:00" in payload["processed_at"]


def test_write_refuses_to_overwrite_existing_sidecar(tmp_path: Path) -> None:
    destination = tmp_path / "doc.txt"
    existing = sidecar_path(destination)
    existing.write_text("{}", encoding="utf-8")

    with pytest.raises(MetadataWriteError):
        MetadataWriter().write(_record(final_filename="doc.txt"), destination)

    assert existing.read_text(encoding="utf-8") == "{}"


def test_write_reports_unwritable_location(tmp_path: Path) -> None:
    destination = tmp_path / "missing-dir" / "doc.txt"

    with pytest.raises(MetadataWriteError):
        MetadataWriter().write(_record(final_filename="doc.txt"), destination)
