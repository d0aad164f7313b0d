"""End-to-end tests for the organize loop."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from docsort.ingestion import ExtractorRegistry, PlainTextExtractor
from docsort.llm import DisabledBackend, ModelGateway
from docsort.organization.cancellation import CancellationToken
from docsort.organization.confirmation import accept_suggestion
from docsort.organization.orchestrator import Organizer, SourceDirectoryError

from .conftest import ScriptedBackend, make_config

BANK_FOLDER = Path("1. Financiën") / "1.01. Bankafschriften"
INVOICE_FOLDER = Path("1. Financiën") / "1.03. Facturen"


def _text_extractors() -> ExtractorRegistry:
    text = PlainTextExtractor()
    return ExtractorRegistry({".pdf": text, ".txt": text, ".md": text, ".docx": text})


def _router(*, category: str = "Facturen", filename: str = "invoice", folder: str = "none"):
    def _reply(prompt: str) -> str:
        if prompt.startswith("Classify"):
            return category
        if prompt.startswith("Suggest a concise"):
            return filename
        return folder

    return _reply


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_heuristic_classification_when_model_is_disabled(
    source_dir: Path, destination_dir: Path
) -> None:
    _write(source_dir / "bankstatement.pdf", "ING Bank statement, rekening NL00INGB0001234567")
    organizer = Organizer(
        make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors()
    )

    result = organizer.organize(source_dir, destination_dir)

    assert (result.processed, result.moved, result.tokens_used) == (1, 1, 0)
    assert not result.cancelled
    moved = destination_dir / BANK_FOLDER / "bankstatement.pdf"
    assert moved.read_text(encoding="utf-8").startswith("ING Bank statement")
    assert not (source_dir / "bankstatement.pdf").exists()
    assert result.outcomes[0].category == "Bankafschriften"
    assert result.messages[-1] == "Organization finished: 1 processed, 1 moved."


def test_same_suggested_name_gets_numbered(source_dir: Path, destination_dir: Path) -> None:
    _write(source_dir / "kpn.pdf", "Factuur KPN")
    _write(source_dir / "vattenfall.pdf", "Factuur Vattenfall")
    backend = ScriptedBackend(default=_router(filename="invoice"))
    organizer = Organizer(
        make_config(organization={"rename_files": True}),
        ModelGateway(backend),
        extractors=_text_extractors(),
    )

    result = organizer.organize(source_dir, destination_dir)

    assert result.moved == 2
    folder = destination_dir / INVOICE_FOLDER
    assert (folder / "invoice.pdf").read_text(encoding="utf-8") == "Factuur KPN"
    assert (folder / "invoice_1.pdf").read_text(encoding="utf-8") == "Factuur Vattenfall"
    assert result.tokens_used == 40


def test_cancellation_stops_before_next_file(source_dir: Path, destination_dir: Path) -> None:
    for index in range(10):
        _write(source_dir / f"doc{index:02d}.txt", f"Factuur nummer {index}")
    token = CancellationToken()
    moved_messages: list[str] = []

    def _progress(message: str) -> None:
        if " -> " in message:
            moved_messages.append(message)
            if len(moved_messages) == 3:
                token.cancel()

    organizer = Organizer(make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors())
    result = organizer.organize(source_dir, destination_dir, progress=_progress, cancellation=token)

    assert result.cancelled
    assert (result.processed, result.moved) == (3, 3)
    assert len(list(source_dir.iterdir())) == 7
    assert len(list((destination_dir / INVOICE_FOLDER).iterdir())) == 3
    assert result.messages[-1] == "Organization cancelled: 3 processed, 3 moved."


def test_rerun_never_overwrites_previous_results(source_dir: Path, destination_dir: Path) -> None:
    organizer = Organizer(make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors())

    _write(source_dir / "factuur.txt", "Factuur januari")
    organizer.organize(source_dir, destination_dir)
    _write(source_dir / "factuur.txt", "Factuur februari")
    organizer.organize(source_dir, destination_dir)

    folder = destination_dir / INVOICE_FOLDER
    assert (folder / "factuur.txt").read_text(encoding="utf-8") == "Factuur januari"
    assert (folder / "factuur_1.txt").read_text(encoding="utf-8") == "Factuur februari"


def test_move_failure_leaves_file_in_place(
    source_dir: Path, destination_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(source_dir / "a.txt", "Factuur A")
    _write(source_dir / "b.txt", "Factuur B")
    real_move = shutil.move

    def _flaky_move(src: str, dst: str) -> str:
        if src.endswith("a.txt"):
            raise PermissionError("locked")
        return real_move(src, dst)

    monkeypatch.setattr("docsort.organization.orchestrator.shutil.move", _flaky_move)
    organizer = Organizer(make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors())

    result = organizer.organize(source_dir, destination_dir)

    assert (result.processed, result.moved, result.failed) == (2, 1, 1)
    assert (source_dir / "a.txt").exists()
    assert result.outcomes[0].status == "failed"
    assert "locked" in (result.outcomes[0].message or "")
    assert (destination_dir / INVOICE_FOLDER / "b.txt").exists()
    assert any(message.startswith("Failed to move a.txt") for message in result.messages)


def test_classification_failure_uses_fallback_and_original_name(
    source_dir: Path, destination_dir: Path
) -> None:
    class _BrokenExtractors:
        def extract(self, path: Path, cancellation: CancellationToken | None = None) -> str:
            raise RuntimeError("decoder crashed")

    _write(source_dir / "Scan 12.pdf", "irrelevant")
    backend = ScriptedBackend(default=_router())
    organizer = Organizer(
        make_config(organization={"rename_files": True, "ai_folder_suggestions": True}),
        ModelGateway(backend),
        extractors=_BrokenExtractors(),  # type: ignore[arg-type]
    )

    result = organizer.organize(source_dir, destination_dir)

    assert result.moved == 1
    assert backend.prompts == []
    assert (destination_dir / "0. Overig" / "Scan 12.pdf").exists()
    assert result.outcomes[0].category == "Overig"


def test_ai_folder_suggestion_and_metadata_sidecar(
    source_dir: Path, destination_dir: Path
) -> None:
    _write(source_dir / "scan.pdf", "Factuur KPN maart 2024")
    backend = ScriptedBackend(
        default=_router(filename="KPN factuur maart", folder="Financiën/Facturen/KPN")
    )
    organizer = Organizer(
        make_config(
            organization={
                "rename_files": True,
                "ai_folder_suggestions": True,
                "generate_metadata": True,
                "metadata_preview_chars": 7,
            }
        ),
        ModelGateway(backend),
        extractors=_text_extractors(),
    )

    result = organizer.organize(
        source_dir,
        destination_dir,
        confirm_filename=accept_suggestion,
        confirm_folder=accept_suggestion,
    )

    moved = destination_dir / "Financiën" / "Facturen" / "KPN" / "KPN_factuur_maart.pdf"
    assert moved.exists()
    outcome = result.outcomes[0]
    assert outcome.destination == moved
    assert outcome.metadata_path is not None
    payload = json.loads(outcome.metadata_path.read_text(encoding="utf-8"))
    assert payload["original_filename"] == "scan.pdf"
    assert payload["category"] == "Facturen"
    assert payload["target_folder"] == "Financiën/Facturen/KPN"
    assert payload["suggested_filename"] == "KPN_factuur_maart.pdf"
    assert payload["final_filename"] == "KPN_factuur_maart.pdf"
    assert payload["text_preview"] == "Factuur"


def test_rename_disabled_skips_filename_prompt(source_dir: Path, destination_dir: Path) -> None:
    _write(source_dir / "notes.md", "Factuur")
    backend = ScriptedBackend(default=_router(category="Werk"))
    organizer = Organizer(make_config(), ModelGateway(backend), extractors=_text_extractors())

    organizer.organize(source_dir, destination_dir)

    assert len(backend.prompts) == 1
    assert (destination_dir / "4. Werk" / "notes.md").exists()


def test_original_name_with_spaces_is_kept_when_renaming_is_off(
    source_dir: Path, destination_dir: Path
) -> None:
    _write(source_dir / "Jaaroverzicht 2023.txt", "Jaaroverzicht bank rekening")
    organizer = Organizer(
        make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors()
    )

    result = organizer.organize(source_dir, destination_dir)

    assert result.moved == 1
    assert result.outcomes[0].destination is not None
    assert result.outcomes[0].destination.name == "Jaaroverzicht 2023.txt"


def test_unsupported_files_are_left_alone(source_dir: Path, destination_dir: Path) -> None:
    _write(source_dir / "photo.jpg", "jpeg")
    _write(source_dir / "letter.txt", "Beste meneer")
    organizer = Organizer(make_config(), ModelGateway(DisabledBackend()), extractors=_text_extractors())

    result = organizer.organize(source_dir, destination_dir)

    assert (result.processed, result.moved) == (1, 1)
    assert (source_dir / "photo.jpg").exists()
    assert (destination_dir / "0. Overig" / "letter.txt").exists()


def test_destination_inside_source_is_not_rescanned(source_dir: Path) -> None:
    _write(source_dir / "factuur.txt", "Factuur")
    destination = source_dir / "sorted"
    organizer = Organizer(
        make_config(processing={"recurse_directories": True}),
        ModelGateway(DisabledBackend()),
        extractors=_text_extractors(),
    )

    first = organizer.organize(source_dir, destination)
    second = organizer.organize(source_dir, destination)

    assert first.moved == 1
    assert second.processed == 0
    assert (destination / INVOICE_FOLDER / "factuur.txt").exists()


def test_missing_source_raises_before_touching_anything(tmp_path: Path) -> None:
    organizer = Organizer(make_config(), ModelGateway(DisabledBackend()))
    destination = tmp_path / "out"

    with pytest.raises(SourceDirectoryError):
        organizer.organize(tmp_path / "missing", destination)
    assert not destination.exists()
