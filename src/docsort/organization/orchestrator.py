"""Top-level organize loop: one file at a time, from source to destination."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from docsort.classification import CategoryMap, ClassificationEngine, HeuristicClassifier
from docsort.config.models import DocsortConfig
from docsort.ingestion import DirectoryScanner, ExtractorRegistry, PendingFile
from docsort.llm import ModelGateway

from .advisors import FilenameAdvisor, FolderPathAdvisor
from .cancellation import CancellationToken, OrganizeCancelled
from .confirmation import FilenameConfirmer, FolderPathConfirmer, ProgressCallback
from .metadata import MetadataWriteError, MetadataWriter
from .models import FileOutcome, FileProcessingRecord, OrganizeResult
from .resolver import DestinationResolver
from .sanitize import clean_category_path, clean_original_name

LOGGER = logging.getLogger(__name__)


class SourceDirectoryError(Exception):
    """Raised before any file is touched when the source directory is unusable."""


class Organizer:
    """Classify, name, and move documents from a source tree into a destination tree.

    Files are processed strictly one after another: extract, classify,
    optionally suggest and confirm a name and folder, move, and optionally
    write a metadata sidecar. A failing file never stops the run; only
    cancellation does, and already moved files stay where they are.
    """

    def __init__(
        self,
        config: DocsortConfig,
        gateway: ModelGateway,
        *,
        extractors: Optional[ExtractorRegistry] = None,
        scanner: Optional[DirectoryScanner] = None,
        metadata_writer: Optional[MetadataWriter] = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._categories = CategoryMap.from_settings(config.classification)
        heuristics = HeuristicClassifier.from_settings(
            config.classification.heuristics, self._categories
        )
        self._engine = ClassificationEngine(
            gateway,
            self._categories,
            heuristics,
            max_prompt_chars=config.prompts.classification_chars,
        )
        self._filenames = FilenameAdvisor(gateway, max_prompt_chars=config.prompts.filename_chars)
        self._folders = FolderPathAdvisor(
            gateway,
            self._categories,
            max_prompt_chars=config.prompts.folder_chars,
            max_depth=config.organization.max_folder_depth,
        )
        self._extractors = extractors or ExtractorRegistry.from_settings(config.processing)
        self._scanner = scanner or DirectoryScanner(
            recursive=config.processing.recurse_directories,
            include_hidden=config.processing.process_hidden_files,
            follow_symlinks=config.processing.follow_symlinks,
            extensions=config.processing.supported_extensions,
        )
        self._metadata = metadata_writer or MetadataWriter()

    @property
    def category_map(self) -> CategoryMap:
        return self._categories

    def organize(
        self,
        source: Path,
        destination: Path,
        *,
        confirm_filename: FilenameConfirmer | None = None,
        confirm_folder: FolderPathConfirmer | None = None,
        progress: ProgressCallback | None = None,
        cancellation: CancellationToken | None = None,
    ) -> OrganizeResult:
        """Organize every supported file below ``source`` into ``destination``.

        Args:
            source: Directory holding the documents to organize.
            destination: Root of the organized tree; created when missing.
            confirm_filename: Collaborator deciding on suggested filenames.
            confirm_folder: Collaborator deciding on suggested folder paths.
            progress: Sink for human-readable status messages.
            cancellation: Token checked before each file and during slow calls.

        Returns:
            OrganizeResult: Counts, per-file outcomes, and the progress trail.
            ``cancelled`` is set when the run stopped early.

        Raises:
            SourceDirectoryError: If ``source`` does not exist or is not a directory.
        """

        source_root = Path(source).expanduser().resolve()
        if not source_root.is_dir():
            raise SourceDirectoryError(f"Source directory does not exist: {source_root}")
        destination_root = Path(destination).expanduser().resolve()
        destination_root.mkdir(parents=True, exist_ok=True)

        token = cancellation or CancellationToken()
        result = OrganizeResult()
        tokens_before = self._gateway.tokens_used

        def report(message: str) -> None:
            result.messages.append(message)
            LOGGER.debug(message)
            if progress is not None:
                progress(message)

        exclude = [destination_root] if destination_root != source_root else []
        pending = [
            item for item in self._scanner.scan(source_root, exclude=exclude) if item.supported
        ]
        resolver = DestinationResolver()
        LOGGER.info("Organizing %d file(s) from %s into %s", len(pending), source_root, destination_root)

        try:
            for item in pending:
                token.raise_if_cancelled()
                result.processed += 1
                outcome = self._process_file(
                    item,
                    destination_root,
                    resolver,
                    confirm_filename=confirm_filename,
                    confirm_folder=confirm_folder,
                    report=report,
                    cancellation=token,
                )
                result.outcomes.append(outcome)
                if outcome.status == "moved":
                    result.moved += 1
        except OrganizeCancelled:
            result.cancelled = True

        result.tokens_used = self._gateway.tokens_used - tokens_before
        if result.cancelled:
            report(
                f"Organization cancelled: {result.processed} processed, {result.moved} moved."
            )
        else:
            report(
                f"Organization finished: {result.processed} processed, {result.moved} moved."
            )
        return result

    def _process_file(
        self,
        item: PendingFile,
        destination_root: Path,
        resolver: DestinationResolver,
        *,
        confirm_filename: FilenameConfirmer | None,
        confirm_folder: FolderPathConfirmer | None,
        report: ProgressCallback,
        cancellation: CancellationToken,
    ) -> FileOutcome:
        options = self._config.organization
        path = item.path
        name = path.name
        report(f"Reading {name}...")

        text = ""
        category = self._categories.fallback
        degraded = False
        try:
            text = self._extractors.extract(path, cancellation)
            if not text.strip():
                report(f"{name}: no text extracted; relying on heuristics and fallback.")
            classification = self._engine.classify(text, cancellation)
            category = classification.category
            report(f"{name}: category '{category}' ({classification.source}).")
        except OrganizeCancelled:
            raise
        except Exception as exc:
            LOGGER.exception("Classification failed for %s", path)
            report(f"{name}: classification failed ({exc}); using '{category}'.")
            degraded = True

        base_name = clean_original_name(path.stem)
        suggested_name: Optional[str] = None
        if not degraded and options.rename_files and options.descriptive_filenames:
            decision = self._filenames.choose(
                text,
                name,
                category,
                confirm=confirm_filename,
                progress=report,
                cancellation=cancellation,
            )
            base_name = decision.chosen
            suggested_name = decision.suggested

        folder = clean_category_path(self._categories.path_for(category))
        if not degraded and options.ai_folder_suggestions:
            folder_decision = self._folders.choose(
                text,
                category,
                self._categories.path_for(category),
                confirm=confirm_folder,
                progress=report,
                cancellation=cancellation,
            )
            folder = folder_decision.chosen

        cancellation.raise_if_cancelled()
        target_dir = destination_root.joinpath(*folder.split("/"))
        final_path: Optional[Path] = None
        try:
            final_path = resolver.resolve(target_dir, base_name, path.suffix)
            shutil.move(str(path), str(final_path))
        except OSError as exc:
            if final_path is not None:
                resolver.release(final_path)
            LOGGER.error("Moving %s failed: %s", path, exc)
            report(f"Failed to move {name}: {exc}")
            return FileOutcome(source=path, category=category, status="failed", message=str(exc))

        report(f"{name} -> {folder}/{final_path.name}")
        outcome = FileOutcome(source=path, destination=final_path, category=category, status="moved")

        if options.generate_metadata:
            record = FileProcessingRecord(
                original_path=str(path),
                original_filename=name,
                category=category,
                target_folder=folder,
                suggested_filename=f"{suggested_name}{path.suffix}" if suggested_name else None,
                final_filename=final_path.name,
                text_preview=text[: options.metadata_preview_chars],
            )
            try:
                outcome.metadata_path = self._metadata.write(record, final_path)
            except MetadataWriteError as exc:
                LOGGER.error("Metadata for %s not written: %s", final_path, exc)
                report(f"{name}: metadata not written ({exc}).")
                outcome.message = str(exc)
        return outcome


__all__ = ["Organizer", "SourceDirectoryError"]
