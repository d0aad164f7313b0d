"""Command line interface for docsort."""

from __future__ import annotations

import difflib
import os
import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from docsort.classification import CategoryMap
from docsort.config import ConfigError, ConfigManager
from docsort.llm import ModelGateway, build_backend
from docsort.logging_config import configure_logging
from docsort.organization.cancellation import CancellationToken
from docsort.organization.confirmation import prompt_filename_choice, prompt_folder_choice
from docsort.organization.models import OrganizeResult
from docsort.organization.orchestrator import Organizer, SourceDirectoryError

console = Console()

EXIT_CANCELLED = 130


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    """Turn the first Ctrl-C into a cooperative cancellation request."""

    def _handler(signum: int, frame: Any) -> None:
        if token.cancelled:
            raise KeyboardInterrupt
        token.cancel()
        console.print("[yellow]Cancellation requested; stopping after the current step.[/yellow]")

    try:
        previous = signal.signal(signal.SIGINT, _handler)
    except ValueError:  # not running in the main thread
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _collect_overrides(**flags: Any) -> dict[str, Any]:
    """Translate optional CLI flags into dotted configuration overrides."""

    mapping = {
        "recursive": "processing.recurse_directories",
        "rename": "organization.rename_files",
        "descriptive_names": "organization.descriptive_filenames",
        "ai_folders": "organization.ai_folder_suggestions",
        "metadata": "organization.generate_metadata",
        "provider": "llm.provider",
        "model": "llm.model",
    }
    overrides: dict[str, Any] = {}
    for name, value in flags.items():
        if value is None:
            continue
        overrides[mapping[name]] = value
    return overrides


def _result_payload(result: OrganizeResult, source: Path, destination: Path) -> dict[str, Any]:
    return {
        "context": {
            "source_root": source.as_posix(),
            "destination_root": destination.as_posix(),
        },
        "counts": {
            "processed": result.processed,
            "moved": result.moved,
            "failed": result.failed,
            "tokens_used": result.tokens_used,
        },
        "cancelled": result.cancelled,
        "files": [outcome.model_dump(mode="json") for outcome in result.outcomes],
        "messages": list(result.messages),
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="docsort")
def cli() -> None:
    """docsort files your documents into category folders using AI-assisted classification."""


@cli.command()
@click.argument("source", type=click.Path(path_type=str))
@click.argument("destination", type=click.Path(file_okay=False, path_type=str))
@click.option("-r", "--recursive", is_flag=True, default=None, help="Include all subdirectories.")
@click.option("--rename/--no-rename", default=None, help="Allow files to be renamed.")
@click.option(
    "--descriptive-names/--no-descriptive-names",
    default=None,
    help="Ask the model for descriptive filenames when renaming.",
)
@click.option(
    "--ai-folders/--no-ai-folders",
    default=None,
    help="Ask the model for a full destination folder path.",
)
@click.option("--metadata/--no-metadata", default=None, help="Write a JSON sidecar per file.")
@click.option(
    "--provider",
    type=click.Choice(["gemini", "openai", "azure", "ollama", "none"]),
    help="Override the configured LLM provider.",
)
@click.option("--model", type=str, help="Override the configured model or deployment name.")
@click.option("--confirm", is_flag=True, help="Confirm suggested names and folders interactively.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the run.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def org(
    ctx: click.Context,
    source: str,
    destination: str,
    recursive: bool | None,
    rename: bool | None,
    descriptive_names: bool | None,
    ai_folders: bool | None,
    metadata: bool | None,
    provider: str | None,
    model: str | None,
    confirm: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Classify documents in SOURCE and move them into category folders under DESTINATION.

    Args:
        ctx: Click context used for parameter source inspection.
        source: Directory holding the documents to organize.
        destination: Root directory of the organized tree.
        recursive: Whether to include subdirectories during scanning.
        rename: Whether files may be renamed.
        descriptive_names: Whether to request descriptive filenames.
        ai_folders: Whether to request AI-suggested folder paths.
        metadata: Whether to write metadata sidecars.
        provider: LLM provider override.
        model: Model override.
        confirm: Whether to confirm suggestions interactively.
        json_output: If True, emit JSON describing the run.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.

    Raises:
        click.ClickException: If configuration loading or validation fails.
    """

    json_enabled = json_output
    cancelled = False
    try:
        manager = ConfigManager()
        config = manager.load(
            cli_overrides=_collect_overrides(
                recursive=True if recursive else None,
                rename=rename,
                descriptive_names=descriptive_names,
                ai_folders=ai_folders,
                metadata=metadata,
                provider=provider,
                model=model,
            )
        )
        configure_logging(config.logging, manager.log_dir)

        explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
        explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
        explicit_confirm = ctx.get_parameter_source("confirm") == ParameterSource.COMMANDLINE

        quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
        summary_only = summary_mode if explicit_summary else config.cli.summary_default
        confirm_enabled = confirm if explicit_confirm else config.cli.confirm_default

        if json_output:
            if explicit_quiet and quiet_enabled:
                raise click.ClickException("--json cannot be combined with --quiet.")
            if explicit_summary and summary_only:
                raise click.ClickException("--json cannot be combined with --summary.")
            if explicit_confirm and confirm_enabled:
                raise click.ClickException("--json cannot be combined with --confirm.")
            quiet_enabled = False
            summary_only = False
            confirm_enabled = False

        if quiet_enabled and summary_only:
            raise click.ClickException(
                "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
            )

        source_root = Path(source).expanduser().resolve()
        destination_root = Path(destination).expanduser().resolve()

        def _progress(message: str) -> None:
            if json_output:
                return
            _emit_message(
                escape(message), mode="detail", quiet=quiet_enabled, summary_only=summary_only
            )

        backend = build_backend(config.llm, os.environ)
        token = CancellationToken()
        with ModelGateway(backend, poll_interval=config.llm.poll_interval_seconds) as gateway:
            organizer = Organizer(config, gateway)
            with _cancel_on_interrupt(token):
                result = organizer.organize(
                    source_root,
                    destination_root,
                    confirm_filename=prompt_filename_choice if confirm_enabled else None,
                    confirm_folder=prompt_folder_choice if confirm_enabled else None,
                    progress=_progress,
                    cancellation=token,
                )

        cancelled = result.cancelled
        if json_output:
            console.print_json(data=_result_payload(result, source_root, destination_root))
        else:
            failures = [outcome for outcome in result.outcomes if outcome.status == "failed"]
            if failures:
                _emit_message(
                    "[red]Files left in place:[/red]",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                for outcome in failures:
                    _emit_message(
                        escape(f"  - {outcome.source}: {outcome.message}"),
                        mode="error",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
            summary_metrics: dict[str, Any] = {
                "processed": result.processed,
                "moved": result.moved,
                "failed": result.failed,
                "tokens": result.tokens_used,
            }
            if result.cancelled:
                summary_metrics["cancelled"] = True
            _emit_message(
                _format_summary_line("Organization", destination_root, summary_metrics),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except SourceDirectoryError as exc:
        _handle_cli_error(str(exc), code="source_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while organizing files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )

    if cancelled:
        ctx.exit(EXIT_CANCELLED)


@cli.command()
def categories() -> None:
    """Show the configured category map and heuristic keyword rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    category_map = CategoryMap.from_settings(config.classification)
    table = Table(title="Categories")
    table.add_column("Key")
    table.add_column("Folder", overflow="fold")
    for key, path in category_map.items():
        label = escape(key)
        if key == category_map.fallback:
            label = f"{label} [dim](fallback)[/dim]"
        table.add_row(label, escape(path))
    console.print(table)

    rules = Table(title="Heuristic rules (first match wins)")
    rules.add_column("#", justify="right")
    rules.add_column("Pattern", overflow="fold")
    rules.add_column("Category")
    for index, rule in enumerate(config.classification.heuristics, start=1):
        category = escape(rule.category)
        if rule.category not in category_map:
            category = f"[red]{category}[/red]"
        rules.add_row(str(index), escape(rule.pattern), category)
    console.print(rules)


@cli.group()
def config() -> None:
    """Manage docsort configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    data = config.model_dump(mode="python")
    if data["llm"].get("api_key"):
        data["llm"]["api_key"] = "***"
    yaml_text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Store a value at a dotted KEY such as `llm.model` and show the diff.

    Raises:
        click.ClickException: If parsing or validation fails.
    """
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    manager = ConfigManager()
    try:
        before, after = manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = list(
        difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {escape(key)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result.

    Raises:
        click.ClickException: If the edited content is invalid.
    """
    manager = ConfigManager()
    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        manager.replace_text(edited)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
