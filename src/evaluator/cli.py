from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml

from src.classifier.encryption import EncryptionClassifier, FileSample
from src.classifier.manifest import ManifestClassifier
from src.common.config import GateConfig
from src.common.errors import ToolError
from src.evaluator.batch import BatchEvaluator, BatchStatus, BatchSummary
from src.evaluator.paths import collect_candidates
from src.tooling.probes import FileCommandProbe, KubevalValidator

app = typer.Typer(help="Check that secret YAML files are encrypted and Kubernetes manifests are valid.")

TOOL_ERROR_EXIT_CODE = 2


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-file decisions."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


@app.command("check-encryption")
def check_encryption(
    paths: Optional[List[Path]] = typer.Argument(
        None,
        help="Files or directories to check (defaults to the secret directory).",
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file."),
    secret_dir: Optional[str] = typer.Option(
        None,
        "--secret-dir",
        help="Only files under this directory are checked (default from config: secret).",
    ),
    all_yaml: bool = typer.Option(
        False,
        "--all-yaml",
        help="Check every YAML file given, not only those under the secret directory.",
    ),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Where to write the JSON summary."),
    probe: bool = typer.Option(
        True,
        "--probe/--no-probe",
        help="Use the `file` command as an additional encryption signal.",
    ),
    file_cmd: Optional[str] = typer.Option(None, "--file-cmd", help="Command used to describe file types."),
) -> None:
    settings = _load_config(config)
    secret_dir = secret_dir or settings.secret_dir
    candidates = collect_candidates(
        paths or [Path(secret_dir)],
        max_scan_files=settings.max_scan_files,
        under=None if all_yaml else secret_dir,
    )

    file_probe = (
        FileCommandProbe(file_cmd or settings.file_cmd, timeout=settings.tool_timeout_seconds) if probe else None
    )
    classifier = EncryptionClassifier(
        file_probe,
        sample_size=settings.sample_size,
        printable_threshold=settings.printable_threshold,
        file_type_keywords=settings.file_type_keywords,
    )
    try:
        summary = BatchEvaluator().evaluate(candidates, classifier)
    except ToolError as exc:
        _abort(exc)

    for outcome in summary.passing:
        typer.echo(f"ENCRYPTED    {outcome.path} ({outcome.reason.value})")
    for outcome in summary.failing:
        typer.secho(f"UNENCRYPTED  {outcome.path}", fg=typer.colors.RED)
    _echo_skipped(summary)
    typer.echo(
        f"Files processed: {summary.total}, encrypted: {summary.passed}, unencrypted: {summary.failed}"
    )
    if summary.status is BatchStatus.NO_APPLICABLE_FILES:
        typer.echo(f"No YAML files to check under {secret_dir}")
    _write_summary(summary, out)
    raise typer.Exit(code=summary.exit_code)


@app.command("validate-manifests")
def validate_manifests(
    paths: Optional[List[Path]] = typer.Argument(
        None,
        help="Files or directories to validate (defaults to the current directory).",
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file."),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Where to write the JSON summary."),
    kubeval_cmd: Optional[str] = typer.Option(None, "--kubeval-cmd", help="Command used to invoke kubeval."),
    kubeval_args: Optional[List[str]] = typer.Option(
        None,
        "--kubeval-arg",
        help="Extra argument passed to kubeval before the file path (repeatable; default from config).",
    ),
    block: Optional[bool] = typer.Option(
        None,
        "--block/--no-block",
        help="Exit non-zero on invalid manifests (default from config or BLOCK_ON_K8S_VALIDATION).",
    ),
) -> None:
    settings = _load_config(config)
    should_block = settings.block_on_validation_failure if block is None else block
    candidates = collect_candidates(paths or [Path(".")], max_scan_files=settings.max_scan_files)

    classifier = ManifestClassifier(settings.path_vocabulary)
    validator = KubevalValidator(
        kubeval_cmd or settings.kubeval_cmd,
        extra_args=kubeval_args or settings.kubeval_args,
        timeout=settings.tool_timeout_seconds,
    )
    try:
        if candidates:
            validator.ensure_available()
        summary = BatchEvaluator().evaluate(candidates, classifier, validator)
    except ToolError as exc:
        _abort(exc)

    for outcome in summary.passing:
        typer.echo(f"VALID    {outcome.path}")
    for outcome in summary.failing:
        typer.secho(f"INVALID  {outcome.path}", fg=typer.colors.RED)
        if outcome.validation is not None and outcome.validation.diagnostic:
            for line in outcome.validation.diagnostic.splitlines():
                typer.echo(f"   {line}")
    _echo_skipped(summary)
    _write_summary(summary, out)

    if summary.status is BatchStatus.NO_APPLICABLE_FILES:
        typer.echo("No Kubernetes YAML files to validate")
        raise typer.Exit(code=0)
    typer.echo(
        f"Kubernetes files: {summary.matched}, valid: {summary.passed}, invalid: {summary.failed}"
    )
    if summary.status is BatchStatus.FAILED and not should_block:
        typer.secho(
            "WARNING: some Kubernetes YAML files failed validation (set BLOCK_ON_K8S_VALIDATION=true to block)",
            fg=typer.colors.YELLOW,
        )
        raise typer.Exit(code=0)
    raise typer.Exit(code=summary.exit_code)


@app.command()
def explain(
    path: Path = typer.Argument(..., help="File to analyse."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file."),
    probe: bool = typer.Option(True, "--probe/--no-probe", help="Use the `file` command."),
    file_cmd: Optional[str] = typer.Option(None, "--file-cmd", help="Command used to describe file types."),
) -> None:
    """Show every encryption signal found in a single file."""

    settings = _load_config(config)
    try:
        sample = FileSample.from_path(path)
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc

    file_probe = (
        FileCommandProbe(file_cmd or settings.file_cmd, timeout=settings.tool_timeout_seconds) if probe else None
    )
    classifier = EncryptionClassifier(
        file_probe,
        sample_size=settings.sample_size,
        printable_threshold=settings.printable_threshold,
        file_type_keywords=settings.file_type_keywords,
    )
    try:
        verdict = classifier.classify(sample)
    except ToolError as exc:
        _abort(exc)

    typer.echo(f"File: {path}")
    typer.echo(f"Size: {len(sample.content)} bytes")
    typer.echo(f"File type: {verdict.file_type if verdict.file_type is not None else 'not probed'}")
    markers = classifier.matched_markers(sample)
    typer.echo(f"Markers: {', '.join(markers) if markers else 'none'}")
    if verdict.printable_ratio is None:
        typer.echo("Printable ratio: n/a (empty file)")
    else:
        typer.echo(f"Printable ratio: {verdict.printable_ratio:.0%}")
    typer.echo(f"Signals: {', '.join(signal.value for signal in verdict.signals) or 'none'}")
    typer.echo(f"Result: {verdict.label.value}")
    raise typer.Exit(code=0 if verdict.matched else 1)


def _load_config(path: Optional[Path]) -> GateConfig:
    try:
        return GateConfig.load(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Invalid configuration: {exc}") from exc


def _echo_skipped(summary: BatchSummary) -> None:
    for path in summary.unreadable_paths:
        typer.secho(f"SKIPPED  {path} (unreadable)", fg=typer.colors.YELLOW)


def _write_summary(summary: BatchSummary, out: Optional[Path]) -> None:
    if out is None:
        return
    summary.write(out)
    typer.echo(f"Summary written to {out.resolve()}")


def _abort(exc: ToolError) -> NoReturn:
    typer.secho(f"ERROR: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=TOOL_ERROR_EXIT_CODE) from exc


if __name__ == "__main__":  # pragma: no cover
    app()
