from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, Sequence, Union

from src.common.errors import ToolError
from src.common.models import ValidationOutcome

logger = logging.getLogger(__name__)


class FileTypeProbe(Protocol):
    def probe(self, path: Union[str, Path]) -> str:
        ...


class SchemaValidator(Protocol):
    def validate(self, path: Union[str, Path]) -> ValidationOutcome:
        ...


def _run_command(command: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            list(command),
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ToolError(f"Required binary not found: {command[0]}", command) from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolError(f"Command timed out after {timeout}s: {' '.join(command)}", command) from exc
    except OSError as exc:
        raise ToolError(f"Failed to run {command[0]}: {exc}", command) from exc


def _argv_path(path: Union[str, Path]) -> str:
    # A bare "-x.yaml" would be parsed as options by the tool.
    text = str(path)
    return f"./{text}" if text.startswith("-") else text


class FileCommandProbe:
    """Describe a file with ``file -b``."""

    def __init__(self, file_cmd: str = "file", timeout: float = 60.0) -> None:
        self.file_cmd = file_cmd
        self.timeout = timeout

    def probe(self, path: Union[str, Path]) -> str:
        command = [self.file_cmd, "-b", _argv_path(path)]
        completed = self._run_command(command)
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise ToolError(
                f"Command failed ({' '.join(command)}) with exit code {completed.returncode}: {detail}",
                command,
            )
        return completed.stdout.strip()

    def _run_command(self, command: Sequence[str]) -> subprocess.CompletedProcess:
        return _run_command(command, self.timeout)


class KubevalValidator:
    """Validate a manifest against the Kubernetes schema with kubeval.

    Exit code 0 means valid and 1 means the manifest failed validation; any
    other exit code is treated as a broken tool rather than a bad manifest.
    """

    def __init__(
        self,
        kubeval_cmd: str = "kubeval",
        *,
        extra_args: Sequence[str] = (),
        timeout: float = 60.0,
    ) -> None:
        self.kubeval_cmd = kubeval_cmd
        self.extra_args = tuple(extra_args)
        self.timeout = timeout

    def ensure_available(self) -> str:
        command = [self.kubeval_cmd, "--version"]
        completed = self._run_command(command)
        if completed.returncode != 0:
            raise ToolError(f"{self.kubeval_cmd} --version exited with {completed.returncode}", command)
        return completed.stdout.strip()

    def validate(self, path: Union[str, Path]) -> ValidationOutcome:
        command = [self.kubeval_cmd, *self.extra_args, _argv_path(path)]
        completed = self._run_command(command)
        diagnostic = "\n".join(
            part.strip() for part in (completed.stdout, completed.stderr) if part and part.strip()
        )
        if completed.returncode == 0:
            return ValidationOutcome(valid=True, diagnostic=diagnostic)
        if completed.returncode == 1:
            logger.debug("%s failed validation: %s", path, diagnostic)
            return ValidationOutcome(valid=False, diagnostic=diagnostic)
        raise ToolError(
            f"Command failed ({' '.join(command)}) with unexpected exit code {completed.returncode}: {diagnostic}",
            command,
        )

    def _run_command(self, command: Sequence[str]) -> subprocess.CompletedProcess:
        return _run_command(command, self.timeout)


__all__ = ["FileCommandProbe", "FileTypeProbe", "KubevalValidator", "SchemaValidator"]
