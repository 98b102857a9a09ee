from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from src.common.models import ClassificationVerdict, ReasonCode, ValidationOutcome
from src.tooling.probes import SchemaValidator

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Classifier(Protocol):
    def classify_path(self, path: PathLike) -> ClassificationVerdict:
        ...


class BatchMode(str, Enum):
    ENCRYPTION_CHECK = "EncryptionCheck"
    MANIFEST_VALIDATION = "ManifestValidation"


class BatchStatus(str, Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    NO_APPLICABLE_FILES = "NoApplicableFiles"


class SkipReason(str, Enum):
    UNREADABLE = "Unreadable"
    NOT_APPLICABLE = "NotApplicable"


@dataclass(frozen=True)
class FileOutcome:
    path: str
    verdict: ClassificationVerdict
    validation: Optional[ValidationOutcome] = None

    @property
    def reason(self) -> ReasonCode:
        return self.verdict.reason

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "reason": self.verdict.reason.value,
            "verdict": self.verdict.to_dict(),
        }
        if self.validation is not None:
            data["validation"] = self.validation.to_dict()
        return data


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: SkipReason

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "reason": self.reason.value}


@dataclass(frozen=True)
class BatchSummary:
    mode: BatchMode
    total: int = 0
    matched: int = 0
    passing: Tuple[FileOutcome, ...] = ()
    failing: Tuple[FileOutcome, ...] = ()
    skipped: Tuple[SkippedFile, ...] = ()

    @property
    def passed(self) -> int:
        return len(self.passing)

    @property
    def failed(self) -> int:
        return len(self.failing)

    @property
    def status(self) -> BatchStatus:
        if self.failed > 0:
            return BatchStatus.FAILED
        if self.matched == 0:
            return BatchStatus.NO_APPLICABLE_FILES
        return BatchStatus.PASSED

    @property
    def exit_code(self) -> int:
        return 1 if self.status is BatchStatus.FAILED else 0

    @property
    def passing_paths(self) -> List[str]:
        return [outcome.path for outcome in self.passing]

    @property
    def failing_paths(self) -> List[str]:
        return [outcome.path for outcome in self.failing]

    @property
    def unreadable_paths(self) -> List[str]:
        return [entry.path for entry in self.skipped if entry.reason is SkipReason.UNREADABLE]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "total": self.total,
            "matched": self.matched,
            "passed": self.passed,
            "failed": self.failed,
            "passing": [outcome.to_dict() for outcome in self.passing],
            "failing": [outcome.to_dict() for outcome in self.failing],
            "skipped": [entry.to_dict() for entry in self.skipped],
        }

    def write(self, output_path: Path) -> None:
        output_path = output_path.resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2)


@dataclass
class _Accumulator:
    total: int = 0
    matched: int = 0
    passing: List[FileOutcome] = field(default_factory=list)
    failing: List[FileOutcome] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)

    def skip(self, path: str, reason: SkipReason) -> "_Accumulator":
        self.skipped.append(SkippedFile(path=path, reason=reason))
        return self

    def freeze(self, mode: BatchMode) -> BatchSummary:
        return BatchSummary(
            mode=mode,
            total=self.total,
            matched=self.matched,
            passing=tuple(self.passing),
            failing=tuple(self.failing),
            skipped=tuple(self.skipped),
        )


class BatchEvaluator:
    """Fold per-file verdicts into a BatchSummary.

    Without a validator every classified file is bucketed on its own verdict
    (encrypted passes). With a validator only matched files are validated and
    bucketed on the validation outcome; the rest are skipped as not applicable.
    Files are processed in input order, one at a time, and tool errors from the
    classifier or validator propagate to the caller.
    """

    def evaluate(
        self,
        paths: Iterable[PathLike],
        classifier: Classifier,
        validator: Optional[SchemaValidator] = None,
    ) -> BatchSummary:
        mode = BatchMode.ENCRYPTION_CHECK if validator is None else BatchMode.MANIFEST_VALIDATION

        def step(acc: _Accumulator, path: PathLike) -> _Accumulator:
            return self._evaluate_one(acc, path, classifier, validator)

        summary = reduce(step, paths, _Accumulator()).freeze(mode)
        logger.info(
            "%s: %d file(s) considered, %d matched, %d passed, %d failed, %d skipped",
            mode.value,
            summary.total,
            summary.matched,
            summary.passed,
            summary.failed,
            len(summary.skipped),
        )
        return summary

    @staticmethod
    def _evaluate_one(
        acc: _Accumulator,
        path: PathLike,
        classifier: Classifier,
        validator: Optional[SchemaValidator],
    ) -> _Accumulator:
        path_str = str(path)
        if not _is_readable_file(path_str):
            logger.warning("Skipping unreadable file: %s", path_str)
            return acc.skip(path_str, SkipReason.UNREADABLE)

        try:
            verdict = classifier.classify_path(path_str)
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", path_str, exc)
            return acc.skip(path_str, SkipReason.UNREADABLE)
        if verdict.unreadable:
            return acc.skip(path_str, SkipReason.UNREADABLE)

        acc.total += 1
        if validator is None:
            acc.matched += 1
            bucket = acc.passing if verdict.matched else acc.failing
            bucket.append(FileOutcome(path=path_str, verdict=verdict))
            return acc

        if not verdict.matched:
            return acc.skip(path_str, SkipReason.NOT_APPLICABLE)

        acc.matched += 1
        outcome = validator.validate(path_str)
        bucket = acc.passing if outcome.valid else acc.failing
        bucket.append(FileOutcome(path=path_str, verdict=verdict, validation=outcome))
        return acc


def _is_readable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)


__all__ = [
    "BatchEvaluator",
    "BatchMode",
    "BatchStatus",
    "BatchSummary",
    "Classifier",
    "FileOutcome",
    "SkipReason",
    "SkippedFile",
]
