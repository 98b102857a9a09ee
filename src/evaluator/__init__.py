"""Batch evaluation of classifier verdicts into a pass/fail summary."""

from .batch import BatchEvaluator, BatchMode, BatchStatus, BatchSummary, FileOutcome, SkippedFile, SkipReason

__all__ = [
    "BatchEvaluator",
    "BatchMode",
    "BatchStatus",
    "BatchSummary",
    "FileOutcome",
    "SkipReason",
    "SkippedFile",
]
