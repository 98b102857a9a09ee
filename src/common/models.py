"""Shared verdict types for the classifiers and the batch evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ReasonCode(str, Enum):
    FILE_TYPE_SIGNATURE = "FileTypeSignature"
    CONTENT_MARKER = "ContentMarker"
    LOW_PRINTABLE_RATIO = "LowPrintableRatio"
    PATH_PATTERN = "PathPattern"
    FIELD_PRESENCE = "FieldPresence"
    NONE = "None"


class Label(str, Enum):
    ENCRYPTED = "Encrypted"
    NOT_ENCRYPTED = "NotEncrypted"
    MANIFEST = "Manifest"
    NOT_MANIFEST = "NotManifest"


class FileStatus(str, Enum):
    CLASSIFIED = "Classified"
    UNREADABLE = "Unreadable"


_MATCHED_LABELS = {Label.ENCRYPTED, Label.MANIFEST}


@dataclass(frozen=True)
class ClassificationVerdict:
    label: Label
    reason: ReasonCode = ReasonCode.NONE
    signals: Tuple[ReasonCode, ...] = ()
    status: FileStatus = FileStatus.CLASSIFIED
    printable_ratio: Optional[float] = None
    file_type: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.label in _MATCHED_LABELS

    @property
    def unreadable(self) -> bool:
        return self.status is FileStatus.UNREADABLE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "label": self.label.value,
            "reason": self.reason.value,
        }
        if self.signals:
            data["signals"] = [signal.value for signal in self.signals]
        if self.status is not FileStatus.CLASSIFIED:
            data["status"] = self.status.value
        if self.printable_ratio is not None:
            data["printable_ratio"] = round(self.printable_ratio, 4)
        if self.file_type is not None:
            data["file_type"] = self.file_type
        return data


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    diagnostic: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "diagnostic": self.diagnostic}


__all__ = [
    "ClassificationVerdict",
    "FileStatus",
    "Label",
    "ReasonCode",
    "ValidationOutcome",
]
