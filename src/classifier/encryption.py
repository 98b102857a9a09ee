from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple, Union

from src.common.config import DEFAULT_FILE_TYPE_KEYWORDS
from src.common.models import ClassificationVerdict, Label, ReasonCode

if TYPE_CHECKING:
    from src.tooling.probes import FileTypeProbe

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 1000
DEFAULT_PRINTABLE_THRESHOLD = 0.80

# POSIX [:print:] plus [:space:] in the C locale.
PRINTABLE_BYTES = frozenset(range(0x20, 0x7F)) | frozenset(b"\t\n\v\f\r")


def _literal(marker: bytes) -> re.Pattern[bytes]:
    return re.compile(re.escape(marker))


def _line_start(marker: bytes) -> re.Pattern[bytes]:
    return re.compile(rb"^" + re.escape(marker), re.MULTILINE)


# Ordered (name, pattern) pairs; the first hit is reported, any hit counts.
MARKER_RULES: Tuple[Tuple[str, re.Pattern[bytes]], ...] = (
    # Vault headers anchor per line like `grep '^...'`, not only at offset 0.
    ("ansible-vault", _line_start(b"$ANSIBLE_VAULT")),
    ("ansible-vault-alt", _line_start(b"ansible-vault")),
    ("sops", _literal(b"sops:")),
    ("age", _literal(b"age:")),
    ("pgp", _literal(b"pgp:")),
    ("pgp-message", _literal(b"BEGIN PGP MESSAGE")),
    ("encrypted-message", _literal(b"BEGIN ENCRYPTED MESSAGE")),
    ("pgp-armor", _literal(b"-----BEGIN PGP MESSAGE-----")),
    ("enc-block", _literal(b"ENC[")),
)


@dataclass(frozen=True)
class FileSample:
    path: str
    content: bytes

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileSample":
        return cls(path=str(path), content=Path(path).read_bytes())

    def prefix(self, size: int = DEFAULT_SAMPLE_SIZE) -> bytes:
        return self.content[:size]


def printable_ratio(data: bytes) -> Optional[float]:
    """Fraction of printable-or-whitespace bytes, or ``None`` for empty input."""

    if not data:
        return None
    printable = sum(1 for byte in data if byte in PRINTABLE_BYTES)
    return printable / len(data)


def find_markers(content: bytes, rules: Sequence[Tuple[str, re.Pattern[bytes]]] = MARKER_RULES) -> List[str]:
    return [name for name, pattern in rules if pattern.search(content)]


def file_type_indicates_encryption(label: str, keywords: Sequence[str] = DEFAULT_FILE_TYPE_KEYWORDS) -> bool:
    lowered = label.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


class EncryptionClassifier:
    """Combine file-type, marker and printable-ratio signals into one verdict.

    Any positive signal marks the file encrypted. The reported reason is the
    first signal in the order file type, marker, printable ratio.
    """

    def __init__(
        self,
        probe: Optional["FileTypeProbe"] = None,
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        printable_threshold: float = DEFAULT_PRINTABLE_THRESHOLD,
        file_type_keywords: Sequence[str] = DEFAULT_FILE_TYPE_KEYWORDS,
        marker_rules: Sequence[Tuple[str, re.Pattern[bytes]]] = MARKER_RULES,
    ) -> None:
        self.probe = probe
        self.sample_size = sample_size
        self.printable_threshold = printable_threshold
        self.file_type_keywords = tuple(file_type_keywords)
        self.marker_rules = tuple(marker_rules)

    def classify(self, sample: FileSample) -> ClassificationVerdict:
        signals: List[ReasonCode] = []

        file_type: Optional[str] = None
        if self.probe is not None:
            file_type = self.probe.probe(sample.path)
            if file_type_indicates_encryption(file_type, self.file_type_keywords):
                signals.append(ReasonCode.FILE_TYPE_SIGNATURE)

        if find_markers(sample.content, self.marker_rules):
            signals.append(ReasonCode.CONTENT_MARKER)

        ratio = printable_ratio(sample.prefix(self.sample_size))
        if ratio is not None and ratio < self.printable_threshold:
            signals.append(ReasonCode.LOW_PRINTABLE_RATIO)

        label = Label.ENCRYPTED if signals else Label.NOT_ENCRYPTED
        logger.debug("%s: %s (signals=%s, ratio=%s)", sample.path, label.value, signals, ratio)
        return ClassificationVerdict(
            label=label,
            reason=signals[0] if signals else ReasonCode.NONE,
            signals=tuple(signals),
            printable_ratio=ratio,
            file_type=file_type,
        )

    def classify_path(self, path: Union[str, Path]) -> ClassificationVerdict:
        return self.classify(FileSample.from_path(path))

    def matched_markers(self, sample: FileSample) -> List[str]:
        return find_markers(sample.content, self.marker_rules)


__all__ = [
    "DEFAULT_PRINTABLE_THRESHOLD",
    "DEFAULT_SAMPLE_SIZE",
    "EncryptionClassifier",
    "FileSample",
    "MARKER_RULES",
    "PRINTABLE_BYTES",
    "file_type_indicates_encryption",
    "find_markers",
    "printable_ratio",
]
