from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from src.common.config import DEFAULT_PATH_VOCABULARY
from src.common.models import ClassificationVerdict, FileStatus, Label, ReasonCode

logger = logging.getLogger(__name__)

CONTENT_FIELDS = (b"apiVersion:", b"kind:")


class ManifestClassifier:
    """Decide whether a YAML file looks like a Kubernetes manifest.

    The path check is a plain substring match, so ``my-deploymentfoo.yaml`` is
    selected just like ``deployment/app.yaml``. Only ``.yaml``/``.yml`` paths
    should be submitted; the content check is format-agnostic.
    """

    def __init__(self, path_vocabulary: Sequence[str] = DEFAULT_PATH_VOCABULARY) -> None:
        self.path_vocabulary = tuple(path_vocabulary)

    def classify(
        self,
        path: Union[str, Path],
        content: Optional[Union[str, bytes]] = None,
    ) -> ClassificationVerdict:
        path_str = str(path)
        if self._matches_path(path_str):
            return ClassificationVerdict(
                label=Label.MANIFEST,
                reason=ReasonCode.PATH_PATTERN,
                signals=(ReasonCode.PATH_PATTERN,),
            )

        if content is None:
            try:
                content = Path(path).read_bytes()
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", path_str, exc)
                return ClassificationVerdict(label=Label.NOT_MANIFEST, status=FileStatus.UNREADABLE)

        if self._has_manifest_fields(content):
            return ClassificationVerdict(
                label=Label.MANIFEST,
                reason=ReasonCode.FIELD_PRESENCE,
                signals=(ReasonCode.FIELD_PRESENCE,),
            )
        return ClassificationVerdict(label=Label.NOT_MANIFEST)

    def classify_path(self, path: Union[str, Path]) -> ClassificationVerdict:
        return self.classify(path)

    def _matches_path(self, path_str: str) -> bool:
        return any(token in path_str for token in self.path_vocabulary)

    @staticmethod
    def _has_manifest_fields(content: Union[str, bytes]) -> bool:
        if isinstance(content, str):
            content = content.encode("utf-8", errors="surrogateescape")
        return any(field in content for field in CONTENT_FIELDS)


__all__ = ["CONTENT_FIELDS", "ManifestClassifier"]
