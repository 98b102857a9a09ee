"""Heuristic classifiers for YAML files: Kubernetes manifests and encrypted secrets."""

from .encryption import EncryptionClassifier, FileSample
from .manifest import ManifestClassifier

__all__ = [
    "EncryptionClassifier",
    "FileSample",
    "ManifestClassifier",
]
