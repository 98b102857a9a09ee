"""Adapters for the external tools the classifiers depend on."""

from .probes import FileCommandProbe, FileTypeProbe, KubevalValidator, SchemaValidator

__all__ = ["FileCommandProbe", "FileTypeProbe", "KubevalValidator", "SchemaValidator"]
