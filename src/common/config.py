"""Tunable constants for the gatekeeper, loaded from YAML and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

DEFAULT_PATH_VOCABULARY: Tuple[str, ...] = (
    "k8s",
    "kubernetes",
    "manifests",
    "deployment",
    "service",
    "ingress",
    "configmap",
    "secret",
)
DEFAULT_FILE_TYPE_KEYWORDS: Tuple[str, ...] = ("data", "encrypted", "binary", "gzip", "compressed")

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GateConfig:
    printable_threshold: float = 0.80
    sample_size: int = 1000
    path_vocabulary: Tuple[str, ...] = DEFAULT_PATH_VOCABULARY
    file_type_keywords: Tuple[str, ...] = DEFAULT_FILE_TYPE_KEYWORDS
    secret_dir: str = "secret"
    block_on_validation_failure: bool = True
    max_scan_files: int = 50
    file_cmd: str = "file"
    kubeval_cmd: str = "kubeval"
    tool_timeout_seconds: float = 60.0
    kubeval_args: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 < self.printable_threshold <= 1.0:
            raise ValueError(f"printable_threshold must be in (0, 1], got {self.printable_threshold}")
        if self.sample_size <= 0:
            raise ValueError(f"sample_size must be positive, got {self.sample_size}")
        if self.max_scan_files <= 0:
            raise ValueError(f"max_scan_files must be positive, got {self.max_scan_files}")
        if self.tool_timeout_seconds <= 0:
            raise ValueError(f"tool_timeout_seconds must be positive, got {self.tool_timeout_seconds}")

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "GateConfig":
        config = cls.from_mapping(_load_yaml(path)) if path is not None else cls()
        return config.with_env(os.environ if environ is None else environ)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GateConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in {"path_vocabulary", "file_type_keywords", "kubeval_args"}:
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ValueError(f"{key} must be a list of strings")
                value = tuple(str(item) for item in value)
            elif key == "block_on_validation_failure":
                value = _coerce_bool(value, key)
            elif key in {"sample_size", "max_scan_files"}:
                value = int(value)
            elif key in {"printable_threshold", "tool_timeout_seconds"}:
                value = float(value)
            else:
                value = str(value)
            kwargs[key] = value
        return cls(**kwargs)

    def with_env(self, environ: Mapping[str, str]) -> "GateConfig":
        overrides: Dict[str, Any] = {}
        block = environ.get("BLOCK_ON_K8S_VALIDATION")
        if block is not None:
            overrides["block_on_validation_failure"] = _coerce_bool(block, "BLOCK_ON_K8S_VALIDATION")
        secret_dir = environ.get("YAML_GATE_SECRET_DIR")
        if secret_dir:
            overrides["secret_dir"] = secret_dir
        threshold = environ.get("YAML_GATE_PRINTABLE_THRESHOLD")
        if threshold:
            overrides["printable_threshold"] = float(threshold)
        sample_size = environ.get("YAML_GATE_SAMPLE_SIZE")
        if sample_size:
            overrides["sample_size"] = int(sample_size)
        return replace(self, **overrides) if overrides else self


def _coerce_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


__all__ = ["DEFAULT_FILE_TYPE_KEYWORDS", "DEFAULT_PATH_VOCABULARY", "GateConfig"]
