from __future__ import annotations

from typing import Optional, Sequence


class ToolError(RuntimeError):
    """Raised when an external tool is missing or misbehaves.

    This is an environment/setup fault, never a verdict about the file being
    checked, so callers must not fold it into "invalid" or "not encrypted".
    """

    def __init__(self, message: str, command: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.command = tuple(command) if command else ()


__all__ = ["ToolError"]
