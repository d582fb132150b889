from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_CONFIG, ERR_INTERNAL


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class ConfigError(ScriptError):
    """Invalid invocation or configuration; fatal before any verification starts."""

    def __init__(self, message: str, kind: str = "config_error") -> None:
        super().__init__(message, ERR_CONFIG, kind)
