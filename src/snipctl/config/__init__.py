"""Verification settings: dialects, config files and environment overrides."""

from .loader import discover_config_file, load_config
from .model import C_DIALECT, DIALECTS, PYTHON_DIALECT, Dialect, VerifyConfig, dialect_for_suffix, dialect_named

__all__ = [
    "C_DIALECT",
    "DIALECTS",
    "PYTHON_DIALECT",
    "Dialect",
    "VerifyConfig",
    "dialect_for_suffix",
    "dialect_named",
    "discover_config_file",
    "load_config",
]
