"""Packaged JSON Schemas for snipctl reports, documents, config and errors."""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def schemas_root() -> Path:
    return Path(str(resources.files("snipctl.contracts.schemas")))
