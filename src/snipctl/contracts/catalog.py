from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from ..core.errors import ScriptError
from .schemas import schemas_root

SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"
_SCHEMA_NAME_RE = re.compile(r"^snipctl\.(?P<topic>[a-z][a-z0-9_]*)\.v(?P<version>[1-9][0-9]*)$")


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    version: int
    file: str

    @property
    def path(self) -> Path:
        return schemas_root() / self.file

    def load(self) -> dict[str, Any]:
        return json.loads(self.path.read_text(encoding="utf-8"))


def catalog_path() -> Path:
    return schemas_root() / "catalog.json"


@lru_cache(maxsize=1)
def list_catalog_entries() -> tuple[CatalogEntry, ...]:
    raw = json.loads(catalog_path().read_text(encoding="utf-8"))
    return tuple(
        CatalogEntry(name=str(row["name"]), version=int(row["version"]), file=str(row["file"]))
        for row in raw.get("schemas", [])
    )


def load_catalog() -> dict[str, CatalogEntry]:
    return {entry.name: entry for entry in list_catalog_entries()}


def schema_path_for(schema_name: str) -> Path:
    entry = load_catalog().get(schema_name)
    if entry is None:
        known = ", ".join(sorted(load_catalog()))
        raise ScriptError(f"unknown schema: {schema_name} (known: {known})", kind="schema_unknown")
    return entry.path


def _entry_problems(entry: CatalogEntry) -> list[str]:
    match = _SCHEMA_NAME_RE.match(entry.name)
    if match is None:
        return [f"{entry.name}: name must look like snipctl.<topic>.v<N>"]
    problems: list[str] = []
    if int(match.group("version")) != entry.version:
        problems.append(f"{entry.name}: catalog version {entry.version} disagrees with the name")
    if entry.file != f"{entry.name}.schema.json":
        problems.append(f"{entry.name}: file must be {entry.name}.schema.json, got {entry.file}")
    if not entry.path.is_file():
        problems.append(f"{entry.name}: schema file is missing")
        return problems
    schema = entry.load()
    if schema.get("$id") != entry.name:
        problems.append(f"{entry.name}: $id is {schema.get('$id')!r}")
    if schema.get("$schema") != SCHEMA_DRAFT:
        problems.append(f"{entry.name}: schemas must declare draft 2020-12")
    return problems


def lint_catalog() -> list[str]:
    """Check catalog order, naming, versions and that every schema file matches its entry."""
    entries = list_catalog_entries()
    names = [entry.name for entry in entries]
    problems: list[str] = []
    if names != sorted(set(names)):
        problems.append("catalog entries must be unique and sorted by name")
    for entry in entries:
        problems.extend(_entry_problems(entry))
    return problems
