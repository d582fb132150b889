"""Schema catalog and validation APIs."""

from .catalog import CatalogEntry, lint_catalog, load_catalog, schema_path_for
from .validate import validate, validate_file

__all__ = [
    "CatalogEntry",
    "lint_catalog",
    "load_catalog",
    "schema_path_for",
    "validate",
    "validate_file",
]
