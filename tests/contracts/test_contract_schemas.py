from __future__ import annotations

import json
from pathlib import Path

import pytest

from snipctl.contracts import lint_catalog, load_catalog, schema_path_for, validate, validate_file
from snipctl.core.errors import ScriptError


def test_schema_catalog_is_clean() -> None:
    assert lint_catalog() == []


def test_every_catalog_schema_declares_its_id() -> None:
    for name in load_catalog():
        schema = json.loads(schema_path_for(name).read_text(encoding="utf-8"))
        assert schema["$id"] == name


def test_unknown_schema_is_rejected() -> None:
    with pytest.raises(ScriptError) as err:
        schema_path_for("snipctl.nope.v1")
    assert err.value.kind == "schema_unknown"


def test_validation_error_names_the_pointer() -> None:
    with pytest.raises(ScriptError) as err:
        validate("snipctl.config.v1", {"jobs": 0})
    assert err.value.kind == "schema_validation"
    assert "at jobs" in err.value.message


def test_validate_file(tmp_path: Path) -> None:
    path = tmp_path / "error.json"
    path.write_text(
        json.dumps(
            {
                "schema_name": "snipctl.error.v1",
                "schema_version": 1,
                "tool": "snipctl",
                "status": "error",
                "errors": [{"code": 2, "kind": "config_error", "message": "bad"}],
            }
        ),
        encoding="utf-8",
    )
    validate_file("snipctl.error.v1", path)
