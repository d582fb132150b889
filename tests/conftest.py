from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import settings

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("snipctl", deadline=None, max_examples=60)
settings.load_profile("snipctl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("CI", "SNIPCTL_TIMEOUT", "SNIPCTL_JOBS", "SNIPCTL_RUN_ID", "SNIPCTL_LOG_JSON"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    root.mkdir()
    return root
