# tests/conftest.py

"""Shared pytest fixtures for all AgroBridge tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from agrobridge.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
) -> Generator[Path, None, None]:
    """Point every on-disk path at a per-test temp directory."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(Settings, "RESULTS_DIR", tmp_path / "results")
    monkeypatch.setattr(Settings, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(Settings, "DATA_DIR", data_dir)
    monkeypatch.setattr(Settings, "CART_PATH", data_dir / "cart.json")
    monkeypatch.setattr(
        Settings, "CATALOG_DB_PATH", data_dir / "catalog.db"
    )
    monkeypatch.setattr(Settings, "STRICT_IDENTITY", False)
    yield tmp_path
