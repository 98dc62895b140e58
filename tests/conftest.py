"""Shared pytest fixtures for the Mealcal test suite."""

from __future__ import annotations

from datetime import date
from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mealcal.config import get_settings
from mealcal.db.repository import reset_repository_state
from mealcal.server import deps
from mealcal.server.app import create_app

# A Thursday; its week starts on Monday 2025-03-10.
TODAY = date(2025, 3, 13)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_mealcal.db"
    monkeypatch.setenv("MEALCAL_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("MEALCAL_API_TOKEN", raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    monkeypatch.delenv("MEALCAL_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def app(today) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app pinned to a fixed "today" and reset overrides."""

    application = create_app()
    application.dependency_overrides[deps.get_today_provider] = lambda: (lambda: today)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def dish_payload() -> dict[str, object]:
    """Provide a valid dish creation payload for API tests."""

    return {
        "name": "Mapo Tofu",
        "cuisine": "chinese",
        "ingredients": ["pork", "rice"],
        "preferences": ["hubert", "haley"],
    }
