from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from task_api.db import SQLAlchemyRepository
from task_api.main import create_app
from task_api.repositories import InMemoryRepository, Repository
from task_api.settings import Settings

from fakes import FailingRepository


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        persistence_backend="database",
        database_url=f"sqlite:///{tmp_path / 'tasks.db'}",
    )


@pytest.fixture(params=["memory", "database"])
def repository(request: pytest.FixtureRequest, settings: Settings) -> Repository:
    """Each API test runs once per backend, starting from an empty store."""
    if request.param == "memory":
        return InMemoryRepository()
    return SQLAlchemyRepository(settings.database_url)


@pytest.fixture()
def client(settings: Settings, repository: Repository) -> Iterator[TestClient]:
    # Context manager so the lifespan opens and closes the repository
    with TestClient(create_app(settings, repository)) as c:
        yield c


@pytest.fixture()
def failing_client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings, FailingRepository())) as c:
        yield c
