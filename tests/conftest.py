from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from influence_cms.api.main import create_app
from influence_cms.db.repo import Repo
from influence_cms.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    site_root = tmp_path / "site"
    site_root.mkdir()
    return Settings(db_url=f"sqlite:///{tmp_path / 'cms.db'}", site_root=site_root)


@pytest.fixture
def repo(settings):
    r = Repo(settings=settings)
    r.ensure_schema()
    yield r
    r.close()


@pytest.fixture
def app(settings, monkeypatch):
    # Keep a developer's local .env out of the tests.
    monkeypatch.setenv("ENV_FILE", "")
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
