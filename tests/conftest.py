# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlmodel import Session

from taskpad.config import Settings
from taskpad.database import create_db_engine, create_tables
from taskpad.errors import InvalidToken
from taskpad.identity_tokens import ExternalIdentity
from taskpad.main import create_app


class FakeTokenVerifier:
    """Maps literal token strings to identities; anything else is rejected."""

    def __init__(self) -> None:
        self.identities: Dict[str, ExternalIdentity] = {}
        self.calls = 0

    def add(self, token: str, identity: ExternalIdentity) -> None:
        self.identities[token] = identity

    def verify(self, token: str) -> ExternalIdentity:
        self.calls += 1
        try:
            return self.identities[token]
        except KeyError:
            raise InvalidToken() from None


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'taskpad.sqlite3'}",
        google_client_id="test-client-id",
        cors_origins=["http://localhost:5173"],
    )


@pytest.fixture()
def db(settings: Settings) -> Iterator[Session]:
    """A session on a fresh store, for exercising the stores directly."""
    engine = create_db_engine(settings.database_url)
    create_tables(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture()
def token_verifier() -> FakeTokenVerifier:
    return FakeTokenVerifier()


@pytest.fixture()
def app(settings: Settings, token_verifier: FakeTokenVerifier) -> FastAPI:
    return create_app(settings, token_verifier=token_verifier)


@pytest.fixture()
def make_client(app: FastAPI) -> Iterator[Callable[[], TestClient]]:
    """Factory for independent clients (separate cookie jars) on one app."""
    clients = []

    def _make() -> TestClient:
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture()
def client(make_client: Callable[[], TestClient]) -> TestClient:
    return make_client()


@pytest.fixture()
def register() -> Callable[..., dict]:
    def _register(client: TestClient, name: str, email: str, password: str = "secret1") -> dict:
        response = client.post("/api/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _register
