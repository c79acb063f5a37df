"""Shared fixtures: an isolated in-memory document store per test."""
from __future__ import annotations

import os
from typing import Any, Callable, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_friend_edges.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from app.constants import FRIEND_REQUESTS_COLLECTION, FRIENDS_COLLECTION, PROFILES_COLLECTION  # noqa: E402
from app.database import Base  # noqa: E402
from app.services.document_store import SqlDocumentStore  # noqa: E402


class CountingStore(SqlDocumentStore):
    """Document store that records every write it performs."""

    def __init__(self, session_factory) -> None:
        super().__init__(session_factory)
        self.writes: list[tuple[str, str, str]] = []

    def merge_append_field(self, collection, key, field_name, value, *, unique_by=None) -> bool:
        written = super().merge_append_field(collection, key, field_name, value, unique_by=unique_by)
        if written:
            self.writes.append(("append", collection, key))
        return written

    def update_fields(self, collection, key, fields) -> None:
        super().update_fields(collection, key, fields)
        self.writes.append(("update", collection, key))

    def set_document(self, collection, key, data, *, merge=True) -> None:
        super().set_document(collection, key, data, merge=merge)
        self.writes.append(("set", collection, key))


@pytest.fixture
def session_factory() -> Iterator[sessionmaker]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path) -> Iterator[sessionmaker]:
    """Sessions on a file database so concurrent sessions use separate connections."""

    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'documents.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory: sessionmaker) -> CountingStore:
    return CountingStore(session_factory)


@pytest.fixture
def seed_friends(store: CountingStore) -> Callable[..., None]:
    def _seed(uid: str, *entries: dict[str, Any]) -> None:
        SqlDocumentStore.set_document(store, FRIENDS_COLLECTION, uid, {"friends": list(entries)})
    return _seed


@pytest.fixture
def seed_request(store: CountingStore) -> Callable[..., None]:
    def _seed(request_id: str, sender: str, receiver: str, status: str = "accepted", **extra: Any) -> None:
        data = {"senderUid": sender, "receiverUid": receiver, "status": status, **extra}
        SqlDocumentStore.set_document(store, FRIEND_REQUESTS_COLLECTION, request_id, data)
    return _seed


@pytest.fixture
def seed_profile(store: CountingStore) -> Callable[[str, str], None]:
    def _seed(uid: str, username: str) -> None:
        SqlDocumentStore.set_document(
            store, PROFILES_COLLECTION, uid, {"username": username, "usernameLower": username.lower()}
        )
    return _seed
