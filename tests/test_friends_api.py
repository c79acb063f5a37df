"""Integration tests covering the friend and profile HTTP routes."""
from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import Document
from app.services import create_access_token


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Document))
        session.commit()
    yield


def _auth(uid: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(uid)}"}


def _claim_username(client: TestClient, uid: str, username: str) -> None:
    response = client.put("/profiles/me/username", json={"username": username}, headers=_auth(uid))
    assert response.status_code == 200, response.text


def test_request_accept_reconcile_round_trip() -> None:
    with TestClient(app) as client:
        _claim_username(client, "uid-ann", "ann")
        _claim_username(client, "uid-bea", "bea")

        sent = client.post("/friends/requests", json={"username": "BEA"}, headers=_auth("uid-ann"))
        assert sent.status_code == 201, sent.text
        request_id = sent.json()["id"]
        assert sent.json()["senderUid"] == "uid-ann"
        assert sent.json()["status"] == "pending"

        overview = client.get("/friends/", headers=_auth("uid-bea")).json()
        assert [item["id"] for item in overview["incoming_requests"]] == [request_id]

        accepted = client.post(f"/friends/requests/{request_id}/accept", headers=_auth("uid-bea"))
        assert accepted.status_code == 200, accepted.text
        assert accepted.json()["status"] == "accepted"

        bea_friends = client.get("/friends/", headers=_auth("uid-bea")).json()["friends"]
        assert bea_friends == [{"uid": "uid-ann", "username": "ann"}]

        result = client.post("/friends/reconcile", headers=_auth("uid-ann"))
        assert result.status_code == 200, result.text
        body = result.json()
        assert body["user_id"] == "uid-ann"
        assert body["completed"] == 1
        assert body["writes"] == 2
        assert body["outcomes"][0]["request_id"] == request_id

        again = client.post("/friends/reconcile", headers=_auth("uid-ann")).json()
        assert again["writes"] == 0
        assert again["outcomes"] == []

        ann_friends = client.get("/friends/", headers=_auth("uid-ann")).json()["friends"]
        assert ann_friends == [{"uid": "uid-bea", "username": "bea"}]


def test_reconcile_without_token_is_a_no_op() -> None:
    with TestClient(app) as client:
        response = client.post("/friends/reconcile")

    assert response.status_code == 200
    assert response.json() == {
        "user_id": None,
        "completed": 0,
        "awaiting_reciprocal": 0,
        "failed": 0,
        "resolved": 0,
        "writes": 0,
        "outcomes": [],
    }


def test_protected_routes_require_valid_token() -> None:
    with TestClient(app) as client:
        missing = client.get("/friends/")
        invalid = client.get("/friends/", headers={"Authorization": "Bearer not-a-token"})
        bad_reconcile = client.post("/friends/reconcile", headers={"Authorization": "Bearer not-a-token"})

    assert missing.status_code == 401
    assert invalid.status_code == 401
    assert bad_reconcile.status_code == 401


def test_reject_and_unknown_request() -> None:
    with TestClient(app) as client:
        _claim_username(client, "uid-ann", "ann")
        _claim_username(client, "uid-bea", "bea")
        request_id = client.post("/friends/requests", json={"username": "bea"}, headers=_auth("uid-ann")).json()["id"]

        rejected = client.post(f"/friends/requests/{request_id}/reject", headers=_auth("uid-bea"))
        missing = client.post("/friends/requests/nope/accept", headers=_auth("uid-bea"))
        profile = client.get("/profiles/me", headers=_auth("uid-bea"))

    assert rejected.json()["status"] == "rejected"
    assert missing.status_code == 404
    assert profile.json() == {"uid": "uid-bea", "username": "bea"}


def test_system_routes() -> None:
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/api").status_code == 200


def test_reconcile_resolves_username_only_friend_entries() -> None:
    with TestClient(app) as client:
        _claim_username(client, "uid-bea", "Bea")
        with SessionLocal() as session:
            session.add(Document(collection="Friends", key="uid-ann", data={"friends": [{"username": "bea"}]}))
            session.commit()

        body = client.post("/friends/reconcile", headers=_auth("uid-ann")).json()
        friends = client.get("/friends/", headers=_auth("uid-ann")).json()["friends"]

    assert body["resolved"] == 1
    assert body["writes"] == 1
    assert friends == [{"uid": "uid-bea", "username": "Bea"}]
