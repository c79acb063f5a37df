"""Username registration and lookup for friend discovery."""
from __future__ import annotations

import re

from fastapi import HTTPException, status
from pydantic import BaseModel

from ..constants import PROFILES_COLLECTION, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from .auth_service import AuthSession, require_user_id
from .document_store import DocumentSnapshot, DocumentStore

_USERNAME_PATTERN = re.compile(rf"^[A-Za-z0-9_]{{{USERNAME_MIN_LENGTH},{USERNAME_MAX_LENGTH}}}$")


class Profile(BaseModel):
    uid: str
    username: str | None = None


def _profile(snapshot: DocumentSnapshot) -> Profile:
    username = str(snapshot.get("username") or snapshot.get("usernameLower") or "").strip()
    return Profile(uid=snapshot.key, username=username or None)


def get_profile(store: DocumentStore, uid: str) -> Profile | None:
    snapshot = store.get_document(PROFILES_COLLECTION, uid)
    return _profile(snapshot) if snapshot is not None else None


def set_username(store: DocumentStore, session: AuthSession, username: str) -> Profile:
    uid = require_user_id(session)
    desired = (username or "").strip()
    if not desired:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username required")
    if not _USERNAME_PATTERN.fullmatch(desired):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Use {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} letters, numbers, or underscore",
        )

    desired_lower = desired.lower()
    holders = store.query_where_equals(PROFILES_COLLECTION, {"usernameLower": desired_lower})
    if any(holder.key != uid for holder in holders):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    store.set_document(PROFILES_COLLECTION, uid, {"username": desired, "usernameLower": desired_lower})
    return Profile(uid=uid, username=desired)


def find_profile_by_username(store: DocumentStore, username: str) -> Profile | None:
    """Look a profile up case-insensitively, then by exact stored username."""

    candidate = (username or "").strip()
    if not candidate:
        return None
    matches = store.query_where_equals(PROFILES_COLLECTION, {"usernameLower": candidate.lower()})
    if not matches:
        matches = store.query_where_equals(PROFILES_COLLECTION, {"username": candidate})
    return _profile(matches[0]) if matches else None


def resolve_display_name(store: DocumentStore, uid: str, fallback: str | None = None) -> str:
    profile = get_profile(store, uid)
    if profile is not None and profile.username:
        return profile.username
    if fallback and fallback.strip():
        return fallback.strip()
    return uid


__all__ = [
    "Profile",
    "get_profile",
    "set_username",
    "find_profile_by_username",
    "resolve_display_name",
]
