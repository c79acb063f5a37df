"""Schemas for friend lists, friend requests and reconciliation results."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field


class FriendRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Friend(BaseModel):
    uid: str
    username: str


class FriendList(BaseModel):
    friends: list[Friend] = Field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: Iterable[Any] | None) -> "FriendList":
        """Build a list from raw stored entries, keeping the first entry per uid.

        Entries without a string ``uid`` are skipped; a blank username falls
        back to the uid.
        """

        friends: list[Friend] = []
        seen: set[str] = set()
        for entry in entries or []:
            if not isinstance(entry, dict):
                continue
            uid = entry.get("uid")
            if not isinstance(uid, str) or not uid or uid in seen:
                continue
            seen.add(uid)
            username = str(entry.get("username") or "").strip() or uid
            friends.append(Friend(uid=uid, username=username))
        return cls(friends=friends)

    @staticmethod
    def usernames_without_uid(entries: Iterable[Any] | None) -> list[str]:
        """Usernames of stored entries that were written before uids were tracked."""

        usernames: list[str] = []
        seen: set[str] = set()
        for entry in entries or []:
            if not isinstance(entry, dict) or (isinstance(entry.get("uid"), str) and entry.get("uid")):
                continue
            username = str(entry.get("username") or "").strip()
            if not username or username.lower() in seen:
                continue
            seen.add(username.lower())
            usernames.append(username)
        return usernames

    @property
    def uids(self) -> set[str]:
        return {friend.uid for friend in self.friends}


class FriendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    sender_uid: str = Field(..., alias="senderUid")
    receiver_uid: str = Field(..., alias="receiverUid")
    status: FriendRequestStatus
    sender_username: str | None = Field(default=None, alias="senderUsername")
    receiver_username: str | None = Field(default=None, alias="receiverUsername")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class FriendRequestPayload(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)


class FriendsOverviewResponse(BaseModel):
    friends: list[Friend]
    incoming_requests: list[FriendRequest]
    outgoing_requests: list[FriendRequest]


class ReconcileOutcomeResponse(BaseModel):
    request_id: str
    other_uid: str | None
    state: Literal["completed", "awaiting_reciprocal", "failed"]
    appended: bool
    error: str | None = None


class ReconcileResponse(BaseModel):
    user_id: str | None
    completed: int
    awaiting_reciprocal: int
    failed: int
    resolved: int
    writes: int
    outcomes: list[ReconcileOutcomeResponse]


__all__ = [
    "FriendRequestStatus",
    "Friend",
    "FriendList",
    "FriendRequest",
    "FriendRequestPayload",
    "FriendsOverviewResponse",
    "ReconcileOutcomeResponse",
    "ReconcileResponse",
]
