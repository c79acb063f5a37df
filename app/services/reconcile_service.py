"""Friend-edge reconciliation.

Brings the caller's friend list and their accepted friend requests into
agreement:

* friend entries stored with only a username are resolved to a uid through
  the profile directory and re-added keyed by that uid;
* every accepted request puts the counterpart on the caller's list;
* a request is marked ``completed`` only once both lists reference each other.

The run only ever writes the caller's own ``Friends`` document and the status
of requests the caller takes part in. Each request is handled on its own, so a
store failure on one request is reported in the summary while the rest of the
batch carries on. Running it again after convergence performs no writes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from ..constants import FRIEND_REQUESTS_COLLECTION, FRIENDS_COLLECTION, FRIENDS_FIELD
from ..schemas.friends import FriendList, FriendRequestStatus
from .auth_service import AuthSession
from .document_store import DocumentSnapshot, DocumentStore, StoreError
from .profile_service import find_profile_by_username

logger = logging.getLogger(__name__)

OutcomeState = Literal["completed", "awaiting_reciprocal", "failed"]


class ReconcileError(RuntimeError):
    """Raised when the caller's own friend list or requests cannot be loaded."""


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    request_id: str
    other_uid: str | None
    state: OutcomeState
    appended: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedEntry:
    username: str
    uid: str | None
    appended: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ReconcileSummary:
    """Per-request results of a single reconciliation run."""

    user_id: str | None
    outcomes: tuple[RequestOutcome, ...] = ()
    resolved: tuple[ResolvedEntry, ...] = ()

    def _count(self, state: OutcomeState) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == state)

    @property
    def completed(self) -> int:
        return self._count("completed")

    @property
    def awaiting_reciprocal(self) -> int:
        return self._count("awaiting_reciprocal")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def failed_request_ids(self) -> list[str]:
        return [outcome.request_id for outcome in self.outcomes if outcome.state == "failed"]

    @property
    def resolved_count(self) -> int:
        return sum(1 for entry in self.resolved if entry.uid is not None)

    @property
    def writes(self) -> int:
        """Number of store writes the run issued (appends plus completions)."""

        appends = sum(int(outcome.appended) for outcome in self.outcomes)
        appends += sum(int(entry.appended) for entry in self.resolved)
        return appends + self.completed


def load_friend_uids(store: DocumentStore, uid: str) -> set[str]:
    snapshot = store.get_document(FRIENDS_COLLECTION, uid)
    if snapshot is None:
        return set()
    return FriendList.from_entries(snapshot.get(FRIENDS_FIELD)).uids


def _load_own_friends(store: DocumentStore, uid: str) -> tuple[set[str], list[str]]:
    snapshot = store.get_document(FRIENDS_COLLECTION, uid)
    entries = snapshot.get(FRIENDS_FIELD) if snapshot is not None else None
    return FriendList.from_entries(entries).uids, FriendList.usernames_without_uid(entries)


def accepted_requests_for(store: DocumentStore, uid: str) -> list[DocumentSnapshot]:
    """Accepted requests addressed to ``uid`` followed by those sent by ``uid``."""

    accepted = FriendRequestStatus.ACCEPTED.value
    to_me = store.query_where_equals(FRIEND_REQUESTS_COLLECTION, {"receiverUid": uid, "status": accepted})
    from_me = store.query_where_equals(FRIEND_REQUESTS_COLLECTION, {"senderUid": uid, "status": accepted})

    requests: list[DocumentSnapshot] = []
    seen: set[str] = set()
    for snapshot in [*to_me, *from_me]:
        if snapshot.key in seen:
            continue
        seen.add(snapshot.key)
        requests.append(snapshot)
    return requests


def counterpart_of(request: DocumentSnapshot, my_uid: str) -> tuple[str | None, str]:
    """Return the other participant's uid and display name."""

    if request.get("senderUid") == my_uid:
        other_uid, other_name = request.get("receiverUid"), request.get("receiverUsername")
    else:
        other_uid, other_name = request.get("senderUid"), request.get("senderUsername")

    if not isinstance(other_uid, str) or not other_uid or other_uid == my_uid:
        return None, ""
    username = str(other_name or "").strip()
    return other_uid, username or other_uid


def _resolve_username_entry(
    store: DocumentStore,
    my_uid: str,
    username: str,
    my_friends: set[str],
) -> ResolvedEntry:
    """Re-add a uid-less friend entry keyed by the uid its username maps to."""

    try:
        profile = find_profile_by_username(store, username)
        if profile is None or profile.uid == my_uid:
            logger.info("Friend entry %r of %s matches no other profile", username, my_uid)
            return ResolvedEntry(username, None)

        appended = False
        if profile.uid not in my_friends:
            appended = store.merge_append_field(
                FRIENDS_COLLECTION,
                my_uid,
                FRIENDS_FIELD,
                {"uid": profile.uid, "username": profile.username or username},
                unique_by="uid",
            )
            my_friends.add(profile.uid)
        return ResolvedEntry(username, profile.uid, appended)
    except StoreError as exc:
        logger.exception("Resolving friend entry %r of %s failed", username, my_uid)
        return ResolvedEntry(username, None, error=str(exc))


def _reconcile_request(
    store: DocumentStore,
    my_uid: str,
    request: DocumentSnapshot,
    my_friends: set[str],
) -> RequestOutcome:
    other_uid, other_username = counterpart_of(request, my_uid)
    if other_uid is None:
        logger.warning("Friend request %s has no usable counterpart for %s", request.key, my_uid)
        return RequestOutcome(request.key, None, "failed", error="request has no counterpart uid")

    appended = False
    try:
        if other_uid not in my_friends:
            appended = store.merge_append_field(
                FRIENDS_COLLECTION,
                my_uid,
                FRIENDS_FIELD,
                {"uid": other_uid, "username": other_username},
                unique_by="uid",
            )
            my_friends.add(other_uid)

        their_friends = load_friend_uids(store, other_uid)
        if my_uid in their_friends and other_uid in my_friends:
            store.update_fields(
                FRIEND_REQUESTS_COLLECTION,
                request.key,
                {"status": FriendRequestStatus.COMPLETED.value, "updatedAt": store.now()},
            )
            return RequestOutcome(request.key, other_uid, "completed", appended)
    except StoreError as exc:
        logger.exception("Reconciling friend request %s failed", request.key)
        return RequestOutcome(request.key, other_uid, "failed", appended, str(exc))

    return RequestOutcome(request.key, other_uid, "awaiting_reciprocal", appended)


def reconcile_friend_edges(store: DocumentStore, session: AuthSession) -> ReconcileSummary:
    """Repair the caller's friend edges and complete fully reciprocated requests."""

    my_uid = session.current_user_id()
    if my_uid is None:
        return ReconcileSummary(user_id=None)

    try:
        my_friends, legacy_usernames = _load_own_friends(store, my_uid)
        requests = accepted_requests_for(store, my_uid)
    except StoreError as exc:
        raise ReconcileError(f"could not load friend state for {my_uid}") from exc

    resolved = tuple(_resolve_username_entry(store, my_uid, name, my_friends) for name in legacy_usernames)
    outcomes = tuple(_reconcile_request(store, my_uid, request, my_friends) for request in requests)
    summary = ReconcileSummary(user_id=my_uid, outcomes=outcomes, resolved=resolved)

    logger.info(
        "Friend edges reconciled for %s (requests=%d, completed=%d, awaiting=%d, failed=%d, resolved=%d, writes=%d)",
        my_uid,
        len(outcomes),
        summary.completed,
        summary.awaiting_reciprocal,
        summary.failed,
        summary.resolved_count,
        summary.writes,
    )
    return summary


def reconcile_in_background(store: DocumentStore, session: AuthSession) -> None:
    """Run reconciliation without surfacing failures to the caller."""

    try:
        reconcile_friend_edges(store, session)
    except ReconcileError:
        logger.exception("Background friend-edge reconciliation failed")


__all__ = [
    "ReconcileError",
    "RequestOutcome",
    "ResolvedEntry",
    "ReconcileSummary",
    "load_friend_uids",
    "accepted_requests_for",
    "counterpart_of",
    "reconcile_friend_edges",
    "reconcile_in_background",
]
