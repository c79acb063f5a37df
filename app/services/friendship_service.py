"""Business logic for friend requests and friend lists."""
from __future__ import annotations

from fastapi import HTTPException, status

from ..constants import FRIEND_REQUESTS_COLLECTION, FRIENDS_COLLECTION, FRIENDS_FIELD
from ..schemas.friends import FriendList, FriendRequest, FriendRequestStatus
from .auth_service import AuthSession, require_user_id
from .document_store import DocumentSnapshot, DocumentStore
from .profile_service import find_profile_by_username, get_profile, resolve_display_name
from .reconcile_service import load_friend_uids

_SETTLED_STATUSES = {FriendRequestStatus.ACCEPTED.value, FriendRequestStatus.COMPLETED.value}


def request_id_for(sender_uid: str, receiver_uid: str) -> str:
    return f"{sender_uid}_{receiver_uid}"


def _to_request(snapshot: DocumentSnapshot) -> FriendRequest:
    return FriendRequest.model_validate({**snapshot.data, "id": snapshot.key})


def _status_of(snapshot: DocumentSnapshot | None) -> str | None:
    return snapshot.get("status") if snapshot is not None else None


def list_friends(store: DocumentStore, session: AuthSession) -> FriendList:
    user_id = require_user_id(session)
    snapshot = store.get_document(FRIENDS_COLLECTION, user_id)
    friends = FriendList.from_entries(snapshot.get(FRIENDS_FIELD) if snapshot else None)
    friends.friends.sort(key=lambda friend: friend.username.lower())
    return friends


def send_friend_request(store: DocumentStore, session: AuthSession, *, recipient_username: str) -> FriendRequest:
    sender_id = require_user_id(session)
    candidate = (recipient_username or "").strip()
    if not candidate:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username required")

    sender_profile = get_profile(store, sender_id)
    if sender_profile is None or not sender_profile.username:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Set a username first")

    recipient = find_profile_by_username(store, candidate)
    if recipient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if recipient.uid == sender_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot befriend yourself")
    if recipient.uid in load_friend_uids(store, sender_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    outgoing_id = request_id_for(sender_id, recipient.uid)
    outgoing = _status_of(store.get_document(FRIEND_REQUESTS_COLLECTION, outgoing_id))
    incoming = _status_of(store.get_document(FRIEND_REQUESTS_COLLECTION, request_id_for(recipient.uid, sender_id)))

    if outgoing == FriendRequestStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already sent")
    if incoming == FriendRequestStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="They already requested you")
    if outgoing in _SETTLED_STATUSES or incoming in _SETTLED_STATUSES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    now = store.now()
    store.set_document(
        FRIEND_REQUESTS_COLLECTION,
        outgoing_id,
        {
            "senderUid": sender_id,
            "receiverUid": recipient.uid,
            "status": FriendRequestStatus.PENDING.value,
            "createdAt": now,
            "updatedAt": now,
            "senderUsername": sender_profile.username,
            "receiverUsername": recipient.username or candidate,
        },
    )
    return FriendRequest(
        id=outgoing_id,
        sender_uid=sender_id,
        receiver_uid=recipient.uid,
        status=FriendRequestStatus.PENDING,
        sender_username=sender_profile.username,
        receiver_username=recipient.username or candidate,
        created_at=now,
        updated_at=now,
    )


def list_friend_requests(store: DocumentStore, session: AuthSession) -> tuple[list[FriendRequest], list[FriendRequest]]:
    user_id = require_user_id(session)
    pending = FriendRequestStatus.PENDING.value
    incoming = store.query_where_equals(FRIEND_REQUESTS_COLLECTION, {"receiverUid": user_id, "status": pending})
    outgoing = store.query_where_equals(FRIEND_REQUESTS_COLLECTION, {"senderUid": user_id, "status": pending})
    return [_to_request(item) for item in incoming], [_to_request(item) for item in outgoing]


def _pending_request_for(store: DocumentStore, request_id: str, *, participant_field: str, user_id: str) -> DocumentSnapshot:
    snapshot = store.get_document(FRIEND_REQUESTS_COLLECTION, request_id)
    if snapshot is None or snapshot.get(participant_field) != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if snapshot.get("status") != FriendRequestStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already processed")
    return snapshot


def _transition(store: DocumentStore, snapshot: DocumentSnapshot, new_status: FriendRequestStatus) -> FriendRequest:
    updated_at = store.now()
    store.update_fields(
        FRIEND_REQUESTS_COLLECTION,
        snapshot.key,
        {"status": new_status.value, "updatedAt": updated_at},
    )
    request = _to_request(snapshot)
    return request.model_copy(update={"status": new_status, "updated_at": updated_at})


def accept_friend_request(store: DocumentStore, session: AuthSession, *, request_id: str) -> FriendRequest:
    """Accept an incoming request and add the sender to the receiver's list.

    The sender's list is left alone; the sender picks the edge up the next
    time reconciliation runs for them.
    """

    user_id = require_user_id(session)
    snapshot = _pending_request_for(store, request_id, participant_field="receiverUid", user_id=user_id)
    request = _transition(store, snapshot, FriendRequestStatus.ACCEPTED)

    sender_name = resolve_display_name(store, request.sender_uid, fallback=request.sender_username)
    store.merge_append_field(
        FRIENDS_COLLECTION,
        user_id,
        FRIENDS_FIELD,
        {"uid": request.sender_uid, "username": sender_name},
        unique_by="uid",
    )
    return request


def reject_friend_request(store: DocumentStore, session: AuthSession, *, request_id: str) -> FriendRequest:
    user_id = require_user_id(session)
    snapshot = _pending_request_for(store, request_id, participant_field="receiverUid", user_id=user_id)
    return _transition(store, snapshot, FriendRequestStatus.REJECTED)


def cancel_friend_request(store: DocumentStore, session: AuthSession, *, request_id: str) -> FriendRequest:
    user_id = require_user_id(session)
    snapshot = _pending_request_for(store, request_id, participant_field="senderUid", user_id=user_id)
    return _transition(store, snapshot, FriendRequestStatus.CANCELLED)


__all__ = [
    "request_id_for",
    "list_friends",
    "send_friend_request",
    "list_friend_requests",
    "accept_friend_request",
    "reject_friend_request",
    "cancel_friend_request",
]
