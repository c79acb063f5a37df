"""Convenience exports for service layer."""
from .auth_service import (
    ANONYMOUS_SESSION,
    AuthSession,
    create_access_token,
    decode_access_token,
    get_auth_session,
    require_auth_session,
)
from .document_store import DocumentNotFoundError, DocumentSnapshot, DocumentStore, SqlDocumentStore, StoreError
from .friendship_service import (
    accept_friend_request,
    cancel_friend_request,
    list_friend_requests,
    list_friends,
    reject_friend_request,
    request_id_for,
    send_friend_request,
)
from .profile_service import Profile, find_profile_by_username, get_profile, resolve_display_name, set_username
from .reconcile_service import (
    ReconcileError,
    ReconcileSummary,
    RequestOutcome,
    reconcile_friend_edges,
    reconcile_in_background,
)

__all__ = [
    "ANONYMOUS_SESSION",
    "AuthSession",
    "create_access_token",
    "decode_access_token",
    "get_auth_session",
    "require_auth_session",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "SqlDocumentStore",
    "StoreError",
    "accept_friend_request",
    "cancel_friend_request",
    "list_friend_requests",
    "list_friends",
    "reject_friend_request",
    "request_id_for",
    "send_friend_request",
    "Profile",
    "find_profile_by_username",
    "get_profile",
    "resolve_display_name",
    "set_username",
    "ReconcileError",
    "ReconcileSummary",
    "RequestOutcome",
    "reconcile_friend_edges",
    "reconcile_in_background",
]
