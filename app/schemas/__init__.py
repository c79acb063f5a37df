"""Convenience exports for schema layer."""
from .friends import (
    Friend,
    FriendList,
    FriendRequest,
    FriendRequestPayload,
    FriendRequestStatus,
    FriendsOverviewResponse,
    ReconcileOutcomeResponse,
    ReconcileResponse,
)
from .profiles import ProfileResponse, UsernameUpdateRequest

__all__ = [
    "Friend",
    "FriendList",
    "FriendRequest",
    "FriendRequestPayload",
    "FriendRequestStatus",
    "FriendsOverviewResponse",
    "ReconcileOutcomeResponse",
    "ReconcileResponse",
    "ProfileResponse",
    "UsernameUpdateRequest",
]
