"""Project-wide constant values."""
from __future__ import annotations

FRIENDS_COLLECTION = "Friends"
FRIEND_REQUESTS_COLLECTION = "FriendRequests"
PROFILES_COLLECTION = "Profiles"

FRIENDS_FIELD = "friends"

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20

__all__ = [
    "FRIENDS_COLLECTION",
    "FRIEND_REQUESTS_COLLECTION",
    "PROFILES_COLLECTION",
    "FRIENDS_FIELD",
    "USERNAME_MIN_LENGTH",
    "USERNAME_MAX_LENGTH",
]
