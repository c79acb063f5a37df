"""Profile API routes for the caller's username."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..database import get_document_store
from ..schemas import ProfileResponse, UsernameUpdateRequest
from ..services import AuthSession, DocumentStore, get_profile, require_auth_session, set_username

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
def retrieve_my_profile(
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> ProfileResponse:
    user_id = session.current_user_id()
    profile = get_profile(store, user_id)
    return ProfileResponse(uid=user_id, username=profile.username if profile else None)


@router.put("/me/username", response_model=ProfileResponse)
def update_my_username(
    payload: UsernameUpdateRequest,
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> ProfileResponse:
    """Claim a unique, case-insensitive username used to find friends."""

    profile = set_username(store, session, payload.username)
    return ProfileResponse(uid=profile.uid, username=profile.username)


__all__ = ["router"]
