"""Friend management API routes."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ..config import get_settings
from ..database import get_document_store
from ..schemas.friends import (
    FriendRequest,
    FriendRequestPayload,
    FriendsOverviewResponse,
    ReconcileOutcomeResponse,
    ReconcileResponse,
)
from ..services import (
    AuthSession,
    DocumentStore,
    ReconcileError,
    ReconcileSummary,
    accept_friend_request,
    cancel_friend_request,
    get_auth_session,
    list_friend_requests,
    list_friends,
    reconcile_friend_edges,
    reconcile_in_background,
    reject_friend_request,
    require_auth_session,
    send_friend_request,
)

router = APIRouter(prefix="/friends", tags=["friends"])


def _reconcile_response(summary: ReconcileSummary) -> ReconcileResponse:
    return ReconcileResponse(
        user_id=summary.user_id,
        completed=summary.completed,
        awaiting_reciprocal=summary.awaiting_reciprocal,
        failed=summary.failed,
        resolved=summary.resolved_count,
        writes=summary.writes,
        outcomes=[
            ReconcileOutcomeResponse(
                request_id=outcome.request_id,
                other_uid=outcome.other_uid,
                state=outcome.state,
                appended=outcome.appended,
                error=outcome.error,
            )
            for outcome in summary.outcomes
        ],
    )


@router.get("/", response_model=FriendsOverviewResponse)
def friends_overview(
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> FriendsOverviewResponse:
    friends = list_friends(store, session)
    incoming, outgoing = list_friend_requests(store, session)
    return FriendsOverviewResponse(
        friends=friends.friends,
        incoming_requests=incoming,
        outgoing_requests=outgoing,
    )


@router.post("/requests", response_model=FriendRequest, status_code=status.HTTP_201_CREATED)
def create_friend_request(
    payload: FriendRequestPayload,
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> FriendRequest:
    return send_friend_request(store, session, recipient_username=payload.username)


@router.post("/requests/{request_id}/accept", response_model=FriendRequest)
def accept_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> FriendRequest:
    request = accept_friend_request(store, session, request_id=request_id)
    if get_settings().reconcile_on_accept:
        background_tasks.add_task(reconcile_in_background, store, session)
    return request


@router.post("/requests/{request_id}/reject", response_model=FriendRequest)
def reject_request(
    request_id: str,
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> FriendRequest:
    return reject_friend_request(store, session, request_id=request_id)


@router.post("/requests/{request_id}/cancel", response_model=FriendRequest)
def cancel_request(
    request_id: str,
    session: AuthSession = Depends(require_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> FriendRequest:
    return cancel_friend_request(store, session, request_id=request_id)


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile(
    session: AuthSession = Depends(get_auth_session),
    store: DocumentStore = Depends(get_document_store),
) -> ReconcileResponse:
    """Repair the caller's friend edges; signed-out callers get an empty result."""

    try:
        summary = reconcile_friend_edges(store, session)
    except ReconcileError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Friend data unavailable") from exc
    return _reconcile_response(summary)


__all__ = ["router"]
