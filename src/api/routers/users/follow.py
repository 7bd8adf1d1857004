# File: src/api/routers/users/follow.py

import asyncio
import json
from typing import Annotated, List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field
from starlette.status import WS_1008_POLICY_VIOLATION, WS_1011_INTERNAL_ERROR

from common.exceptions.base_exception import AppHTTPException, BadRequestException, UnauthorizedException
from common.logging.logger import log_info, log_warning
from common.schemas.standard_response import ErrorResponse, StandardResponse
from common.security.jwt.auth import authenticate_token, get_current_user, get_optional_user
from common.translations.messages import get_message
from domain.auth.entities.token_entity import CurrentUser
from domain.followers.entities.follower_entity import FollowMarker, FollowState, FollowStatus
from domain.followers.services.follow_status import FollowStatusWatcher, check_follow_status
from domain.followers.services.list_follows import DEFAULT_LIMIT, MAX_LIMIT, list_followers, list_following
from domain.followers.services.toggle_follow import toggle_follow
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.store_provider import get_document_store

router = APIRouter(tags=["Follow"])

LanguageQuery = Annotated[Literal["en", "fa"], Query(description="Response language (en/fa)", examples=["en", "fa"])]


class FollowToggleData(BaseModel):
    target_user_id: str
    following: bool = Field(..., description="True if the caller now follows the target")
    state: FollowState


class FollowStatusData(FollowStatus):
    target_user_id: str


def _error_payload(exc: AppHTTPException) -> dict:
    return {**ErrorResponse.from_exception(exc).model_dump(exclude={"status"}), "type": "error"}


@router.post(
    "/users/{target_user_id}/follow",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Follow or unfollow a user",
    description="Flip the caller's follow relationship with the target user and return the new state.",
    responses={
        400: {"description": "Cannot follow yourself."},
        401: {"description": "Authentication required."},
        404: {"description": "User not found."},
        409: {"description": "Concurrent update, retry the action."},
        503: {"description": "Document store unavailable."},
    }
)
async def toggle_follow_endpoint(
    target_user_id: Annotated[str, Path(description="User to follow or unfollow", min_length=1)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    try:
        following = await toggle_follow(store, target_user_id, current_user.user_id, language=language)
    except ValueError as e:
        raise BadRequestException(detail=str(e))

    data = FollowToggleData(
        target_user_id=target_user_id,
        following=following,
        state=FollowState.FOLLOWING if following else FollowState.NOT_FOLLOWING,
    )
    return StandardResponse.success(
        data=data.model_dump(mode="json"),
        message=get_message("follow.followed" if following else "follow.unfollowed", language),
    )


@router.get(
    "/users/{target_user_id}/follow-status",
    response_model=StandardResponse,
    summary="Check follow status",
    description="Whether the caller follows the target. Anonymous callers get an indeterminate (loading) status.",
)
async def follow_status_endpoint(
    target_user_id: Annotated[str, Path(min_length=1)],
    current_user: Annotated[Optional[CurrentUser], Depends(get_optional_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    follower_user_id = current_user.user_id if current_user else None
    try:
        result = await check_follow_status(store, target_user_id, follower_user_id, language=language)
    except ValueError as e:
        raise BadRequestException(detail=str(e))

    data = FollowStatusData(target_user_id=target_user_id, **result.model_dump())
    return StandardResponse.success(data=data.model_dump(), message=get_message("follow.status", language))


@router.websocket("/users/{target_user_id}/follow-status/ws")
async def follow_status_stream(
    websocket: WebSocket,
    target_user_id: str,
    store: Annotated[DocumentStore, Depends(get_document_store)],
    token: Optional[str] = None,
    language: Literal["en", "fa"] = "en",
):
    """
    Push the live follow status for the caller and the target.

    Every change is sent as ``{"type": "status", "is_following", "is_loading"}``.
    Sending ``{"action": "toggle"}`` flips the relationship; failures come back
    as ``{"type": "error", ...}``.
    """
    follower_user_id = None
    if token:
        try:
            follower_user_id = authenticate_token(token).user_id
        except UnauthorizedException as e:
            log_warning("Follow status stream rejected", extra={"target_user_id": target_user_id, "detail": e.detail})
            await websocket.close(code=WS_1008_POLICY_VIOLATION)
            return

    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()

    def _push_status(current: FollowStatus):
        outbox.put_nowait({"type": "status", **current.model_dump()})

    def _push_error(exc: AppHTTPException):
        outbox.put_nowait(_error_payload(exc))

    async def _sender():
        try:
            while True:
                await websocket.send_json(await outbox.get())
        except (WebSocketDisconnect, RuntimeError):
            return

    watcher = FollowStatusWatcher(store, target_user_id, follower_user_id, on_change=_push_status, language=language)
    sender = asyncio.create_task(_sender())
    try:
        try:
            await watcher.start()
        except AppHTTPException as e:
            sender.cancel()
            await websocket.send_json(_error_payload(e))
            await websocket.close(code=WS_1011_INTERNAL_ERROR)
            return

        log_info("Follow status stream opened", extra={"target_user_id": target_user_id, "follower_user_id": follower_user_id})
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                message = None

            if not isinstance(message, dict) or message.get("action") != "toggle":
                _push_error(BadRequestException("Unsupported message."))
                continue

            try:
                await watcher.toggle()
            except AppHTTPException as e:
                _push_error(e)

    except WebSocketDisconnect:
        log_info("Follow status stream closed", extra={"target_user_id": target_user_id, "follower_user_id": follower_user_id})
    finally:
        watcher.stop()
        sender.cancel()


def _marker_list(markers: List[FollowMarker]) -> List[dict]:
    return [marker.model_dump(mode="json") for marker in markers]


@router.get(
    "/users/{user_id}/followers",
    response_model=StandardResponse,
    summary="List followers",
)
async def list_followers_endpoint(
    user_id: Annotated[str, Path(min_length=1)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    language: LanguageQuery = "en",
):
    markers = await list_followers(store, user_id, limit=limit)
    return StandardResponse.success(
        data={"user_id": user_id, "followers": _marker_list(markers)},
        message=get_message("follow.followers_listed", language),
    )


@router.get(
    "/users/{user_id}/following",
    response_model=StandardResponse,
    summary="List followed users",
)
async def list_following_endpoint(
    user_id: Annotated[str, Path(min_length=1)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    language: LanguageQuery = "en",
):
    markers = await list_following(store, user_id, limit=limit)
    return StandardResponse.success(
        data={"user_id": user_id, "following": _marker_list(markers)},
        message=get_message("follow.following_listed", language),
    )
