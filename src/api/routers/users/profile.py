# File: src/api/routers/users/profile.py

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse
from pydantic import Field

from common.logging.logger import log_info
from common.schemas.request_base import BaseRequestModel
from common.schemas.standard_response import StandardResponse
from common.security.jwt.auth import get_current_user
from common.translations.messages import get_message
from domain.auth.entities.token_entity import CurrentUser
from domain.users.user_services.profile_service import (
    ensure_user_profile,
    find_user_by_username,
    get_user_profile,
    update_user_profile,
)
from domain.users.user_services.username_service.set_username import set_username
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.store_provider import get_document_store

router = APIRouter(tags=["Profile"])

LanguageQuery = Annotated[Literal["en", "fa"], Query(description="Response language (en/fa)", examples=["en", "fa"])]


class SetUsernameRequest(BaseRequestModel):
    username: str = Field(..., json_schema_extra={"example": "wanderer.ana"})


class UpdateProfileRequest(BaseRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    bio: Optional[str] = Field(None, max_length=300)
    avatar_url: Optional[str] = Field(None, max_length=2048)
    username: Optional[str] = Field(None, json_schema_extra={"example": "wanderer.ana"})


@router.post(
    "/users/me",
    response_model=StandardResponse,
    summary="Create profile on first sign-in",
    description="Create the caller's profile with zeroed follow counters if it does not exist yet.",
    responses={200: {"description": "Profile already existed."}, 201: {"description": "Profile created."}},
)
async def ensure_profile_endpoint(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    profile, created = await ensure_user_profile(
        store,
        current_user.user_id,
        name=current_user.name,
        email=current_user.email,
        avatar_url=current_user.picture,
    )
    code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    body = StandardResponse.success(
        data=profile.model_dump(mode="json"),
        message=get_message("user.profile_created" if created else "user.profile", language),
        code=code,
    )
    return JSONResponse(status_code=code, content=body.model_dump())


@router.get("/users/me", response_model=StandardResponse, summary="Current user's profile")
async def my_profile_endpoint(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    profile = await get_user_profile(store, current_user.user_id, language=language)
    return StandardResponse.success(data=profile.model_dump(mode="json"), message=get_message("user.profile", language))


@router.patch(
    "/users/me",
    response_model=StandardResponse,
    summary="Edit profile",
    description="Update name, bio, avatar or username. Omitted fields are left as they are.",
)
async def update_profile_endpoint(
    payload: UpdateProfileRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    language = payload.response_language
    changes = payload.model_dump(exclude_unset=True, exclude={"response_language", "request_id", "username"})
    log_info("Profile edit requested", extra={
        "user_id": current_user.user_id,
        "request_id": payload.request_id,
        "fields": sorted(changes),
        "username": payload.username is not None,
    })

    if payload.username is not None:
        await set_username(store, current_user.user_id, payload.username, language=language)

    if changes or payload.username is None:
        profile = await update_user_profile(store, current_user.user_id, changes, language=language)
    else:
        profile = await get_user_profile(store, current_user.user_id, language=language)
    return StandardResponse.success(data=profile.model_dump(mode="json"), message=get_message("user.profile_updated", language))


@router.post(
    "/users/me/username",
    response_model=StandardResponse,
    summary="Set Username",
    description="Set or change the current user's unique username. The previous name is released.",
)
async def set_username_endpoint(
    payload: SetUsernameRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    language = payload.response_language
    log_info("Username change requested", extra={"user_id": current_user.user_id, "request_id": payload.request_id})
    username = await set_username(store, current_user.user_id, payload.username, language=language)
    return StandardResponse.success(data={"username": username}, message=get_message("user.username_set", language))


@router.get("/users/by-username/{username}", response_model=StandardResponse, summary="Find a profile by username")
async def profile_by_username_endpoint(
    username: Annotated[str, Path(min_length=1)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    profile = await find_user_by_username(store, username, language=language)
    return StandardResponse.success(data=profile.model_dump(mode="json"), message=get_message("user.profile", language))


@router.get("/users/{user_id}", response_model=StandardResponse, summary="Public profile")
async def profile_endpoint(
    user_id: Annotated[str, Path(min_length=1)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: LanguageQuery = "en",
):
    profile = await get_user_profile(store, user_id, language=language)
    return StandardResponse.success(data=profile.model_dump(mode="json"), message=get_message("user.profile", language))
