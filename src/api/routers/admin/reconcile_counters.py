# File: src/api/routers/admin/reconcile_counters.py

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query

from common.logging.logger import log_info
from common.schemas.standard_response import StandardResponse
from common.security.jwt.auth import require_admin
from common.translations.messages import get_message
from domain.auth.entities.token_entity import CurrentUser
from domain.followers.services.reconcile_counters import reconcile_user_counters
from infrastructure.database.document_store import DocumentStore
from infrastructure.database.store_provider import get_document_store

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/users/{user_id}/reconcile-counters",
    response_model=StandardResponse,
    summary="Recount a user's follow counters",
    description="Recompute followers/following from the follow markers and rewrite them if they drifted. Admin or owner only.",
    responses={403: {"description": "Admin claim required."}, 404: {"description": "User not found."}},
)
async def reconcile_counters_endpoint(
    user_id: Annotated[str, Path(min_length=1)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    language: Annotated[Literal["en", "fa"], Query()] = "en",
):
    result = await reconcile_user_counters(store, user_id, language=language)
    log_info("Counters reconciled by admin", extra={"admin_id": admin.user_id, "user_id": user_id, "changed": result.changed})
    return StandardResponse.success(
        data={**result.model_dump(), "changed": result.changed},
        message=get_message("admin.counters_reconciled", language),
    )
