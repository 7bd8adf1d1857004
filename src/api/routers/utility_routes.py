# File: api/routers/utility_routes.py

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from infrastructure.database.document_store import DocumentStore
from infrastructure.database.store_provider import get_document_store

router = APIRouter(tags=["Utility"])


@router.get("/", response_class=RedirectResponse, include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")


@router.get("/health", status_code=200)
async def health_check(store: Annotated[DocumentStore, Depends(get_document_store)]):
    return {
        "status": "healthy",
        "store": store.backend,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
