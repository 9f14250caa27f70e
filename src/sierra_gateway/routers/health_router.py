from __future__ import annotations

from fastapi import APIRouter, Request

from sierra_gateway.utils.response import success

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    store = getattr(request.app.state, "token_store", None)
    initialized = bool(store and store.is_initialized)
    return success({"ok": True, "token_initialized": initialized}, message="healthy")
