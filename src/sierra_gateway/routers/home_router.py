from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

WELCOME = "<html><head></head><body><h1>Welcome to Tyro! The Sierra API helper.</h1></body></html>"


@router.get("/", response_class=HTMLResponse)
async def home() -> str:
    return WELCOME
