from __future__ import annotations

from fastapi import Request

from sierra_gateway.services.catalog_service import CatalogService


def forwarded_for(request: Request) -> str | None:
    """The original caller's address: an upstream X-Forwarded-For, else the peer host."""
    header = request.headers.get("x-forwarded-for")
    if header:
        return header
    if request.client and request.client.host:
        return request.client.host
    return None


def catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service
