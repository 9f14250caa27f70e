from fastapi import APIRouter, Depends, Request, Response

from sierra_gateway.routers.dependencies import catalog_service, forwarded_for
from sierra_gateway.services.catalog_service import CatalogService
from sierra_gateway.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/raw", tags=["raw"])

# Response headers that describe the upstream connection rather than the body.
HOP_BY_HOP = {
    "connection",
    "content-encoding",
    "content-length",
    "keep-alive",
    "transfer-encoding",
}


@router.api_route("/{path:path}", methods=["GET", "HEAD"])
async def raw_proxy(
    request: Request,
    path: str,
    svc: CatalogService = Depends(catalog_service),
) -> Response:
    log.debug("raw.proxy.start method=%s path=%s", request.method, path)
    upstream = await svc.raw(
        request.method,
        path,
        query=request.url.query,
        forwarded_for=forwarded_for(request),
    )
    headers = {k: v for k, v in upstream.headers.items() if k.lower() not in HOP_BY_HOP}
    log.debug("raw.proxy.done path=%s status=%s", path, upstream.status_code)
    return Response(content=upstream.content, status_code=upstream.status_code, headers=headers)
