from fastapi import APIRouter, Depends, Query, Request

from sierra_gateway.domain.entities.catalog import dump_records
from sierra_gateway.errors import BadRequestError
from sierra_gateway.routers.dependencies import catalog_service, forwarded_for
from sierra_gateway.services.catalog_service import CatalogService
from sierra_gateway.utils.response import success
from sierra_gateway.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["catalog"])


@router.get("/status/")
async def status_without_bib() -> dict:
    log.debug("catalog.status.missing_bib_id")
    raise BadRequestError("Error, you need to provide a Bib ID. /status/[BibID]")


@router.get("/status/{bib_path:path}")
async def item_status(
    request: Request,
    bib_path: str,
    svc: CatalogService = Depends(catalog_service),
) -> dict:
    # /status/123/anything resolves to bib 123
    bib_id = bib_path.split("/")[0]
    log.info("catalog.status.start bib_id=%s", bib_id)
    entries = await svc.item_status(bib_id, forwarded_for=forwarded_for(request))
    log.info("catalog.status.done bib_id=%s returned=%s", bib_id, len(entries))
    return success({"entries": dump_records(entries)})


@router.get("/new")
async def new_titles(
    request: Request,
    days: int = Query(default=7, ge=1, le=90),
    limit: int = Query(default=50, ge=1, le=200),
    svc: CatalogService = Depends(catalog_service),
) -> dict:
    log.info("catalog.new.start days=%s limit=%s", days, limit)
    entries = await svc.new_bibs(days=days, limit=limit, forwarded_for=forwarded_for(request))
    log.info("catalog.new.done returned=%s", len(entries))
    return success({"entries": dump_records(entries)})
