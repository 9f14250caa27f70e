from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from sierra_gateway.configs.logging_config import get_logger
from sierra_gateway.configs.settings import (
    BIB_REQUEST_ENDPOINT,
    ITEM_REQUEST_ENDPOINT,
    Settings,
    api_endpoint,
)
from sierra_gateway.domain.entities.catalog import (
    BibRecordOut,
    BibRecordsIn,
    ItemRecordOut,
    ItemRecordsIn,
)
from sierra_gateway.errors import BadRequestError, UpstreamAuthError, UpstreamError
from sierra_gateway.tokens.refresher import TokenRefresher
from sierra_gateway.webclient.OAuth2HttpClient import OAuth2HttpClient

log = get_logger(__name__)

BIB_FIELDS = "id,createdDate,marc"


def sierra_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class CatalogService:
    """
    Queries the Sierra API on behalf of one inbound request and reshapes the
    result into the public schema.

    A 401 from Sierra means the shared token went stale; the refresher is
    asked for a new one and the caller gets a retryable error.
    """

    def __init__(
        self,
        http_client: OAuth2HttpClient,
        refresher: TokenRefresher,
        settings: Settings,
    ) -> None:
        self._http = http_client
        self._refresher = refresher
        self._settings = settings

    async def item_status(self, bib_id: str, *, forwarded_for: str | None = None) -> list[ItemRecordOut]:
        bib_id = bib_id.strip()
        if not bib_id:
            raise BadRequestError("Error, you need to provide a Bib ID. /status/[BibID]")

        url = api_endpoint(self._settings.api_url, ITEM_REQUEST_ENDPOINT)
        resp = await self._http.get(
            url,
            params={"bibIds": bib_id, "deleted": "false"},
            forwarded_for=forwarded_for,
        )
        payload = self._json(resp, "status")
        try:
            records = ItemRecordsIn.model_validate(payload)
        except ValidationError as exc:
            log.warning("catalog.status.decode_failed bib_id=%s error=%s", bib_id, exc)
            raise UpstreamError("JSON Decoding Error") from exc
        return records.convert()

    async def new_bibs(
        self,
        *,
        days: int = 7,
        limit: int = 50,
        forwarded_for: str | None = None,
        now: datetime | None = None,
    ) -> list[BibRecordOut]:
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=days)

        url = api_endpoint(self._settings.api_url, BIB_REQUEST_ENDPOINT)
        resp = await self._http.get(
            url,
            params={
                "createdDate": f"[{sierra_date(start)},{sierra_date(end)}]",
                "deleted": "false",
                "fields": BIB_FIELDS,
                "limit": str(limit),
            },
            forwarded_for=forwarded_for,
        )
        # Sierra answers 404 when the date range holds no records.
        if resp.status_code == 404:
            return []
        payload = self._json(resp, "new")
        try:
            records = BibRecordsIn.model_validate(payload)
        except ValidationError as exc:
            log.warning("catalog.new.decode_failed error=%s", exc)
            raise UpstreamError("JSON Decoding Error") from exc
        return records.convert()

    async def raw(
        self,
        method: str,
        path: str,
        *,
        query: str = "",
        forwarded_for: str | None = None,
    ) -> httpx.Response:
        """Pass a request through to `<api_url>/<path>?<query>` unchanged."""
        url = api_endpoint(self._settings.api_url, path)
        if query:
            url = f"{url}?{query}"
        resp = await self._http.request(method, url, forwarded_for=forwarded_for)
        if resp.status_code == 401:
            self._signal_refresh("raw")
        return resp

    def _json(self, resp: httpx.Response, route: str) -> Any:
        if resp.status_code == 401:
            self._signal_refresh(route)
            raise UpstreamAuthError()
        if resp.status_code != 200:
            log.warning("catalog.%s.upstream_status status=%s", route, resp.status_code)
            raise UpstreamError(f"Sierra API returned status {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            log.warning("catalog.%s.decode_failed error=%s", route, exc)
            raise UpstreamError("JSON Decoding Error") from exc

    def _signal_refresh(self, route: str) -> None:
        log.warning("catalog.%s.token_rejected requesting refresh", route)
        if not self._refresher.closed:
            self._refresher.request_refresh()
