from __future__ import annotations

import asyncio

from sierra_gateway.configs.logging_config import get_logger
from sierra_gateway.errors import TokenAcquisitionError
from sierra_gateway.tokens.token_store import TokenStore
from sierra_gateway.webclient.OAuth2TokenProvider import OAuth2TokenProvider

log = get_logger(__name__)

# Seconds before a token would expire that a new one is asked for. With a
# 50 second token and a 5 second buffer, the refresh happens after 45 seconds.
TOKEN_REFRESH_BUFFER = 5.0

# Seconds until the next attempt after a failed acquisition.
DEFAULT_REFRESH_TIME = 30.0


class TokenRefresher:
    """
    Keeps a TokenStore supplied with a fresh token until closed.

    The loop alternates between refreshing (awaiting the provider) and waiting
    for either the scheduled deadline or an explicit `request_refresh()`.
    The store is only touched for the final `set`, so readers keep getting
    the previous value while an acquisition is in flight.
    """

    def __init__(
        self,
        store: TokenStore,
        provider: OAuth2TokenProvider,
        refresh_buffer: float = TOKEN_REFRESH_BUFFER,
        retry_delay: float = DEFAULT_REFRESH_TIME,
    ) -> None:
        self._store = store
        self._provider = provider
        self._refresh_buffer = refresh_buffer
        self._retry_delay = retry_delay
        self._refresh_requested = asyncio.Event()
        self._closed = False
        self._task: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def request_refresh(self) -> None:
        """Ask for a new token now. Requests made while one is in flight coalesce into it."""
        if self._closed:
            raise RuntimeError("token refresher is closed")
        log.debug("token.refresh.requested")
        self._refresh_requested.set()

    def close(self) -> None:
        """Stop the loop for good. The store keeps its last value."""
        if self._closed:
            raise RuntimeError("token refresher already closed")
        self._closed = True
        self._refresh_requested.set()

    def start(self) -> asyncio.Task:
        if self._task is not None:
            raise RuntimeError("token refresher already started")
        self._task = asyncio.create_task(self.run(), name="token-refresher")
        return self._task

    async def run(self) -> None:
        log.info("token.refresher.start token_url=%s", self._provider.token_url)
        while not self._closed:
            try:
                wait = await self.refresh_once()
            except Exception as loop_exc:
                self._store.set("")
                log.error(
                    "token.refresher.loop_error error=%s retry_in=%s",
                    str(loop_exc),
                    self._retry_delay,
                    exc_info=True,
                )
                wait = self._retry_delay
            self._refresh_requested.clear()
            if self._closed:
                break
            log.debug("token.refresh.scheduled in_seconds=%s", wait)
            await self._wait(wait)
        log.info("token.refresher.stop")

    async def refresh_once(self) -> float:
        """Acquire a token, store the outcome, and return seconds until the next refresh."""
        log.debug("token.refresh.start")
        try:
            token, ttl = await self._provider.acquire()
        except TokenAcquisitionError as exc:
            self._store.set("")
            log.error("token.refresh.failed error=%s retry_in=%s", exc, self._retry_delay)
            return self._retry_delay

        self._store.set(token)
        log.debug("token.refresh.ok expires_in=%s", ttl)
        return max(ttl - self._refresh_buffer, 0)

    async def _wait(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._refresh_requested.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            log.debug("token.refresh.deadline_reached")
        else:
            if not self._closed:
                log.debug("token.refresh.signal_received")
