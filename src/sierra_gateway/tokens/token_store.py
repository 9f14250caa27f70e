from __future__ import annotations

import asyncio
import threading

from sierra_gateway.errors import TokenTimeoutError, TokenUnavailableError

UNINITIALIZED = "uninitialized"

# Also the wait budget of `get_or_wait` when no timeout is given.
DEFAULT_WAIT_TIMEOUT = 30.0


class TokenStore:
    """
    Holds the current Sierra API access token.

    The stored value is in one of three states:

    - `UNINITIALIZED`: no acquisition has completed yet. `get()` returns the
      sentinel without raising; callers compare against it explicitly.
    - a non-empty token: the last acquisition succeeded.
    - `""`: the last acquisition failed. `get()` raises TokenUnavailableError.

    `initialized` is set exactly once, on the first transition away from the
    sentinel, whether that transition is to a token or to a failure. Being an
    `asyncio.Event`, every waiter observes it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = UNINITIALIZED
        self._initialized = asyncio.Event()

    @property
    def initialized(self) -> asyncio.Event:
        return self._initialized

    @property
    def is_initialized(self) -> bool:
        return self._initialized.is_set()

    def get(self) -> str:
        with self._lock:
            value = self._value
        if value == "":
            raise TokenUnavailableError()
        return value

    def set(self, value: str) -> None:
        """Replace the stored value. Only the refresher calls this."""
        with self._lock:
            if self._value == UNINITIALIZED:
                self._initialized.set()
            self._value = value

    async def get_or_wait(self, timeout: float | None = DEFAULT_WAIT_TIMEOUT) -> str:
        """
        Like `get`, but waits up to `timeout` seconds for the first acquisition.

        Raises TokenTimeoutError if nothing was stored in time, and
        TokenUnavailableError if the first acquisition failed.
        """
        value = self.get()
        if value != UNINITIALIZED:
            return value

        try:
            await asyncio.wait_for(self._initialized.wait(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TokenTimeoutError() from exc

        return self.get()
