import httpx
from typing import Optional
from pydantic import BaseModel, Field, ValidationError

from sierra_gateway.errors import (
    AuthenticationError,
    DecodeError,
    TransportError,
    TTLTooShortError,
)
from sierra_gateway.configs.logging_config import get_logger

log = get_logger(__name__)

# Shortest token lifetime accepted from the authorization server, in seconds.
MIN_TOKEN_TTL = 10

# Longest token lifetime accepted, in seconds (one year).
MAX_TOKEN_TTL = 365 * 24 * 3600


class AuthTokenResponse(BaseModel):
    access_token: str = Field(min_length=1)
    token_type: Optional[str] = None
    expires_in: int = Field(le=MAX_TOKEN_TTL)


class OAuth2TokenProvider:
    """
    Performs one client-credentials exchange per call to `acquire`.

    Holds no token state; the refresher decides what to do with the result.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        min_ttl: float = MIN_TOKEN_TTL,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.min_ttl = min_ttl
        self.timeout = timeout
        self._client = client

    async def acquire(self) -> tuple[str, int]:
        """Return `(access_token, expires_in)` or raise a TokenAcquisitionError."""
        resp = await self._post()

        if resp.status_code != 200:
            raise AuthenticationError(resp.status_code)

        try:
            payload = AuthTokenResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise DecodeError(f"unable to parse token response: {exc}") from exc

        if payload.expires_in < self.min_ttl:
            raise TTLTooShortError(payload.expires_in, self.min_ttl)

        log.debug("token.acquire.ok token_type=%s expires_in=%s", payload.token_type, payload.expires_in)
        return payload.access_token, payload.expires_in

    async def _post(self) -> httpx.Response:
        data = {"grant_type": "client_credentials"}
        auth = (self.client_id, self.client_secret)
        try:
            if self._client is not None:
                return await self._client.post(self.token_url, data=data, auth=auth, timeout=self.timeout)

            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(self.token_url, data=data, auth=auth)
        except (httpx.InvalidURL, httpx.RequestError) as exc:
            raise TransportError(f"unable to get new token: {exc!r}") from exc
