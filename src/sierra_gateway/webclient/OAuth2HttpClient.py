from sierra_gateway.tokens.token_store import TokenStore
from sierra_gateway.errors import UpstreamError
from sierra_gateway.configs.logging_config import get_logger
import httpx
from typing import Optional

log = get_logger(__name__)


def authorization_headers(token: str, user_agent: str, forwarded_for: Optional[str]) -> dict:
    """
    Headers every request to the Sierra API carries: the bearer token, our
    User-Agent, and X-Forwarded-For for the original caller when known.
    """
    headers = {
        "Authorization": f"Bearer {token}",
        "User-Agent": user_agent,
    }
    if forwarded_for:
        headers["X-Forwarded-For"] = forwarded_for
    else:
        log.warning("upstream.forwarded_for_unknown the remote address of the incoming request is not set")
    return headers


class OAuth2HttpClient:
    def __init__(
        self,
        token_store: TokenStore,
        client: httpx.AsyncClient = None,
        user_agent: str = "Tyro",
        token_wait_timeout: float = 30.0,
    ):
        self.token_store = token_store
        self.session = client or httpx.AsyncClient()
        self.user_agent = user_agent
        self.token_wait_timeout = token_wait_timeout

    async def _headers(self, forwarded_for: Optional[str], extra: Optional[dict]) -> dict:
        token = await self.token_store.get_or_wait(self.token_wait_timeout)
        headers = dict(extra or {})
        headers.update(authorization_headers(token, self.user_agent, forwarded_for))
        return headers

    async def request(self, method: str, url: str, forwarded_for: Optional[str] = None, **kwargs) -> httpx.Response:
        headers = await self._headers(forwarded_for, kwargs.pop("headers", None))

        log.debug("upstream.request method=%s url=%s", method, url)
        try:
            return await self.session.request(
                method,
                url,
                headers=headers,
                **kwargs,
            )
        except (httpx.InvalidURL, httpx.RequestError) as exc:
            log.warning("upstream.request_failed method=%s url=%s error=%r", method, url, exc)
            raise UpstreamError() from exc

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def aclose(self) -> None:
        await self.session.aclose()
