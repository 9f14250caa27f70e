import asyncio
import time
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from sierra_gateway.configs.logging_config import get_logger, setup_logging
from sierra_gateway.configs.settings import Settings, get_settings
from sierra_gateway.errors import AppError
from sierra_gateway.routers.catalog_router import router as catalog_router
from sierra_gateway.routers.health_router import router as health_router
from sierra_gateway.routers.home_router import router as home_router
from sierra_gateway.routers.raw_router import router as raw_router
from sierra_gateway.services.catalog_service import CatalogService
from sierra_gateway.tokens.refresher import TokenRefresher
from sierra_gateway.tokens.token_store import TokenStore
from sierra_gateway.utils.response import failure
from sierra_gateway.webclient.OAuth2HttpClient import OAuth2HttpClient
from sierra_gateway.webclient.OAuth2TokenProvider import OAuth2TokenProvider

log = get_logger(__name__)

# Seconds shutdown waits for an in-flight token acquisition before cancelling it.
REFRESHER_SHUTDOWN_GRACE = 1.0


def log_refresher_exit(task: asyncio.Task) -> None:
    """Surface an exception that ended the refresher task instead of dropping it."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("token.refresher.died error=%s", str(exc), exc_info=exc)


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the gateway.

    `transport` replaces the network for every outbound call (token endpoint
    and Sierra API alike); tests pass an `httpx.MockTransport`.
    """
    app = FastAPI(title="sierra-gateway", version="0.1.0")
    settings = settings or get_settings()

    origins = settings.cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

        log.info("request.start method=%s path=%s request_id=%s", method, path, request_id)
        response = None
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            status_code = getattr(response, "status_code", "unknown")
            log.info(
                "request.end method=%s path=%s status=%s request_id=%s elapsed_ms=%s",
                method,
                path,
                status_code,
                request_id,
                elapsed_ms,
            )
        return response

    app.include_router(home_router)
    app.include_router(health_router)
    app.include_router(catalog_router)
    app.include_router(raw_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        log.info("request.error type=%s status=%s message=%s", type(exc).__name__, exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=failure(exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error: %s", str(exc))
        return JSONResponse(status_code=500, content=failure("internal server error"))

    @app.on_event("startup")
    async def startup() -> None:
        setup_logging(
            settings.log_level,
            settings.log_file,
            settings.log_max_size,
            settings.log_max_backups,
        )
        settings.validate_credentials()

        log.info("startup.begin service=%s api_url=%s", settings.SERVICE_NAME, settings.api_url)
        log.info("startup.config token_url=%s acao=%s", settings.token_url, settings.acao_header)
        if origins == ["*"]:
            log.warning('startup.cors using "*" for Access-Control-Allow-Origin, API will be public')

        app.state.settings = settings

        token_client = httpx.AsyncClient(timeout=settings.http_timeout, transport=transport)
        api_client = httpx.AsyncClient(timeout=settings.http_timeout, transport=transport)
        app.state.token_client = token_client

        store = TokenStore()
        provider = OAuth2TokenProvider(
            token_url=settings.token_url,
            client_id=settings.client_key,
            client_secret=settings.client_secret,
            min_ttl=settings.token_min_ttl,
            timeout=settings.http_timeout,
            client=token_client,
        )
        refresher = TokenRefresher(
            store,
            provider,
            refresh_buffer=settings.token_refresh_buffer,
            retry_delay=settings.token_retry_delay,
        )
        app.state.token_store = store
        app.state.token_refresher = refresher
        task = refresher.start()
        task.add_done_callback(log_refresher_exit)
        app.state.token_refresher_task = task

        http_client = OAuth2HttpClient(
            token_store=store,
            client=api_client,
            user_agent=settings.user_agent,
            token_wait_timeout=settings.token_wait_timeout,
        )
        app.state.http_client = http_client
        app.state.catalog_service = CatalogService(http_client, refresher, settings)
        log.info("startup.done")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        log.info("shutdown.begin")
        refresher = getattr(app.state, "token_refresher", None)
        task = getattr(app.state, "token_refresher_task", None)
        if refresher is not None and not refresher.closed:
            refresher.close()
        if task is not None:
            _, pending = await asyncio.wait([task], timeout=REFRESHER_SHUTDOWN_GRACE)
            for t in pending:
                t.cancel()
                try:
                    await t
                except asyncio.CancelledError:
                    pass
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()
        token_client = getattr(app.state, "token_client", None)
        if token_client is not None:
            await token_client.aclose()
        log.info("shutdown.done")

    return app


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.address,
        port=settings.port,
        ssl_certfile=settings.cert_file,
        ssl_keyfile=settings.key_file,
        log_config=None,
    )


app = create_app()
