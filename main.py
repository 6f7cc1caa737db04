from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from counter import SharedCounter
from errors import UpstreamFailure, translate
from metrics import Metrics
from responses import RepoTag, TagsRequest, api_error_response, fail
from upstream import GitHubTagsClient, UpstreamClient

logger = logging.getLogger("tags_edge")

GREETING = "Hey there!"

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def hello(request: Request):
    # Simulated work happens before the increment; the counter lock is never held while sleeping
    delay = request.app.state.settings.counter_delay_seconds
    if delay > 0:
        time.sleep(delay)
    value = request.app.state.counter.increment_and_get()
    return PlainTextResponse(str(value))


@router.post("/echo")
async def echo(request: Request):
    body = await request.body()
    return Response(content=body, media_type="text/plain; charset=utf-8")


@router.post("/{repo}/tags", response_model=List[RepoTag])
def repo_tags(repo: str, payload: TagsRequest, request: Request):
    """Proxy the upstream tags listing for ``payload.username``/``repo``.

    Any ``UpstreamFailure`` is translated to its fixed ``ApiError``; the
    upstream body is never forwarded.
    """
    upstream: UpstreamClient = request.app.state.upstream
    try:
        return upstream.fetch_tags(payload.username, repo)
    except UpstreamFailure as failure:
        metrics: Metrics = request.app.state.metrics
        metrics.incr("upstream_failures_total")
        metrics.incr("errors_total")
        logger.warning(
            "request_id=%s tags proxy failed kind=%s",
            _rid(request),
            failure.kind.value,
        )
        return api_error_response(translate(failure))


@router.get("/hey", response_class=PlainTextResponse)
async def hey():
    return PlainTextResponse(GREETING)


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


def create_app(
    settings: Optional[Settings] = None,
    counter: Optional[SharedCounter] = None,
    upstream: Optional[UpstreamClient] = None,
    metrics: Optional[Metrics] = None,
) -> FastAPI:
    """Build the service with its collaborators injected.

    Anything not passed in is built from ``settings``; an upstream client
    created here is closed when the app shuts down.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")

    owns_upstream = upstream is None
    if upstream is None:
        upstream = GitHubTagsClient(
            base_url=settings.upstream_base_url,
            user_agent=settings.upstream_user_agent,
            timeout=settings.upstream_timeout_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_upstream:
            app.state.upstream.close()

    app = FastAPI(title="Repo Tags Edge API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.counter = counter if counter is not None else SharedCounter()
    app.state.upstream = upstream
    metrics = metrics if metrics is not None else Metrics()
    app.state.metrics = metrics

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        """Attach a request id, echo it as ``x-request-id`` and log one line per request.

        Bodies are never logged.
        """
        metrics.incr("requests_total")
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.time()
        response = None
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.time() - start) * 1000, 3)
            status = getattr(response, "status_code", "-")
            logger.info(
                "request_id=%s method=%s path=%s status=%s duration_ms=%s",
                request_id,
                request.method,
                request.url.path,
                status,
                duration_ms,
            )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        metrics.incr("errors_total")
        return fail(int(exc.status_code), str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        metrics.incr("errors_total")
        logger.info("request_id=%s invalid request errors=%s", _rid(request), len(exc.errors()))
        return fail(400, "Bad Request")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        metrics.incr("errors_total")
        # Runs outside the logging middleware, so the header has to be set here
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
        logger.exception("request_id=%s unhandled error", request_id, exc_info=exc)
        response = fail(500, "Internal Server Error.")
        response.headers["x-request-id"] = request_id
        return response

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics_endpoint():
        return JSONResponse(content=metrics.snapshot())

    app.include_router(router, prefix=settings.api_prefix)
    return app


settings = get_settings()
app = create_app(settings)


def serve() -> None:
    config = uvicorn.Config(
        app=app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=settings.keep_alive_seconds,
        access_log=False,
    )
    server = uvicorn.Server(config)
    logger.info("Server running on %s!", settings.listen_port)
    server.run()


if __name__ == "__main__":
    serve()
