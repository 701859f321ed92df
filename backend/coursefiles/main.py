from contextlib import asynccontextmanager
import logging
import time

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from coursefiles.api.router import api_router
from coursefiles.core.config import Settings, get_settings
from coursefiles.core.database import build_session_factory, create_db_engine
from coursefiles.core.errors import AuthFailureError, FilesError
from coursefiles.core.logging import setup_logging
from coursefiles.core.metrics import REQUEST_COUNT, REQUEST_DURATION
from coursefiles.core.registry import build_registry

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if not settings.remote_auth_enabled and not settings.local_auth_enabled:
        logger.warning("Neither AUTH_API_BASE_URL nor JWT_SECRET_KEY is set; all file routes will return 401")
    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started")
    yield
    await app.state.http_client.aclose()
    await app.state.engine.dispose()
    logger.info(f"{settings.PROJECT_NAME} stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="File upload, download and delete API for course modules. Uploads up to 15MB.",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = create_db_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.http_client = httpx.AsyncClient()
    app.state.registry = build_registry(settings, app.state.http_client)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    app.add_exception_handler(FilesError, handle_files_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    app.add_middleware(BaseHTTPMiddleware, dispatch=handle_broad_exceptions)
    app.add_middleware(BaseHTTPMiddleware, dispatch=record_request_metrics)
    app.add_middleware(RequestBodyLimitMiddleware, max_body_bytes=settings.MAX_REQUEST_BODY_BYTES)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.VERSION}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


async def handle_files_error(request: Request, exc: FilesError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthFailureError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        details.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "; ".join(details) or "Invalid request"},
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Turn anything unhandled into a 500 without leaking internals."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": GENERIC_ERROR_MESSAGE},
        )


async def record_request_metrics(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(time.perf_counter() - start)
    return response


class RequestBodyTooLarge(Exception):
    pass


class RequestBodyLimitMiddleware:
    """
    Reject request bodies above ``max_body_bytes`` with 413.

    A declared Content-Length is checked up front. Bytes are also counted as
    they are received, so chunked bodies without the header are cut off too.
    Once the limit is passed whatever the inner app answers is replaced by
    the 413 response.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    def _too_large(self) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"message": f"Request body exceeds {self.max_body_bytes} bytes"},
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"message": "Invalid Content-Length header"},
                )
                await response(scope, receive, send)
                return
            if declared > self.max_body_bytes:
                await self._too_large()(scope, receive, send)
                return

        received = 0
        exceeded = False
        response_started = False

        async def counting_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    exceeded = True
                    raise RequestBodyTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded:
                # The inner app's answer to the aborted body is discarded
                if message["type"] == "http.response.start" and not response_started:
                    response_started = True
                    await self._too_large()(scope, receive, send)
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except RequestBodyTooLarge:
            if response_started:
                raise
            logger.warning(f"Rejected {scope['method']} {scope['path']}: body over {self.max_body_bytes} bytes")
            await self._too_large()(scope, receive, send)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
