"""Application factory for the file gateway.

create_app() wires exception handlers, routers and FileCORSMiddleware.
add_request_id_middleware() must be called afterwards: Starlette runs
middleware in reverse registration order, so the request-id layer ends up
outermost and CORS preflights still carry X-Request-ID.

Per request:
1. RequestIDMiddleware binds request_id and starts the access-log timer
2. FileCORSMiddleware answers /file/* preflights and adds CORS headers
3. The route calls one service function with the Gateway from app.state

The lifespan owns the shared httpx.Client and the Gateway built on it,
unless a Gateway was injected (tests), in which case it owns nothing.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from filegate.api.routes import create_api_router
from filegate.config import get_settings
from filegate.errors import ApiError, ApiErrorCode
from filegate.gateway import Gateway, build_gateway, create_http_client
from filegate.logging import configure_logging, get_logger
from filegate.middleware.file_cors import FileCORSMiddleware
from filegate.middleware.request_id import RequestIDMiddleware
from filegate.responses import (
    api_error_handler,
    http_exception_handler,
    render_error,
    unhandled_exception_handler,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle resources.

    An injected gateway (tests) is used as-is and owns no resources here.
    """
    if getattr(app.state, "gateway", None) is not None:
        yield
        return

    settings = get_settings()
    http_client = create_http_client(settings)
    app.state.gateway = build_gateway(settings, http_client)

    yield

    http_client.close()
    app.state.gateway = None
    logger.info("httpx_client_closed")


def create_app(gateway: Gateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        gateway: Optional prebuilt gateway (for testing). When omitted the
            gateway is built from settings at startup.

    Returns:
        Configured FastAPI application instance.
    """
    settings = gateway.settings if gateway is not None else get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="Filegate",
        description="File gateway over object-store and message-host backends",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        """Handle request validation errors."""
        return render_error(request, 400, ApiErrorCode.E_INVALID_REQUEST, "Invalid request")

    app.include_router(create_api_router())

    app.add_middleware(FileCORSMiddleware)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Wrap the app in RequestIDMiddleware; call after create_app()."""
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
