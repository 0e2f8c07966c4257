"""Dashboard Widget API - FastAPI application."""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import health
from app.api.v1.router import router as api_router
from app.config import Settings, get_settings
from app.core.errors import WidgetError
from app.core.log_config import configure_logging
from app.services.widgets.registry import WidgetServices

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    services: WidgetServices | None = None,
) -> FastAPI:
    """Build the app; tests pass their own settings and services."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    services = services or WidgetServices(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        sweeper = asyncio.create_task(services.run_sweeper())
        logger.info(
            "%s %s started (%s)", settings.app_name, settings.version, settings.environment.value
        )
        yield
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await services.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="Widget data proxy for the personal dashboard and ESP32 displays",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,  # Disable docs in production
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.services = services
    app.state.settings = settings

    # Coarse per-IP ceiling across every route; provider windows sit behind it
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
        enabled=settings.rate_limit_per_minute > 0,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS - strict in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        max_age=600,  # Cache preflight for 10 minutes
    )

    @app.exception_handler(WidgetError)
    async def widget_error_handler(request: Request, exc: WidgetError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "details": {"errors": details}},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        content = {"error": "Internal server error"}
        if settings.is_development:
            content["details"] = {"message": str(exc)}
        return JSONResponse(status_code=500, content=content)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses."""
        response = await call_next(request)

        if settings.is_production:
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log requests in development."""
        response = await call_next(request)
        if settings.is_development:
            logger.info("[%s] %s -> %d", request.method, request.url.path, response.status_code)
        return response

    app.include_router(health.router, tags=["health"])
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint - service banner."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "status": "healthy",
            "environment": settings.environment.value,
            "endpoints": {
                "widgets": f"{settings.api_prefix}/widget/{{type}}",
                "search": f"{settings.api_prefix}/search/{{kind}}",
                "esp32": f"{settings.api_prefix}/esp32/{{deviceId}}",
                "health": "/health",
            },
        }

    return app


app = create_app()
