"""
FastAPI application entry point for the CurrencyVerse API
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn

from .api import auth_routes, rates_routes, transaction_routes, user_routes, wallet_routes
from .api.routes import SERVICE_NAME, VERSION, router
from .api.schemas import ApiResponse
from .config.settings import Settings, settings as default_settings
from .database.connection import ConnectionManager
from .database.storage import Storage
from .exceptions import CurrencyVerseError, InternalError
from .utils.auth import RateLimiter
from .utils.logger import get_logger, set_level

logger = get_logger(__name__)


def _envelope(status_code: int, error: str, message: Optional[str] = None, headers=None) -> JSONResponse:
    body = ApiResponse(success=False, error=error, message=message)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings: Settings = app.state.settings
    manager = None

    # Startup
    logger.info(f"Starting {settings.app_name} ({settings.environment})")
    if getattr(app.state, "storage", None) is None:
        manager = ConnectionManager(settings)
        app.state.connection_manager = manager
        app.state.storage = manager.start()
        logger.info(f"Storage mode: {manager.mode}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")
    if manager is not None:
        manager.stop()


def register_exception_handlers(app: FastAPI):
    """Render every error in the response envelope"""

    @app.exception_handler(CurrencyVerseError)
    async def currencyverse_error_handler(request: Request, exc: CurrencyVerseError):
        message = exc.message
        if isinstance(exc, InternalError):
            if app.state.settings.environment == "development":
                if exc.__cause__ is not None:
                    message = f"{exc.message}: {exc.__cause__}"
            else:
                message = "Internal server error"
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return _envelope(exc.status_code, exc.error, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _envelope(404, "Route not found", f"Cannot {request.method} {request.url.path}")
        return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())[1:])
            problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
        message = "; ".join(problems) or "Invalid request"
        logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
        return _envelope(400, "Validation error", message)


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration; the environment-derived settings when omitted
        storage: Storage backend to use as is; when omitted the lifespan
            starts a ConnectionManager and picks the backend

    Returns:
        Configured FastAPI application
    """
    settings = settings or default_settings
    set_level(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-currency wallet and currency exchange API",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.connection_manager = None
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        """Per client IP limit on the API prefix"""
        if request.url.path.startswith(settings.api_prefix):
            client_ip = request.client.host if request.client else "unknown"
            if not app.state.rate_limiter.check_rate_limit(client_ip):
                logger.warning(f"Rate limit exceeded for {client_ip}")
                return _envelope(
                    429,
                    "Too many requests",
                    "Too many requests from this IP, please try again later",
                    headers={"Retry-After": str(settings.rate_limit_window_seconds)},
                )
        return await call_next(request)

    # Added last so it wraps the rate limiter
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(router, prefix=settings.api_prefix)
    for module in (rates_routes, transaction_routes, wallet_routes, auth_routes, user_routes):
        app.include_router(module.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": settings.app_name,
            "service": SERVICE_NAME,
            "version": VERSION,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "currencyverse.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.debug,
        log_level=default_settings.log_level.lower()
    )
