"""Main FastAPI application for the loyalty API."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from loyalty import __version__
from loyalty.accounts.service import AccountService
from loyalty.api.v1.accounts import router as accounts_router
from loyalty.auth.passwords import PasswordHasher
from loyalty.auth.tokens import Clock, TokenService, utc_now
from loyalty.errors import AuthenticationMissing, LoyaltyError
from loyalty.logging_config import REQUEST_ID_HEADER, bind_request, clear_request, configure_logging, get_logger
from loyalty.referral.service import ReferralService
from loyalty.settings import Settings, check_settings, settings as default_settings
from loyalty.storage.db import Database

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something broke!"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and echo it back in a header."""

    async def dispatch(self, request: Request, call_next):
        request_id = bind_request(
            request.method,
            request.url.path,
            request.headers.get(REQUEST_ID_HEADER),
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "request_completed",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        finally:
            clear_request()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("app_starting", env=app.state.settings.env)

    app.state.db.create_tables()

    yield

    # Shutdown
    logger.info("app_shutting_down")
    app.state.db.dispose()


def register_exception_handlers(app: FastAPI) -> None:
    """Map error kinds to status codes, with a generic 500 for everything else."""

    @app.exception_handler(LoyaltyError)
    async def loyalty_error_handler(request: Request, exc: LoyaltyError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationMissing) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid input", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=500,
            content={"detail": GENERIC_ERROR_MESSAGE},
        )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Configuration (defaults to environment settings)
        database: Account store (defaults to one built from settings)
        clock: Time source for token issuance and expiry

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    check_settings(settings)
    configure_logging(settings)

    if database is None:
        database = Database(settings.database_url)

    # Hide API docs in production
    is_production = settings.is_production

    app = FastAPI(
        title="Loyalty API",
        description="Accounts, ride points and referral bonuses",
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )

    # Services
    tokens = TokenService(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_expire_minutes,
        clock=clock,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.token_service = tokens
    app.state.account_service = AccountService(
        db=database,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=tokens,
        referrals=ReferralService(
            bonus_points=settings.referral_bonus_points,
            recompute_tier=settings.referral_bonus_recomputes_tier,
        ),
    )

    allowed_origins = settings.origins
    if is_production and "*" in allowed_origins:
        logger.warning("cors_wildcard_in_production")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=3600,  # Cache preflight for 1 hour
    )

    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(accounts_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "env": settings.env,
        }

    return app
