"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from mailchimp_broker.api.mailchimp import router as mailchimp_router
from mailchimp_broker.api.schemas import SESSION_HEADER, failure
from mailchimp_broker.app_logging import configure_logging
from mailchimp_broker.config import Settings
from mailchimp_broker.containers import AppContainer
from mailchimp_broker.domain.errors import (
    BrokerError,
    InvalidCampaignDraft,
    MissingAuthorizationCode,
    ProviderDeniedAuthorization,
    SessionNotFound,
    UpstreamApiError,
    UpstreamAuthError,
)
from mailchimp_broker.services.oauth import OAuthFailure

API_VERSION = "1.0.0"

_ERROR_STATUS: dict[type[BrokerError], int] = {
    MissingAuthorizationCode: status.HTTP_400_BAD_REQUEST,
    ProviderDeniedAuthorization: status.HTTP_400_BAD_REQUEST,
    InvalidCampaignDraft: status.HTTP_400_BAD_REQUEST,
    SessionNotFound: status.HTTP_401_UNAUTHORIZED,
    UpstreamAuthError: status.HTTP_502_BAD_GATEWAY,
    UpstreamApiError: status.HTTP_502_BAD_GATEWAY,
}

_ENDPOINTS = [
    "GET /oauth-callback (OAuth callback)",
    "GET /api/mailchimp/connect",
    "POST /api/mailchimp/oauth/token",
    "GET /api/mailchimp/status",
    "GET /api/mailchimp/lists",
    "POST /api/mailchimp/campaign/send",
    "POST /api/mailchimp/disconnect",
]


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Mailchimp redirect URI: %s", settings.mailchimp_redirect_uri)
        logger.info("Frontend URL: %s", settings.frontend_url)
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="Mailchimp Broker", version=API_VERSION, lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def unhandled_error_envelope(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Must stay inside CORSMiddleware, so it is registered first.
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s", request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=failure("Internal server error"),
            )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=[
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
            SESSION_HEADER,
        ],
        expose_headers=[SESSION_HEADER],
    )

    app.include_router(mailchimp_router)

    @app.exception_handler(BrokerError)
    async def broker_error_handler(request: Request, exc: BrokerError) -> JSONResponse:
        return JSONResponse(
            status_code=error_status(exc), content=failure(exc.message)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected malformed request to %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=failure("Invalid request body"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = (
            "Endpoint not found"
            if exc.status_code == status.HTTP_404_NOT_FOUND
            else str(exc.detail)
        )
        return JSONResponse(status_code=exc.status_code, content=failure(message))

    @app.get("/")
    async def root() -> dict[str, object]:
        """Service info."""
        return {
            "message": "Mailchimp broker API is running",
            "version": API_VERSION,
            "documentation": "/docs",
            "endpoints": _ENDPOINTS,
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/oauth-callback")
    async def oauth_callback(
        request: Request,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> RedirectResponse:
        """Receive Mailchimp's redirect and forward the outcome to the frontend."""
        state_container: AppContainer = request.app.state.container
        outcome = await state_container.oauth_broker.complete(
            code, error=error, error_description=error_description
        )
        if isinstance(outcome, OAuthFailure):
            params = {
                "error": outcome.error.code,
                "error_description": outcome.error.message,
            }
        else:
            account = outcome.session.account
            params = {
                "success": "true",
                "session_id": outcome.session.session_id,
                "account_name": account.account_name,
                "user_email": account.login_email,
            }
        return RedirectResponse(
            url=frontend_redirect_url(settings, params),
            status_code=status.HTTP_302_FOUND,
        )

    return app


def error_status(exc: BrokerError) -> int:
    """Return the HTTP status for a broker error."""
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def frontend_redirect_url(settings: Settings, params: dict[str, str]) -> str:
    """Build the frontend OAuth landing URL with the given query parameters."""
    return f"{settings.frontend_callback_url}?{urlencode(params)}"
