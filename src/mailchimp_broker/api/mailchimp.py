"""Mailchimp endpoints used by the frontend, gated on the session header."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, Request, Response

from mailchimp_broker.api.schemas import (
    SESSION_HEADER,
    CampaignSendRequest,
    OAuthTokenRequest,
    connection_status,
    ok,
    serialize_campaign,
    serialize_lists,
)
from mailchimp_broker.domain.errors import SessionNotFound
from mailchimp_broker.domain.sessions import SessionRecord  # noqa: TC001
from mailchimp_broker.services.oauth import OAuthFailure

if TYPE_CHECKING:
    from mailchimp_broker.containers import AppContainer

router = APIRouter(prefix="/api/mailchimp", tags=["mailchimp"])
logger = logging.getLogger(__name__)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_session(
    request: Request,
    x_session_id: str | None = Header(default=None),
) -> SessionRecord:
    """Resolve the caller's session or fail with 401."""
    if not x_session_id:
        raise SessionNotFound()
    session = _container(request).session_store.get(x_session_id)
    if session is None:
        raise SessionNotFound()
    return session


@router.get("/connect")
async def connect(request: Request, state: str | None = None) -> dict[str, object]:
    """Acknowledge a connect request and point at the consent page."""
    container = _container(request)
    return ok(
        {
            "message": "OAuth connection initiated",
            "authorizeUrl": container.oauth_broker.authorization_url(state),
        }
    )


@router.post("/oauth/token")
async def oauth_token(
    payload: OAuthTokenRequest, request: Request, response: Response
) -> dict[str, object]:
    """Complete the OAuth flow for a code the frontend received."""
    outcome = await _container(request).oauth_broker.complete(payload.code)
    if isinstance(outcome, OAuthFailure):
        raise outcome.error
    response.headers[SESSION_HEADER] = outcome.session.session_id
    return ok(connection_status(outcome.session))


@router.get("/status")
async def status(
    request: Request, x_session_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Report whether the caller's session is connected."""
    session = None
    if x_session_id:
        session = _container(request).session_store.get(x_session_id)
    return ok(connection_status(session))


@router.get("/lists")
async def lists(
    request: Request, session: SessionRecord = Depends(require_session)
) -> dict[str, object]:
    """Return the connected account's audience lists."""
    audience_lists = await _container(request).list_service.get_lists(session)
    return ok(serialize_lists(audience_lists))


@router.post("/campaign/send")
async def send_campaign(
    payload: CampaignSendRequest,
    request: Request,
    x_session_id: str | None = Header(default=None),
) -> dict[str, object]:
    """Create, fill and send a campaign in one call."""
    orchestrator = _container(request).campaign_orchestrator
    draft = payload.to_draft()
    orchestrator.validate(draft)
    session = await require_session(request, x_session_id)
    result = await orchestrator.send(session, draft)
    return ok(serialize_campaign(result))


@router.post("/disconnect")
async def disconnect(
    request: Request, x_session_id: str | None = Header(default=None)
) -> dict[str, object]:
    """Forget the caller's session. Always succeeds."""
    if x_session_id:
        store = _container(request).session_store
        async with store.lock_for(x_session_id):
            store.remove(x_session_id)
        logger.info("Session disconnected")
    return ok({"message": "Successfully disconnected from MailChimp"})
