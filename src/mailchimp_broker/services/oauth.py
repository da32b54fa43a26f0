"""OAuth authorization-code flow for connecting a Mailchimp account.

Both the provider redirect callback and the frontend token endpoint run
:meth:`OAuthBroker.complete`. It walks the stages below and never raises for
an expected failure; the outcome tells the caller what happened::

    IDLE -> CODE_RECEIVED -> TOKEN_EXCHANGED -> METADATA_FETCHED
         -> SESSION_ESTABLISHED

Any stage may instead end in FAILED. Authorization codes are single use, so a
failed run is final and the user has to authorize again.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from mailchimp_broker.adapters.mailchimp_client import MailchimpClient
from mailchimp_broker.domain.errors import (
    BrokerError,
    MissingAuthorizationCode,
    ProviderDeniedAuthorization,
)
from mailchimp_broker.domain.sessions import SessionRecord
from mailchimp_broker.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class OAuthStage(StrEnum):
    """Stages of one authorization-code run."""

    IDLE = "idle"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    METADATA_FETCHED = "metadata_fetched"
    SESSION_ESTABLISHED = "session_established"
    FAILED = "failed"


@dataclass(frozen=True)
class OAuthSuccess:
    """A session was established."""

    session: SessionRecord
    stage: OAuthStage = OAuthStage.SESSION_ESTABLISHED


@dataclass(frozen=True)
class OAuthFailure:
    """The run ended in FAILED; ``failed_at`` is the last stage reached."""

    error: BrokerError
    failed_at: OAuthStage
    stage: OAuthStage = OAuthStage.FAILED


OAuthOutcome = OAuthSuccess | OAuthFailure


def new_session_id() -> str:
    """Return an unguessable session identifier."""
    return secrets.token_urlsafe(32)


@dataclass
class OAuthBroker:
    """Turns an authorization code into a stored session."""

    provider_client: MailchimpClient
    session_store: SessionStore
    session_id_factory: Callable[[], str] = field(default=new_session_id)

    def authorization_url(self, state: str | None = None) -> str:
        """Return the provider consent URL."""
        return self.provider_client.authorization_url(state)

    async def complete(
        self,
        code: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> OAuthOutcome:
        """Run the authorization-code flow to completion or failure."""
        if error:
            logger.warning("Provider returned OAuth error %s", error)
            return OAuthFailure(
                error=ProviderDeniedAuthorization(error_description, code=error),
                failed_at=OAuthStage.IDLE,
            )
        if not code or not code.strip():
            logger.warning("OAuth completion attempted without a code")
            return OAuthFailure(
                error=MissingAuthorizationCode(), failed_at=OAuthStage.IDLE
            )

        stage = OAuthStage.CODE_RECEIVED
        logger.info("Received authorization code")
        try:
            grant = await self.provider_client.exchange_code(code)
            stage = OAuthStage.TOKEN_EXCHANGED
            logger.info("Exchanged authorization code for access token")

            account = await self.provider_client.fetch_account_metadata(
                grant.access_token
            )
            stage = OAuthStage.METADATA_FETCHED
            logger.info(
                "Fetched metadata for account %s (dc=%s)",
                account.account_name,
                account.datacenter,
            )
        except BrokerError as exc:
            logger.warning("OAuth flow failed after %s: %s", stage, exc.code)
            return OAuthFailure(error=exc, failed_at=stage)

        session = self.session_store.put(
            self.session_id_factory(), grant.access_token, account
        )
        logger.info("Established session for account %s", account.account_name)
        return OAuthSuccess(session=session)
