"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from mailchimp_broker.adapters.mailchimp_client import (
    HttpxMailchimpClient,
    MailchimpClient,
)
from mailchimp_broker.config import Settings
from mailchimp_broker.services.campaigns import CampaignOrchestrator
from mailchimp_broker.services.lists import ListService
from mailchimp_broker.services.oauth import OAuthBroker
from mailchimp_broker.services.session_store import (
    InMemorySessionStore,
    SessionStore,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    mailchimp_client: MailchimpClient
    session_store: SessionStore
    oauth_broker: OAuthBroker
    list_service: ListService
    campaign_orchestrator: CampaignOrchestrator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    mailchimp_client = HttpxMailchimpClient.create(
        client_id=resolved_settings.mailchimp_client_id,
        client_secret=resolved_settings.mailchimp_client_secret,
        redirect_uri=resolved_settings.mailchimp_redirect_uri,
        authorize_url=resolved_settings.mailchimp_authorize_url,
        token_url=resolved_settings.mailchimp_token_url,
        metadata_url=resolved_settings.mailchimp_metadata_url,
        api_domain=resolved_settings.mailchimp_api_domain,
        timeout=resolved_settings.http_timeout_seconds,
    )
    session_store = InMemorySessionStore(
        ttl_seconds=resolved_settings.session_ttl_seconds
    )
    oauth_broker = OAuthBroker(
        provider_client=mailchimp_client,
        session_store=session_store,
    )
    list_service = ListService(mailchimp_client)
    campaign_orchestrator = CampaignOrchestrator(
        provider_client=mailchimp_client,
        session_store=session_store,
    )

    async def close_resources() -> None:
        await mailchimp_client.close()

    return AppContainer(
        settings=resolved_settings,
        mailchimp_client=mailchimp_client,
        session_store=session_store,
        oauth_broker=oauth_broker,
        list_service=list_service,
        campaign_orchestrator=campaign_orchestrator,
        close_resources=close_resources,
    )
