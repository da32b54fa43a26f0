"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from mailchimp_broker.adapters.mailchimp_client import MailchimpClient
from mailchimp_broker.config import Settings
from mailchimp_broker.containers import AppContainer
from mailchimp_broker.domain.accounts import AccountMetadata, TokenGrant
from mailchimp_broker.domain.campaigns import AudienceList
from mailchimp_broker.domain.errors import UpstreamApiError, UpstreamAuthError
from mailchimp_broker.services.campaigns import CampaignOrchestrator
from mailchimp_broker.services.lists import ListService
from mailchimp_broker.services.oauth import OAuthBroker
from mailchimp_broker.services.session_store import InMemorySessionStore

_AUTH_CALLS = {"exchange_code", "fetch_account_metadata"}


def acme_account() -> AccountMetadata:
    return AccountMetadata(
        datacenter="us1",
        account_name="Acme",
        login_email="a@acme.com",
        api_endpoint="https://us1.api.mailchimp.com",
    )


@dataclass
class FakeMailchimpClient(MailchimpClient):
    """Fake Mailchimp client that records calls and fails on request."""

    access_token: str = "tok_1"
    account: AccountMetadata = field(default_factory=acme_account)
    audience_lists: list[AudienceList] = field(
        default_factory=lambda: [
            AudienceList(id="list-1", name="Newsletter", member_count=42)
        ]
    )
    campaign_id: str = "cmp_1"
    fail_on: set[str] = field(default_factory=set)
    calls: list[tuple[str, tuple[object, ...]]] = field(default_factory=list)

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            if name in _AUTH_CALLS:
                raise UpstreamAuthError()
            raise UpstreamApiError()

    def authorization_url(self, state: str | None = None) -> str:
        suffix = f"&state={state}" if state else ""
        return f"https://login.example/oauth2/authorize?client_id=client-id{suffix}"

    async def exchange_code(self, code: str) -> TokenGrant:
        self._record("exchange_code", code)
        return TokenGrant(access_token=self.access_token, token_type="bearer")

    async def fetch_account_metadata(self, access_token: str) -> AccountMetadata:
        self._record("fetch_account_metadata", access_token)
        return self.account

    async def fetch_lists(
        self, access_token: str, datacenter: str, count: int = 100
    ) -> list[AudienceList]:
        self._record("fetch_lists", access_token, datacenter)
        return self.audience_lists

    async def create_campaign(  # noqa: PLR0913
        self,
        access_token: str,
        datacenter: str,
        list_id: str,
        subject: str,
        from_name: str,
        reply_to: str,
    ) -> str:
        self._record(
            "create_campaign",
            access_token,
            datacenter,
            list_id,
            subject,
            from_name,
            reply_to,
        )
        await asyncio.sleep(0)
        return self.campaign_id

    async def set_campaign_content(
        self, access_token: str, datacenter: str, campaign_id: str, html: str
    ) -> None:
        self._record("set_campaign_content", access_token, datacenter, campaign_id, html)
        await asyncio.sleep(0)

    async def send_campaign(
        self, access_token: str, datacenter: str, campaign_id: str
    ) -> None:
        self._record("send_campaign", access_token, datacenter, campaign_id)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mailchimp_client_id="client-id",
        mailchimp_client_secret="client-secret",
        frontend_url="http://localhost:8090",
    )


@pytest.fixture
def account() -> AccountMetadata:
    return acme_account()


@pytest.fixture
def mailchimp_client() -> FakeMailchimpClient:
    return FakeMailchimpClient()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def container(
    settings: Settings,
    mailchimp_client: FakeMailchimpClient,
    session_store: InMemorySessionStore,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        mailchimp_client=mailchimp_client,
        session_store=session_store,
        oauth_broker=OAuthBroker(
            provider_client=mailchimp_client, session_store=session_store
        ),
        list_service=ListService(mailchimp_client),
        campaign_orchestrator=CampaignOrchestrator(
            provider_client=mailchimp_client, session_store=session_store
        ),
        close_resources=close_resources,
    )
