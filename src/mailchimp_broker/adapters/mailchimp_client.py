"""Mailchimp OAuth and Marketing API client."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

import httpx

from mailchimp_broker.domain.accounts import AccountMetadata, TokenGrant
from mailchimp_broker.domain.campaigns import AudienceList
from mailchimp_broker.domain.errors import (
    BrokerError,
    UpstreamApiError,
    UpstreamAuthError,
)

logger = logging.getLogger(__name__)

_DATACENTER_PATTERN = re.compile(r"[a-z0-9]+")


class MailchimpClient(Protocol):
    """Interface for the outbound calls the broker makes to Mailchimp."""

    def authorization_url(self, state: str | None = None) -> str:
        """Return the consent page URL the browser should be sent to."""

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access token."""

    async def fetch_account_metadata(self, access_token: str) -> AccountMetadata:
        """Fetch datacenter and account details for an access token."""

    async def fetch_lists(
        self, access_token: str, datacenter: str, count: int = 100
    ) -> list[AudienceList]:
        """Return the account's audience lists."""

    async def create_campaign(  # noqa: PLR0913
        self,
        access_token: str,
        datacenter: str,
        list_id: str,
        subject: str,
        from_name: str,
        reply_to: str,
    ) -> str:
        """Create a regular campaign and return its provider id."""

    async def set_campaign_content(
        self, access_token: str, datacenter: str, campaign_id: str, html: str
    ) -> None:
        """Set the HTML body of a campaign."""

    async def send_campaign(
        self, access_token: str, datacenter: str, campaign_id: str
    ) -> None:
        """Trigger delivery of a campaign."""


@dataclass
class HttpxMailchimpClient:
    """Mailchimp client implemented with httpx.

    Holds application credentials and a pooled HTTP session only. Every
    per-user credential is passed in by the caller.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    authorize_url: str
    token_url: str
    metadata_url: str
    api_domain: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        authorize_url: str,
        token_url: str,
        metadata_url: str,
        api_domain: str,
        timeout: float = 15.0,
    ) -> "HttpxMailchimpClient":
        """Create a Mailchimp client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            authorize_url=authorize_url,
            token_url=token_url,
            metadata_url=metadata_url,
            api_domain=api_domain,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    def authorization_url(self, state: str | None = None) -> str:
        """Build the Mailchimp consent page URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }
        if state:
            params["state"] = state
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code at the OAuth token endpoint."""
        failure = UpstreamAuthError("Failed to exchange code for token")
        response = await self._request(
            "POST",
            self.token_url,
            failure=failure,
            data={
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "code": code,
            },
        )
        payload = _json_object(response, failure)
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            logger.error("Token response did not include an access token")
            raise failure
        expires_in = payload.get("expires_in")
        return TokenGrant(
            access_token=access_token,
            token_type=str(payload.get("token_type") or "bearer"),
            expires_in=expires_in if isinstance(expires_in, int) else None,
            refresh_token=payload.get("refresh_token"),
            scope=payload.get("scope"),
        )

    async def fetch_account_metadata(self, access_token: str) -> AccountMetadata:
        """Fetch the account metadata that carries the datacenter shard."""
        failure = UpstreamAuthError("Failed to fetch user metadata")
        response = await self._request(
            "GET",
            self.metadata_url,
            failure=failure,
            headers=_bearer(access_token),
        )
        return _parse_metadata(_json_object(response, failure), self.api_domain)

    async def fetch_lists(
        self, access_token: str, datacenter: str, count: int = 100
    ) -> list[AudienceList]:
        """Fetch audience lists from the account's datacenter."""
        failure = UpstreamApiError("Failed to fetch email lists")
        response = await self._request(
            "GET",
            self._api_url(datacenter, "/lists"),
            failure=failure,
            headers=_bearer(access_token),
            params={"count": count},
        )
        payload = _json_object(response, failure)
        try:
            return [
                AudienceList(
                    id=str(item["id"]),
                    name=str(item["name"]),
                    member_count=int(item.get("stats", {}).get("member_count", 0)),
                )
                for item in payload.get("lists", [])
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Unexpected lists payload from Mailchimp: %s", exc)
            raise failure from exc

    async def create_campaign(  # noqa: PLR0913
        self,
        access_token: str,
        datacenter: str,
        list_id: str,
        subject: str,
        from_name: str,
        reply_to: str,
    ) -> str:
        """Create a regular campaign addressed to one list."""
        failure = UpstreamApiError("Failed to create campaign")
        response = await self._request(
            "POST",
            self._api_url(datacenter, "/campaigns"),
            failure=failure,
            headers=_bearer(access_token),
            json={
                "type": "regular",
                "recipients": {"list_id": list_id},
                "settings": {
                    "subject_line": subject,
                    "from_name": from_name,
                    "reply_to": reply_to,
                    "title": f"Campaign - {subject}",
                },
            },
        )
        campaign_id = _json_object(response, failure).get("id")
        if not campaign_id:
            logger.error("Campaign create response did not include an id")
            raise failure
        return str(campaign_id)

    async def set_campaign_content(
        self, access_token: str, datacenter: str, campaign_id: str, html: str
    ) -> None:
        """Replace the campaign's HTML content."""
        await self._request(
            "PUT",
            self._api_url(datacenter, f"/campaigns/{campaign_id}/content"),
            failure=UpstreamApiError("Failed to set campaign content"),
            headers=_bearer(access_token),
            json={"html": html},
        )

    async def send_campaign(
        self, access_token: str, datacenter: str, campaign_id: str
    ) -> None:
        """Send a campaign immediately."""
        await self._request(
            "POST",
            self._api_url(datacenter, f"/campaigns/{campaign_id}/actions/send"),
            failure=UpstreamApiError("Failed to send campaign"),
            headers=_bearer(access_token),
            json={},
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _api_url(self, datacenter: str, path: str) -> str:
        if not _DATACENTER_PATTERN.fullmatch(datacenter):
            raise UpstreamApiError("Invalid Mailchimp datacenter")
        return f"https://{datacenter}.{self.api_domain}/3.0{path}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        failure: BrokerError,
        **kwargs: object,
    ) -> httpx.Response:
        """Send a request and map any transport or HTTP failure to ``failure``."""
        try:
            response = await self.http_client.request(
                method, url, timeout=self.timeout, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Mailchimp %s %s returned %s: %s",
                method,
                url,
                exc.response.status_code,
                exc.response.text,
            )
            raise failure from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Mailchimp %s %s failed: %r", method, url, exc)
            raise failure from exc
        return response


def _bearer(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def _json_object(response: httpx.Response, failure: BrokerError) -> dict:
    """Decode a JSON object body, raising ``failure`` for anything else."""
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("Mailchimp returned a non-JSON body: %s", response.text)
        raise failure from exc
    if not isinstance(payload, dict):
        logger.error("Mailchimp returned an unexpected body: %s", response.text)
        raise failure
    return payload


def _parse_metadata(payload: dict, api_domain: str) -> AccountMetadata:
    """Map the metadata payload, rejecting a missing or malformed datacenter."""
    datacenter = payload.get("dc")
    if not isinstance(datacenter, str) or not _DATACENTER_PATTERN.fullmatch(
        datacenter
    ):
        logger.error("Metadata response has an invalid datacenter: %r", datacenter)
        raise UpstreamAuthError("Failed to fetch user metadata")
    login = payload.get("login") or {}
    if not isinstance(login, dict):
        login = {}
    user_id = payload.get("user_id")
    return AccountMetadata(
        datacenter=datacenter,
        account_name=str(payload.get("accountname") or ""),
        login_email=str(login.get("email") or login.get("login_email") or ""),
        api_endpoint=str(
            payload.get("api_endpoint") or f"https://{datacenter}.{api_domain}"
        ),
        user_id=user_id if isinstance(user_id, int) else None,
    )
