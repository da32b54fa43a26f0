"""Domain models for connected Mailchimp accounts."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenGrant:
    """Result of an authorization-code exchange."""

    access_token: str
    token_type: str
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


@dataclass(frozen=True)
class AccountMetadata:
    """Account details returned by the provider's metadata endpoint."""

    datacenter: str
    account_name: str
    login_email: str
    api_endpoint: str
    user_id: int | None = None
