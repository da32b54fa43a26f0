"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from mailchimp_broker.config import Settings


def test_frontend_callback_url_strips_trailing_slash() -> None:
    settings = Settings(
        mailchimp_client_id="client-id",
        mailchimp_client_secret="client-secret",
        frontend_url="http://localhost:8090/",
    )

    assert settings.frontend_callback_url == "http://localhost:8090/oauth-callback"


@pytest.mark.parametrize("ttl", [0, -5])
def test_session_ttl_must_be_positive(ttl) -> None:
    with pytest.raises(ValidationError):
        Settings(
            mailchimp_client_id="client-id",
            mailchimp_client_secret="client-secret",
            session_ttl_seconds=ttl,
        )


def test_session_ttl_defaults_to_no_expiry() -> None:
    settings = Settings(
        mailchimp_client_id="client-id", mailchimp_client_secret="client-secret"
    )

    assert settings.session_ttl_seconds is None
