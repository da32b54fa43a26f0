"""Error taxonomy shared by the broker, orchestrator and API layer."""


class BrokerError(Exception):
    """Base broker error.

    ``code`` is a short machine-readable kind and ``message`` is safe to show
    to external callers. Provider diagnostics never go into either.
    """

    code = "broker_error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)


class MissingAuthorizationCode(BrokerError):
    """OAuth completion was attempted without an authorization code."""

    code = "missing_code"
    default_message = "Authorization code is required"


class ProviderDeniedAuthorization(BrokerError):
    """The provider redirected back with its own OAuth error."""

    code = "access_denied"
    default_message = "OAuth authorization failed"


class UpstreamAuthError(BrokerError):
    """Token exchange or account metadata fetch failed."""

    code = "processing_failed"
    default_message = "Failed to process OAuth authorization"


class UpstreamApiError(BrokerError):
    """A list or campaign call against the provider API failed."""

    code = "upstream_error"
    default_message = "Mailchimp request failed"


class InvalidCampaignDraft(BrokerError):
    """Campaign draft is missing required fields."""

    code = "invalid_campaign"
    default_message = (
        "Missing required fields: listId, subject, content, fromName, replyTo"
    )


class SessionNotFound(BrokerError):
    """Gated call without an established session."""

    code = "not_connected"
    default_message = "Not connected to MailChimp"
