"""Domain models for broker sessions."""

from dataclasses import dataclass, field
from datetime import datetime

from mailchimp_broker.domain.accounts import AccountMetadata


@dataclass(frozen=True)
class SessionRecord:
    """Links an opaque session id to a connected Mailchimp account."""

    session_id: str
    access_token: str = field(repr=False)
    account: AccountMetadata
    connected_at: datetime
