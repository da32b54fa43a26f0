"""Audience list lookups."""

from dataclasses import dataclass

from mailchimp_broker.adapters.mailchimp_client import MailchimpClient
from mailchimp_broker.domain.campaigns import AudienceList
from mailchimp_broker.domain.sessions import SessionRecord


@dataclass
class ListService:
    """Reads audience lists for a connected account."""

    provider_client: MailchimpClient

    async def get_lists(self, session: SessionRecord) -> list[AudienceList]:
        """Return the lists visible to the session's account."""
        return await self.provider_client.fetch_lists(
            session.access_token, session.account.datacenter
        )
