"""Campaign send orchestration."""

import logging
from dataclasses import dataclass

from mailchimp_broker.adapters.mailchimp_client import MailchimpClient
from mailchimp_broker.domain.campaigns import CampaignDraft, CampaignResult
from mailchimp_broker.domain.errors import (
    InvalidCampaignDraft,
    SessionNotFound,
    UpstreamApiError,
)
from mailchimp_broker.domain.sessions import SessionRecord
from mailchimp_broker.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class CampaignOrchestrator:
    """Runs create, content and send as one campaign operation.

    Steps run strictly in order. A failure after the campaign was created
    leaves it on the provider side as an unsent draft; nothing is rolled back.
    """

    provider_client: MailchimpClient
    session_store: SessionStore

    def validate(self, draft: CampaignDraft) -> None:
        """Reject drafts with blank fields before anything goes upstream."""
        missing = draft.missing_fields()
        if missing:
            raise InvalidCampaignDraft(
                f"Missing required fields: {', '.join(missing)}"
            )

    async def send(self, session: SessionRecord, draft: CampaignDraft) -> CampaignResult:
        """Create, fill and send a campaign for the session's account."""
        self.validate(draft)
        async with self.session_store.lock_for(session.session_id):
            current = self.session_store.get(session.session_id)
            if current is None:
                raise SessionNotFound()
            token = current.access_token
            datacenter = current.account.datacenter

            campaign_id = await self.provider_client.create_campaign(
                token,
                datacenter,
                list_id=draft.list_id,
                subject=draft.subject,
                from_name=draft.from_name,
                reply_to=draft.reply_to,
            )
            logger.info("Created campaign %s", campaign_id)
            try:
                await self.provider_client.set_campaign_content(
                    token, datacenter, campaign_id, draft.html_content
                )
                await self.provider_client.send_campaign(
                    token, datacenter, campaign_id
                )
            except UpstreamApiError:
                logger.warning(
                    "Campaign %s left unsent on Mailchimp after a failed step",
                    campaign_id,
                )
                raise
        logger.info("Sent campaign %s", campaign_id)
        return CampaignResult(campaign_id=campaign_id)
