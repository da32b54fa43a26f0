"""Domain models for audience lists and campaign sends."""

from dataclasses import dataclass

CAMPAIGN_SENT_STATUS = "sent"
CAMPAIGN_SENT_MESSAGE = "Campaign sent successfully"


@dataclass(frozen=True)
class AudienceList:
    """Mailchimp audience list summary."""

    id: str
    name: str
    member_count: int


@dataclass(frozen=True)
class CampaignDraft:
    """Caller-supplied description of one campaign send."""

    list_id: str
    subject: str
    html_content: str
    from_name: str
    reply_to: str

    def missing_fields(self) -> list[str]:
        """Return the wire names of blank fields, in request order."""
        fields = [
            ("listId", self.list_id),
            ("subject", self.subject),
            ("content", self.html_content),
            ("fromName", self.from_name),
            ("replyTo", self.reply_to),
        ]
        return [name for name, value in fields if not value or not value.strip()]


@dataclass(frozen=True)
class CampaignResult:
    """Outcome of a fully completed campaign send."""

    campaign_id: str
    status: str = CAMPAIGN_SENT_STATUS
    message: str = CAMPAIGN_SENT_MESSAGE
