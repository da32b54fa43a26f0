"""Request models and the response envelope shared by every JSON route."""

from pydantic import BaseModel, ConfigDict, Field

from mailchimp_broker.domain.campaigns import AudienceList, CampaignDraft, CampaignResult
from mailchimp_broker.domain.sessions import SessionRecord

SESSION_HEADER = "X-Session-Id"


class OAuthTokenRequest(BaseModel):
    """Authorization code forwarded by the frontend."""

    code: str | None = None
    state: str | None = None


class CampaignSendRequest(BaseModel):
    """Campaign draft as posted by the frontend.

    Fields default to empty so that blank and missing values are both
    reported through the same validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    list_id: str = Field(default="", alias="listId")
    subject: str = ""
    content: str = ""
    from_name: str = Field(default="", alias="fromName")
    reply_to: str = Field(default="", alias="replyTo")

    def to_draft(self) -> CampaignDraft:
        """Convert to the domain draft."""
        return CampaignDraft(
            list_id=self.list_id,
            subject=self.subject,
            html_content=self.content,
            from_name=self.from_name,
            reply_to=self.reply_to,
        )


def ok(data: object) -> dict[str, object]:
    """Success envelope; ``message`` is omitted."""
    return {"success": True, "data": data}


def failure(message: str) -> dict[str, object]:
    """Failure envelope; ``data`` is always null."""
    return {"success": False, "message": message, "data": None}


def connection_status(session: SessionRecord | None) -> dict[str, object]:
    """Serialize a session into the public connection status."""
    if session is None:
        return {"isConnected": False}
    return {
        "isConnected": True,
        "accountName": session.account.account_name,
        "userEmail": session.account.login_email,
    }


def serialize_lists(lists: list[AudienceList]) -> dict[str, object]:
    """Serialize audience lists."""
    return {
        "lists": [
            {"id": item.id, "name": item.name, "stats": {"memberCount": item.member_count}}
            for item in lists
        ]
    }


def serialize_campaign(result: CampaignResult) -> dict[str, str]:
    """Serialize a completed campaign send."""
    return {
        "campaignId": result.campaign_id,
        "status": result.status,
        "message": result.message,
    }
