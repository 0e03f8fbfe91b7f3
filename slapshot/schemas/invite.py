
from pydantic import BaseModel, EmailStr, field_validator

from slapshot.services.invite_service import MAX_MESSAGE_LENGTH


class InviteEmailCreate(BaseModel):
    """Schema for emailing a team's join code."""
    team_id: int
    email: EmailStr
    message: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        v = (v or "").strip()
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Custom message must be {MAX_MESSAGE_LENGTH} characters or fewer.")
        return v
