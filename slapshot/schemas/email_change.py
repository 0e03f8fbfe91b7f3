from pydantic import BaseModel, EmailStr, field_validator

MAX_REASON_LENGTH = 1000


class EmailChangeCreate(BaseModel):
    """Body of an email change request."""
    requested_email: EmailStr
    reason: str

    @field_validator("requested_email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        v = v.strip()
        if len(v) < 5:
            raise ValueError("Please explain why the email should change.")
        if len(v) > MAX_REASON_LENGTH:
            raise ValueError(f"Reason must be {MAX_REASON_LENGTH} characters or fewer.")
        return v


class EmailChangeDecision(BaseModel):
    """Query string of an approve or deny link."""
    token: str = ""
    decision: str = ""

    @field_validator("decision")
    @classmethod
    def normalize_decision(cls, v):
        return v.strip().lower()

    @field_validator("token")
    @classmethod
    def strip_token(cls, v):
        return v.strip()
