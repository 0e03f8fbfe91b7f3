from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from slapshot.utils.hash import MIN_PASSWORD_LENGTH


def _clean_display_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Display name must be at least 2 characters.")
    return v


class UserRegister(BaseModel):
    email: EmailStr
    display_name: str = Field(..., max_length=120)
    password: str
    team_name: Optional[str] = Field(None, max_length=120)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v):
        return _clean_display_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return v

    @field_validator("team_name")
    @classmethod
    def validate_team_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if len(v) < 2:
            raise ValueError("Team name must be at least 2 characters.")
        return v


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError("Email and password are required.")
        return v

    @field_validator("password")
    @classmethod
    def require_password(cls, v):
        if v == "":
            raise ValueError("Email and password are required.")
        return v


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=120)
    current_password: Optional[str] = None
    new_password: Optional[str] = None

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v):
        if v is None:
            return v
        return _clean_display_name(v)
