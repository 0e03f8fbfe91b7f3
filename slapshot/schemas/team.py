from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Optional
from enum import Enum


class AssignableRole(str, Enum):
    admin = "admin"
    member = "member"


def _clean_team_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Team name must be at least 2 characters.")
    return v


class TeamMetadata(BaseModel):
    age_group: Optional[str] = Field(None, max_length=40)
    season: Optional[str] = Field(None, max_length=40)
    level: Optional[str] = Field(None, max_length=40)
    rink: Optional[str] = Field(None, max_length=120)
    city: Optional[str] = Field(None, max_length=120)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("age_group", "season", "level", "rink", "city", "notes")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        return v.strip()

    def metadata(self) -> Dict[str, Any]:
        """Only the metadata fields the caller actually sent."""
        return self.model_dump(
            include={"age_group", "season", "level", "rink", "city", "notes"},
            exclude_unset=True,
        )


class TeamCreate(TeamMetadata):
    name: str = Field(..., max_length=120)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _clean_team_name(v)


class TeamUpdate(TeamMetadata):
    team_id: int
    name: Optional[str] = Field(None, max_length=120)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return _clean_team_name(v)


class TeamJoin(BaseModel):
    join_code: str = ""


class TeamRef(BaseModel):
    team_id: int


class TeamDelete(BaseModel):
    team_id: int
    confirm_name: str = ""
    confirm_word: str = ""


class MemberRoleUpdate(BaseModel):
    team_id: int
    user_id: int
    role: AssignableRole


class MemberRemove(BaseModel):
    team_id: int
    user_id: int
