from pydantic import BaseModel, Field
from typing import Optional


class MediaUploadForm(BaseModel):
    """Form fields sent alongside an uploaded file."""
    team_id: int
    title: str = Field("", max_length=200)
    description: str = ""
    game_date: Optional[str] = None


class MediaExternalCreate(BaseModel):
    team_id: int
    url: str = Field("", max_length=500)
    title: str = Field("", max_length=200)
    description: str = ""
    game_date: Optional[str] = None


class MediaDelete(BaseModel):
    media_id: int
