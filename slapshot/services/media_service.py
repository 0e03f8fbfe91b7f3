"""
Media Service Module.
Team photo and video library: stored uploads and linked external videos.
"""
import logging
import secrets
from datetime import date
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from sqlalchemy.orm import Session

from slapshot.core.config import settings
from slapshot.core.errors import Forbidden, InternalError, NotFound, ValidationError
from slapshot.models.media import MediaItem, MediaType, StorageType
from slapshot.models.team import TeamRole
from slapshot.models.user import User
from slapshot.repositories import MediaRepository
from slapshot.services.permission_service import PermissionService
from slapshot.utils.datetime_utils import isoformat, utcnow
from slapshot.utils.media_types import detect_media
from slapshot.utils.storage import get_storage, public_url, team_directory

logger = logging.getLogger(__name__)

YOUTUBE_EMBED = "https://www.youtube.com/embed/{}"
YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{}/hqdefault.jpg"


MEDIA_TYPES = {"image": MediaType.photo, "video": MediaType.video}


def parse_game_date(raw: Optional[str]) -> Optional[date]:
    """Parse an optional YYYY-MM-DD date; blank means no date."""
    value = (raw or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("game_date must be YYYY-MM-DD.")


def _valid_video_id(video_id: Optional[str]) -> bool:
    if not video_id or len(video_id) < 6:
        return False
    return all(c.isascii() and (c.isalnum() or c in "_-") for c in video_id)


def youtube_embed(url: str) -> Optional[Dict[str, str]]:
    """
    Recognize YouTube watch, embed, shorts and youtu.be links.

    Returns:
        {"embed_url", "thumbnail_url"} or None for anything else
    """
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    path = parsed.path or ""
    video_id = None

    if host == "youtube.com" or host.endswith(".youtube.com"):
        if path == "/watch":
            video_id = (parse_qs(parsed.query).get("v") or [None])[0]
        elif path.startswith("/embed/") or path.startswith("/shorts/"):
            video_id = PurePosixPath(path).name
    elif host == "youtu.be":
        video_id = path.lstrip("/")

    if not _valid_video_id(video_id):
        return None
    return {
        "embed_url": YOUTUBE_EMBED.format(video_id),
        "thumbnail_url": YOUTUBE_THUMBNAIL.format(video_id),
    }


def serialize_media(item: MediaItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "team_id": item.team_id,
        "media_type": item.media_type.value,
        "storage_type": item.storage_type.value,
        "title": item.title,
        "description": item.description,
        "game_date": item.game_date.isoformat() if item.game_date else None,
        "url": public_url(item.file_path) if item.file_path else item.external_url,
        "thumbnail_url": item.thumbnail_url,
        "mime_type": item.mime_type,
        "file_size": item.file_size,
        "uploader_user_id": item.uploader_user_id,
        "uploader_name": item.uploader.display_name if item.uploader else None,
        "created_at": isoformat(item.created_at),
    }


class MediaService:
    """Service for team media operations."""

    @staticmethod
    def list_media(db: Session, team_id: int, current_user: User) -> List[MediaItem]:
        PermissionService.require_membership(db, team_id, current_user.id)
        return MediaRepository(db).get_team_media(team_id)

    @staticmethod
    def upload(
        db: Session,
        team_id: int,
        current_user: User,
        filename: str,
        data: bytes,
        title: str = "",
        description: str = "",
        game_date: Optional[str] = None,
    ) -> MediaItem:
        """
        Store an uploaded photo or video for a team.

        The type is detected from the bytes and the file lands at
        ``team-<id>/<timestamp>-<hex>.<ext>`` with the extension of the
        detected type. A blank title falls back to the file name without its
        extension.
        """
        parsed_date = parse_game_date(game_date)
        PermissionService.require_membership(db, team_id, current_user.id)

        if not data or len(data) > settings.MAX_UPLOAD_BYTES:
            raise ValidationError("File too large.")
        detected = detect_media(data)
        if detected is None:
            raise ValidationError("Only image and video uploads are supported.")
        media_type = MEDIA_TYPES[detected.kind]

        name = PurePosixPath(filename or "")
        extension = detected.extension
        stamp = utcnow().strftime("%Y%m%d%H%M%S")
        path = f"{team_directory(team_id)}/{stamp}-{secrets.token_hex(5)}.{extension}"

        storage = get_storage()
        if not storage.store(data, path):
            raise InternalError("Failed to store upload.")

        item = MediaRepository(db).create(
            MediaItem(
                team_id=team_id,
                uploader_user_id=current_user.id,
                media_type=media_type,
                storage_type=StorageType.upload,
                title=(title or "").strip() or name.stem or "Team upload",
                description=(description or "").strip() or None,
                game_date=parsed_date,
                file_path=path,
                mime_type=detected.mime_type,
                file_size=len(data),
            )
        )
        db.commit()
        db.refresh(item)
        logger.info(f"User {current_user.id} uploaded {media_type.value} {item.id} to team {team_id}")
        return item

    @staticmethod
    def add_external(
        db: Session,
        team_id: int,
        current_user: User,
        url: str,
        title: str,
        description: str = "",
        game_date: Optional[str] = None,
    ) -> MediaItem:
        """Link an externally hosted video. YouTube links are stored as embeds."""
        parsed_date = parse_game_date(game_date)
        PermissionService.require_membership(db, team_id, current_user.id)

        url = (url or "").strip()
        title = (title or "").strip()
        if not title or not url:
            raise ValidationError("Title and video URL are required.")

        youtube = youtube_embed(url)
        item = MediaRepository(db).create(
            MediaItem(
                team_id=team_id,
                uploader_user_id=current_user.id,
                media_type=MediaType.video,
                storage_type=StorageType.external,
                title=title,
                description=(description or "").strip() or None,
                game_date=parsed_date,
                external_url=youtube["embed_url"] if youtube else url,
                thumbnail_url=youtube["thumbnail_url"] if youtube else None,
            )
        )
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete(db: Session, media_id: int, current_user: User) -> None:
        """Delete a media item. The uploader, the owner and admins may delete."""
        repo = MediaRepository(db)
        item = repo.get_by_id(media_id)
        if item is None:
            raise NotFound("Media item not found.")

        role = PermissionService.require_membership(db, item.team_id, current_user.id)
        if item.uploader_user_id != current_user.id and role not in (TeamRole.owner, TeamRole.admin):
            raise Forbidden("Delete not allowed.")

        file_path = item.file_path if item.storage_type == StorageType.upload else None
        repo.delete(item)
        db.commit()

        if file_path and not get_storage().delete(file_path):
            logger.warning(f"Media {media_id} deleted but file {file_path} was not removed")
