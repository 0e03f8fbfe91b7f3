"""
Team Service Module.
Team directory operations: creation with unique slug and join code, metadata
updates, logos and owner-confirmed deletion.
"""
import logging
import secrets
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slapshot.core.config import settings
from slapshot.core.errors import InternalError, ValidationError
from slapshot.models.team import MembershipStatus, Team, TeamMember, TeamRole
from slapshot.models.user import User
from slapshot.repositories import (
    InviteRepository,
    MediaRepository,
    TeamMemberRepository,
    TeamRepository,
)
from slapshot.services.permission_service import PermissionService
from slapshot.utils.datetime_utils import utcnow
from slapshot.utils.media_types import detect_image
from slapshot.utils.slugify import slugify
from slapshot.utils.storage import get_storage, public_url, team_directory
from slapshot.utils.tokens import random_code

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 10
DELETE_CONFIRM_WORD = "DELETE"
TEAM_METADATA_FIELDS = ("age_group", "season", "level", "rink", "city", "notes")


def serialize_team(team: Team) -> Dict[str, Any]:
    data = {
        "id": team.id,
        "name": team.name,
        "slug": team.slug,
        "join_code": team.join_code,
        "logo_url": public_url(team.logo_path) if team.logo_path else None,
    }
    data.update({key: getattr(team, key) for key in TEAM_METADATA_FIELDS})
    return data


class TeamService:
    """Service for managing team operations."""

    @staticmethod
    def _unique_slug(team_repo: TeamRepository, name: str) -> str:
        """Slugify the name, appending -2, -3, ... until no team uses it."""
        base = slugify(name)
        slug = base
        counter = 2
        while team_repo.slug_exists(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    @staticmethod
    def _unique_join_code(team_repo: TeamRepository) -> str:
        for _ in range(MAX_GENERATION_ATTEMPTS):
            code = random_code()
            if not team_repo.join_code_exists(code):
                return code
        logger.error("Could not generate an unused join code")
        raise InternalError("Unable to create team.")

    @staticmethod
    def create_team(
        db: Session,
        owner: User,
        name: str,
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> Team:
        """
        Create a team. The creator becomes its owner in the same transaction.

        A uniqueness race on slug or join code between the check and the
        insert rolls back to a savepoint and regenerates both.
        """
        team_repo = TeamRepository(db)
        member_repo = TeamMemberRepository(db)
        metadata = metadata or {}

        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            slug = TeamService._unique_slug(team_repo, name)
            join_code = TeamService._unique_join_code(team_repo)
            try:
                with db.begin_nested():
                    team = team_repo.create(
                        Team(
                            name=name,
                            slug=slug,
                            join_code=join_code,
                            created_by=owner.id,
                            **{k: metadata.get(k) or None for k in TEAM_METADATA_FIELDS},
                        )
                    )
                    member_repo.create(
                        TeamMember(
                            team_id=team.id,
                            user_id=owner.id,
                            role=TeamRole.owner,
                            status=MembershipStatus.active,
                        )
                    )
            except IntegrityError:
                logger.warning(f"Slug/join code collision creating team (attempt {attempt})")
                continue

            if commit:
                db.commit()
            logger.info(f"User {owner.id} created team {team.id} ({slug})")
            return team

        raise InternalError("Unable to create team.")

    @staticmethod
    def update_team(db: Session, team_id: int, current_user: User, fields: Dict[str, Any]) -> Team:
        """Update name and metadata. Only owners and admins can update teams."""
        PermissionService.require_admin(db, team_id, current_user.id)
        team = PermissionService.get_team_or_404(db, team_id)

        if "name" in fields and fields["name"] is not None:
            team.name = fields["name"]
        for key in TEAM_METADATA_FIELDS:
            if key in fields:
                # Blank strings clear the field
                setattr(team, key, fields[key] or None)

        db.commit()
        db.refresh(team)
        return team

    @staticmethod
    def delete_team(
        db: Session, team_id: int, current_user: User, confirm_name: str, confirm_word: str
    ) -> None:
        """
        Delete a team and everything attached to it. Owner only.

        The caller must retype the exact team name and the word DELETE.
        """
        PermissionService.require_owner(db, team_id, current_user.id)
        team = PermissionService.get_team_or_404(db, team_id, for_update=True)

        if confirm_word != DELETE_CONFIRM_WORD:
            raise ValidationError(f'Type {DELETE_CONFIRM_WORD} to confirm team deletion.')
        if confirm_name != team.name:
            raise ValidationError("Team name confirmation does not match.")

        invite_repo = InviteRepository(db)
        if invite_repo.table_exists():
            invite_repo.delete_for_team(team_id)
        MediaRepository(db).delete_for_team(team_id)
        TeamMemberRepository(db).delete_for_team(team_id)
        TeamRepository(db).delete(team)
        db.commit()
        logger.info(f"User {current_user.id} deleted team {team_id}")

        if not get_storage().purge_directory(team_directory(team_id)):
            logger.error(f"Team {team_id} deleted but its media directory was not purged")

    @staticmethod
    def upload_logo(
        db: Session,
        team_id: int,
        current_user: User,
        filename: str,
        data: bytes,
    ) -> Team:
        """Store a new logo image, replacing and deleting any previous one."""
        PermissionService.require_admin(db, team_id, current_user.id)
        team = PermissionService.get_team_or_404(db, team_id)

        if not data:
            raise ValidationError("Logo file is empty.")
        if len(data) > settings.MAX_LOGO_BYTES:
            raise ValidationError("Logo file too large.")
        detected = detect_image(data)
        if detected is None:
            raise ValidationError("Logo must be a PNG, JPEG, GIF or WebP image.")

        storage = get_storage()
        stamp = utcnow().strftime("%Y%m%d%H%M%S")
        path = f"{team_directory(team_id)}/logo-{stamp}-{secrets.token_hex(4)}.{detected.extension}"
        if not storage.store(data, path):
            raise InternalError("Unable to store logo.")

        previous = team.logo_path
        team.logo_path = path
        db.commit()
        db.refresh(team)

        if previous and previous != path:
            storage.delete(previous)
        logger.info(f"Team {team_id} logo updated from {filename!r}")
        return team

    @staticmethod
    def delete_logo(db: Session, team_id: int, current_user: User) -> Team:
        PermissionService.require_admin(db, team_id, current_user.id)
        team = PermissionService.get_team_or_404(db, team_id)

        previous = team.logo_path
        team.logo_path = None
        db.commit()
        db.refresh(team)

        if previous:
            get_storage().delete(previous)
        return team

    @staticmethod
    def list_user_teams(db: Session, user_id: int) -> List[Dict[str, Any]]:
        """Teams the user actively belongs to, with role and member count."""
        return [
            {**serialize_team(team), "role": role.value, "member_count": member_count}
            for team, role, member_count in TeamRepository(db).get_user_teams(user_id)
        ]
