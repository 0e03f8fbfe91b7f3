from typing import Any, Dict

from fastapi import status

from slapshot.api.actions import ActionContext, action
from slapshot.models.team import TeamMember, TeamRole
from slapshot.schemas.team import (
    MemberRemove,
    MemberRoleUpdate,
    TeamCreate,
    TeamDelete,
    TeamJoin,
    TeamRef,
    TeamUpdate,
)
from slapshot.services.invite_service import InviteService
from slapshot.services.membership_service import MembershipService
from slapshot.services.team_service import TeamService, serialize_team
from slapshot.utils.datetime_utils import isoformat


def serialize_member(member: TeamMember) -> Dict[str, Any]:
    return {
        "user_id": member.user_id,
        "display_name": member.user.display_name,
        "email": member.user.email,
        "role": member.role.value,
        "joined_at": isoformat(member.joined_at),
    }


def serialize_invite(invite) -> Dict[str, Any]:
    return {
        "id": invite.id,
        "email": invite.email,
        "status": invite.status.value,
        "send_count": invite.send_count,
        "last_message": invite.last_message,
        "invited_by_user_id": invite.invited_by_user_id,
        "invited_by_name": invite.inviter.display_name if invite.inviter else None,
        "created_at": isoformat(invite.created_at),
        "last_sent_at": isoformat(invite.last_sent_at),
        "accepted_at": isoformat(invite.accepted_at),
    }


@action("team_create")
def create_team(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamCreate)
    team = TeamService.create_team(ctx.db, user, data.name, data.metadata())
    ctx.status_code = status.HTTP_201_CREATED
    return {"team": serialize_team(team), "teams": TeamService.list_user_teams(ctx.db, user.id)}


@action("team_join")
def join_team(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamJoin)
    team = MembershipService.join_team(ctx.db, user, data.join_code)
    return {"joined_team_id": team.id, "teams": TeamService.list_user_teams(ctx.db, user.id)}


@action("team_update")
def update_team(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamUpdate)
    fields = data.metadata()
    if data.name is not None:
        fields["name"] = data.name
    team = TeamService.update_team(ctx.db, data.team_id, user, fields)
    return {"team": serialize_team(team)}


@action("team_logo_upload")
def upload_logo(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamRef)
    logo = ctx.file("logo")
    team = TeamService.upload_logo(
        ctx.db, data.team_id, user, logo.filename, logo.data
    )
    return {"team": serialize_team(team)}


@action("team_logo_delete")
def delete_logo(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamRef)
    team = TeamService.delete_logo(ctx.db, data.team_id, user)
    return {"team": serialize_team(team)}


@action("team_delete")
def delete_team(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamDelete)
    TeamService.delete_team(ctx.db, data.team_id, user, data.confirm_name, data.confirm_word)
    return {"deleted_team_id": data.team_id, "teams": TeamService.list_user_teams(ctx.db, user.id)}


@action("team_members", methods=("GET",))
def list_members(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamRef)
    members = MembershipService.list_members(ctx.db, data.team_id, user)
    invites, tracking_enabled = InviteService.list_invites(ctx.db, data.team_id)
    return {
        "members": [serialize_member(m) for m in members],
        "invites": [serialize_invite(i) for i in invites],
        "invite_tracking_enabled": tracking_enabled,
    }


@action("team_member_role")
def set_member_role(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(MemberRoleUpdate)
    member = MembershipService.set_member_role(
        ctx.db, data.team_id, user, data.user_id, TeamRole(data.role.value)
    )
    return {"member": serialize_member(member)}


@action("team_member_remove")
def remove_member(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(MemberRemove)
    MembershipService.remove_member(ctx.db, data.team_id, user, data.user_id)
    return {"removed_user_id": data.user_id}
