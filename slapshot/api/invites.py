from slapshot.api.actions import ActionContext, action
from slapshot.schemas.invite import InviteEmailCreate
from slapshot.services.invite_service import InviteService


@action("invite_email")
def send_invite(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(InviteEmailCreate)
    tracking_enabled = InviteService.send_invite_email(
        ctx.db, data.team_id, user, data.email, data.message
    )
    return {"invite_tracking_enabled": tracking_enabled}
