from fastapi import status

from slapshot.api.actions import ActionContext, action
from slapshot.schemas.email_change import EmailChangeCreate, EmailChangeDecision
from slapshot.schemas.user import ProfileUpdate
from slapshot.services.auth_service import AuthService
from slapshot.services.email_change_service import EmailChangeService
from slapshot.utils.datetime_utils import isoformat


@action("account_update_profile")
def update_profile(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(ProfileUpdate)
    user = AuthService.update_profile(
        ctx.db,
        user,
        display_name=data.display_name,
        current_password=data.current_password,
        new_password=data.new_password,
    )
    return AuthService.session_context(ctx.db, user)


@action("account_email_change_request")
def request_email_change(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(EmailChangeCreate)
    request = EmailChangeService.request_change(
        ctx.db,
        user,
        requested_email=data.requested_email,
        reason=data.reason,
        requested_ip=ctx.client_ip,
    )
    ctx.status_code = status.HTTP_201_CREATED
    return {
        "request": {
            "id": request.id,
            "requested_email": request.requested_email,
            "status": request.status.value,
            "created_at": isoformat(request.created_at),
            "expires_at": isoformat(request.expires_at),
        }
    }


# Reached from the links in the support email, hence GET
@action("account_email_request_decision", methods=("GET", "POST"))
def decide_email_change(ctx: ActionContext):
    data = ctx.parse(EmailChangeDecision)
    return EmailChangeService.decide(ctx.db, data.token, data.decision, decided_ip=ctx.client_ip)
