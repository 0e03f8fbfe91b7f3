from fastapi import status

from slapshot.api.actions import ActionContext, action
from slapshot.core.security import create_session_token
from slapshot.schemas.user import UserLogin, UserRegister
from slapshot.services.auth_service import AuthService


def _signed_in(ctx: ActionContext, user) -> dict:
    ctx.session_token = create_session_token(user)
    return {"authenticated": True, **AuthService.session_context(ctx.db, user)}


@action("session", methods=("GET",))
def session(ctx: ActionContext):
    user = ctx.optional_user()
    if user is None:
        return {"authenticated": False}
    return {"authenticated": True, **AuthService.session_context(ctx.db, user)}


@action("auth_register")
def register(ctx: ActionContext):
    data = ctx.parse(UserRegister)
    user = AuthService.register(
        ctx.db,
        email=data.email,
        display_name=data.display_name,
        password=data.password,
        team_name=data.team_name,
    )
    ctx.status_code = status.HTTP_201_CREATED
    return _signed_in(ctx, user)


@action("auth_login")
def login(ctx: ActionContext):
    data = ctx.parse(UserLogin)
    user = AuthService.authenticate(ctx.db, data.email, data.password)
    return _signed_in(ctx, user)


@action("auth_logout")
def logout(ctx: ActionContext):
    ctx.clear_session = True
    return {}
