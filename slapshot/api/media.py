from fastapi import status

from slapshot.api.actions import ActionContext, action
from slapshot.schemas.media import MediaDelete, MediaExternalCreate, MediaUploadForm
from slapshot.schemas.team import TeamRef
from slapshot.services.media_service import MediaService, serialize_media


@action("media_list", methods=("GET",))
def list_media(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(TeamRef)
    items = MediaService.list_media(ctx.db, data.team_id, user)
    return {"items": [serialize_media(item) for item in items]}


@action("media_upload")
def upload_media(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(MediaUploadForm)
    upload = ctx.file("file")
    item = MediaService.upload(
        ctx.db,
        data.team_id,
        user,
        filename=upload.filename,
        data=upload.data,
        title=data.title,
        description=data.description,
        game_date=data.game_date,
    )
    ctx.status_code = status.HTTP_201_CREATED
    return {"item": serialize_media(item)}


@action("media_external")
def add_external_media(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(MediaExternalCreate)
    item = MediaService.add_external(
        ctx.db,
        data.team_id,
        user,
        url=data.url,
        title=data.title,
        description=data.description,
        game_date=data.game_date,
    )
    ctx.status_code = status.HTTP_201_CREATED
    return {"item": serialize_media(item)}


@action("media_delete")
def delete_media(ctx: ActionContext):
    user = ctx.current_user()
    data = ctx.parse(MediaDelete)
    MediaService.delete(ctx.db, data.media_id, user)
    return {"deleted_media_id": data.media_id}
