"""
The action endpoint.

Every call is ``GET|POST /api?action=<name>``. Input is the query string,
merged with a JSON body or a multipart/urlencoded form on POST; output is
always the JSON envelope. Failures raise and are rendered by the app's
exception handlers.
"""
import json
import logging
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from sqlalchemy.orm import Session

from slapshot import __version__
from slapshot.api.actions import ACTIONS, ActionContext, UploadedFile
from slapshot.core.config import settings
from slapshot.core.errors import MethodNotAllowed
from slapshot.core.rate_limit import enforce_action_limit, limiter
from slapshot.core.security import clear_session_cookie, set_session_cookie
from slapshot.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_input(request: Request) -> Tuple[Dict[str, Any], Dict[str, UploadedFile]]:
    """Collect the action input. Body values override query values."""
    payload: Dict[str, Any] = dict(request.query_params)
    files: Dict[str, UploadedFile] = {}
    if request.method != "POST":
        return payload, files

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files[key] = UploadedFile(
                    filename=value.filename or "",
                    data=await value.read(),
                )
            else:
                payload[key] = value
        return payload, files

    body = await request.body()
    if body:
        try:
            data = json.loads(body)
        except ValueError:
            # Malformed JSON counts as an empty body
            logger.debug("Ignoring malformed JSON body")
            data = None
        if isinstance(data, dict):
            payload.update(data)
    return payload, files


def service_info() -> Dict[str, Any]:
    return {
        "ok": True,
        "service": f"{settings.APP_NAME} API",
        "version": __version__,
        "actions": list(ACTIONS),
    }


@router.api_route("", methods=["GET", "POST"])
@router.api_route("/index.php", methods=["GET", "POST"], include_in_schema=False)
@limiter.limit("100/minute")
async def dispatch(request: Request, db: Session = Depends(get_db)):
    name = request.query_params.get("action", "")
    spec = ACTIONS.get(name)
    if spec is None:
        return JSONResponse(service_info())

    if request.method not in spec.methods:
        raise MethodNotAllowed()
    enforce_action_limit(request, name)

    payload, files = await read_input(request)
    ctx = ActionContext(request=request, db=db, payload=payload, files=files)
    data = await run_in_threadpool(spec.handler, ctx)

    response = JSONResponse(
        jsonable_encoder({"ok": True, **(data or {})}), status_code=ctx.status_code
    )
    if ctx.session_token:
        set_session_cookie(response, ctx.session_token)
    elif ctx.clear_session:
        clear_session_cookie(response)
    return response
