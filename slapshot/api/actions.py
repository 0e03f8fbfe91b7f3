"""
Action registry for the single ``/api?action=<name>`` endpoint.

Handlers are plain synchronous functions taking an ``ActionContext`` and
returning the data merged into the ``{"ok": true, ...}`` envelope. They are
registered by name with the ``action`` decorator.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from slapshot.core.errors import AuthenticationRequired, ValidationError
from slapshot.core.security import extract_token, resolve_user
from slapshot.models.user import User
from slapshot.schemas import parse_payload

M = TypeVar("M", bound=BaseModel)


@dataclass
class UploadedFile:
    filename: str
    data: bytes


@dataclass
class ActionContext:
    """Everything a handler may read from, or set on, one request."""

    request: Request
    db: Session
    payload: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, UploadedFile] = field(default_factory=dict)
    status_code: int = 200
    # Set by handlers to issue or drop the session cookie
    session_token: Optional[str] = None
    clear_session: bool = False
    _user: Optional[User] = None
    _user_loaded: bool = False

    @property
    def client_ip(self) -> str:
        return get_remote_address(self.request)

    def optional_user(self) -> Optional[User]:
        if not self._user_loaded:
            self._user = resolve_user(self.db, extract_token(self.request))
            self._user_loaded = True
        return self._user

    def current_user(self) -> User:
        user = self.optional_user()
        if user is None:
            raise AuthenticationRequired()
        return user

    def parse(self, model: Type[M]) -> M:
        return parse_payload(model, self.payload)

    def file(self, name: str = "file") -> UploadedFile:
        uploaded = self.files.get(name)
        if uploaded is None:
            raise ValidationError("Upload file is required.")
        return uploaded


Handler = Callable[[ActionContext], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class ActionSpec:
    name: str
    handler: Handler
    methods: Tuple[str, ...]


ACTIONS: Dict[str, ActionSpec] = {}


def action(name: str, methods: Tuple[str, ...] = ("POST",)):
    """Register a handler under an action name for the given HTTP methods."""

    def decorator(func: Handler) -> Handler:
        if name in ACTIONS:
            raise RuntimeError(f"Action {name!r} registered twice")
        ACTIONS[name] = ActionSpec(name=name, handler=func, methods=tuple(m.upper() for m in methods))
        return func

    return decorator
