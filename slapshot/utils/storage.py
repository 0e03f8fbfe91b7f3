"""
Blob storage for uploaded media and team logos.

Paths handed to the storage are relative (``team-12/logo.png``) and are
resolved under ``UPLOAD_ROOT``; anything that would land outside the root is
refused. Every operation returns a bool and logs its own failures.
"""

import logging
import shutil
from pathlib import Path, PurePosixPath

from starlette.responses import Response
from starlette.staticfiles import StaticFiles

from slapshot.core.config import settings
from slapshot.utils.media_types import SERVED_EXTENSIONS

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class BlobStorage:
    """Filesystem storage confined to one root directory."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path | None:
        relative = path.removeprefix(PUBLIC_PREFIX).lstrip("/")
        target = (self.root / relative).resolve()
        if target == self.root or not target.is_relative_to(self.root):
            logger.warning(f"Refusing storage path outside upload root: {path!r}")
            return None
        return target

    def store(self, data: bytes, path: str) -> bool:
        target = self._resolve(path)
        if target is None:
            return False
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store {path}: {str(e)}")
            return False
        return True

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if target is None:
            return False
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete {path}: {str(e)}")
            return False
        return True

    def purge_directory(self, path: str) -> bool:
        target = self._resolve(path)
        if target is None:
            return False
        if not target.exists():
            return True
        try:
            shutil.rmtree(target)
        except OSError as e:
            logger.error(f"Failed to purge {path}: {str(e)}")
            return False
        logger.info(f"Purged storage directory {path}")
        return True


def team_directory(team_id: int) -> str:
    return f"team-{team_id}"


def public_url(path: str) -> str:
    """URL the static mount serves a stored path from."""
    return f"{PUBLIC_PREFIX}/{path}"


def get_storage() -> BlobStorage:
    # Built per call so a changed UPLOAD_ROOT takes effect immediately
    return BlobStorage(settings.UPLOAD_ROOT)


class UploadFiles(StaticFiles):
    """
    Static mount over ``UPLOAD_ROOT``.

    The root is looked up per request, so a changed ``UPLOAD_ROOT`` is served
    without remounting. Only media extensions are served, and responses carry
    ``nosniff`` so browsers keep to the declared type.
    """

    def __init__(self):
        super().__init__(check_dir=False)

    def lookup_path(self, path: str):
        if PurePosixPath(path).suffix.lstrip(".").lower() not in SERVED_EXTENSIONS:
            return "", None
        self.all_directories = [settings.UPLOAD_ROOT]
        return super().lookup_path(path)

    def file_response(self, *args, **kwargs) -> Response:
        response = super().file_response(*args, **kwargs)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response
