# Importing the handler modules registers their actions
from . import account, auth, invites, media, teams
from .endpoint import router

__all__ = ["router"]
