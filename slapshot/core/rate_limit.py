from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address

from slapshot.core.errors import RateLimited

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

# Per-IP limits for individual actions behind the single endpoint
ACTION_LIMITS = {
    "auth_login": "10/minute",
    "auth_register": "10/hour",
    "account_email_request_decision": "30/minute",
}


def enforce_action_limit(request, action: str) -> None:
    """Count one hit of an action against the caller's IP, raising RateLimited when over."""
    limit_value = ACTION_LIMITS.get(action)
    if limit_value is None:
        return
    if not limiter.limiter.hit(parse(limit_value), action, get_remote_address(request)):
        raise RateLimited(
            "Too many requests. You have exceeded the maximum number of attempts. "
            "Please wait a few minutes before trying again."
        )
