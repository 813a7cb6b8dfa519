"""Security event logging.

Authentication failures and rejected ownership checks go to a dedicated
"security" logger so they can be routed separately from application logs.
"""
import logging
from typing import Optional, Union

security_logger = logging.getLogger("security")

UserId = Optional[Union[int, str]]


def log_auth_failure(user_id: UserId, reason: str):
    """Record a failed authentication attempt."""
    security_logger.warning(f"AUTH_FAILURE user={user_id} reason={reason}")


def log_unauthorized_access(user_id: UserId, resource: str, details: str = ""):
    """Record an authenticated caller touching something they do not own."""
    security_logger.warning(f"UNAUTHORIZED_ACCESS user={user_id} resource={resource} details={details}")
