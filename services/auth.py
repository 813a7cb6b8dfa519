"""Authentication and authorization services.

Provides bearer token extraction, caller identity resolution, and the
"UserAllowed" policy guarding review mutations.
In TEST_MODE, accepts dev tokens for stable test identities without signing JWTs.
Security: Identity is always re-derived server-side from the token and the users table.
"""
from typing import Optional
from fastapi import Header, HTTPException, Depends
from sqlalchemy.orm import Session
from config import load_settings_from_env
from services.database import get_session
from services.security_logger import log_auth_failure, log_unauthorized_access
from services.users import UserService

DEV_TOKEN_PREFIX = "dev-token-"

# Account roles admitted by the UserAllowed policy
USER_ALLOWED_ROLES = {"user", "admin"}


def resolve_bearer_token(authorization: Optional[str]) -> str:
    """
    Strip the Bearer scheme and surrounding whitespace from an Authorization value.

    Returns an empty string when the header is absent.
    """
    if not authorization:
        return ""
    token = authorization.strip()
    if token.startswith("Bearer"):
        token = token[len("Bearer"):]
    return token.strip()


def get_current_user(
    authorization: str = Header(None),
    session: Session = Depends(get_session),
):
    """
    Get current user from Authorization header.

    Returns user dict with id, email, username, role on success.
    Raises HTTPException 401 if token is missing or invalid, or the user is gone.

    In TEST_MODE (dev):
      - Accepts: "dev-token-<user_id>" or "Bearer dev-token-<user_id>"

    Otherwise:
      - Accepts: HS256 JWT whose "sub" claim is the user id
    """
    # Fresh settings so tests that patch env observe the updated values
    settings = load_settings_from_env()

    token = resolve_bearer_token(authorization)
    if not token:
        log_auth_failure(None, "Missing authorization header")
        raise HTTPException(status_code=401, detail="No authorization header")

    users = UserService(session, settings)

    if settings.TEST_MODE and token.startswith(DEV_TOKEN_PREFIX):
        raw_id = token[len(DEV_TOKEN_PREFIX):].strip()
        user_id = int(raw_id) if raw_id.isdigit() else None
    else:
        user_id = users.decode_token(token)

    if user_id is None:
        log_auth_failure(None, "Invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    user = users.get_user(user_id)
    if user is None:
        log_auth_failure(user_id, "Token user not found in database")
        raise HTTPException(status_code=401, detail=f"User {user_id} not found")

    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "role": user.role or "user",
    }


def require_user_allowed(current_user: dict = Depends(get_current_user)):
    """
    UserAllowed policy: any signed-in account with a user or admin role.

    Rejections are reported as 401, never 403.
    """
    if current_user.get("role") not in USER_ALLOWED_ROLES:
        log_unauthorized_access(
            current_user.get("id"),
            "UserAllowed",
            f"Rejected account role: {current_user.get('role')}"
        )
        raise HTTPException(status_code=401, detail="Not authorized")
    return current_user
