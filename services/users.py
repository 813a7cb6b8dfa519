"""User lookups and bearer token encoding.

Tokens are HS256 JWTs signed with SECRET_KEY carrying the user id in "sub".
"""
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional

import jwt
from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from database_adapter import User

logger = logging.getLogger(__name__)


class UserService:
    """Read-only access to users plus token encode/decode."""

    def __init__(self, session: Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or default_settings

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def user_exists(self, username: str) -> bool:
        return self.session.query(User.id).filter(User.username == username).first() is not None

    def decode_token(self, token: str) -> Optional[int]:
        """Return the user id carried by a token, or None when it is invalid or expired."""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.settings.SECRET_KEY, algorithms=[self.settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            return None
        except jwt.InvalidTokenError:
            return None

        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError):
            return None

    def create_access_token(self, user: User, expires_minutes: Optional[int] = None) -> str:
        minutes = expires_minutes or self.settings.ACCESS_TOKEN_EXPIRE_MINUTES
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role or "user",
            "exp": datetime.now(UTC) + timedelta(minutes=minutes),
        }
        return jwt.encode(payload, self.settings.SECRET_KEY, algorithm=self.settings.JWT_ALGORITHM)
