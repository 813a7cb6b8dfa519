"""
Print a bearer token for an existing user

Usage:
    python create_token.py <username> [expires_minutes]

Example:
    python create_token.py summoner_one 60
"""

import sys
from dotenv import load_dotenv

load_dotenv('.env')

from config import get_settings
from database_adapter import DatabaseAdapter, User
from services.users import UserService


def create_token(username: str, expires_minutes: int = None) -> bool:
    """Look the user up and print a signed access token"""
    settings = get_settings()
    db = DatabaseAdapter(settings)
    db.init()

    with db.session() as session:
        user = session.query(User).filter(User.username == username).first()
        if user is None:
            print(f"✗ User '{username}' not found in users table.")
            return False

        token = UserService(session, settings).create_access_token(user, expires_minutes)

    print(f"✓ Token for '{username}' (id {user.id}):")
    print(token)
    print(f"\nUse it as: Authorization: Bearer {token}")
    return True


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python create_token.py <username> [expires_minutes]")
        sys.exit(1)

    minutes = int(sys.argv[2]) if len(sys.argv) > 2 else None
    success = create_token(sys.argv[1], minutes)
    sys.exit(0 if success else 1)
