"""User provisioning."""
import secrets
import sys

from sqlmodel import select

from database import get_session, init_db
from identity import hash_token
from models import User


def create_user(email: str) -> tuple[User, str]:
    """Create a user and return it with its plaintext API token.

    The token is shown once; only its hash is stored.
    """
    email = email.strip().lower()
    if not email:
        raise ValueError("Email required")
    token = secrets.token_urlsafe(32)
    with get_session() as s:
        if s.exec(select(User).where(User.email == email)).first():
            raise ValueError(f"User {email} already exists")
        user = User(email=email, token_hash=hash_token(token))
        s.add(user)
        s.commit()
        s.refresh(user)
    return user, token


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python accounts.py <email>")
        sys.exit(2)
    init_db()
    user, token = create_user(sys.argv[1])
    print(f"Created {user.email} ({user.id})")
    print(f"API token: {token}")
