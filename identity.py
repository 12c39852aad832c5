"""Caller identity and the anonymous quota gate.

A request is either made by an authenticated user (bearer API token) or by
an anonymous visitor identified by the ``anon-id`` cookie. The cookie value is
passed in explicitly and handed back through ``persist_anon_cookie``; nothing
here keeps state between requests.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Response
from sqlalchemy import func
from sqlmodel import select

from config import ANON_COOKIE_MAX_AGE, ANON_COOKIE_NAME, ANON_LIMIT
from database import get_session
from errors import QuotaExceededError
from fingerprint import sha256_hex
from models import User


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str] = None
    anon_id: Optional[str] = None
    minted: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def owner_fields(self) -> dict:
        """Column values attributing a record to this caller."""
        if self.user_id:
            return {"user_id": self.user_id}
        return {"anon_id": self.anon_id}


def hash_token(token: str) -> str:
    return sha256_hex(token.encode("utf-8"))


def authenticate(token: Optional[str]) -> Optional[User]:
    """Look up the user owning an API token. Unknown tokens yield None."""
    if not token:
        return None
    with get_session() as s:
        return s.exec(select(User).where(User.token_hash == hash_token(token))).first()


def resolve_identity(user: Optional[User], anon_cookie: Optional[str]) -> Identity:
    """Pick the caller identity, minting an anonymous token when needed."""
    if user:
        return Identity(user_id=user.id)
    if anon_cookie:
        return Identity(anon_id=anon_cookie)
    return Identity(anon_id=str(uuid.uuid4()), minted=True)


def count_anonymous(record_model, anon_id: str) -> int:
    """Number of operations an anonymous token has run for one feature."""
    with get_session() as s:
        return s.exec(
            select(func.count(record_model.id)).where(record_model.anon_id == anon_id)
        ).one()


def enforce_quota(identity: Identity, record_model, noun: str) -> None:
    """Reject anonymous callers at or over the limit for this feature.

    Each feature counts its own table, so the restore and edit allowances
    are independent.
    """
    if identity.is_authenticated:
        return
    if count_anonymous(record_model, identity.anon_id) >= ANON_LIMIT:
        raise QuotaExceededError(
            f"Anonymous limit reached. Please log in for more {noun}."
        )


def persist_anon_cookie(response: Response, identity: Identity) -> None:
    """Send a freshly minted anonymous token back to the caller.

    Callers that already presented a token are left alone.
    """
    if identity.is_authenticated or not identity.minted:
        return
    response.set_cookie(
        ANON_COOKIE_NAME,
        identity.anon_id,
        max_age=ANON_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
    )
