"""Database models for Photo Revive."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """Authenticated account. Only the hash of the API token is kept."""
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    token_hash: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=utcnow)


class Restoration(SQLModel, table=True):
    """Append-only record of a restore operation."""
    __tablename__ = "restorations"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    anon_id: Optional[str] = Field(default=None, index=True)
    original_url: str
    restored_url: str
    created_at: datetime = Field(default_factory=utcnow, index=True)


class Edit(SQLModel, table=True):
    """Append-only record of a prompt-driven edit."""
    __tablename__ = "edits"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    anon_id: Optional[str] = Field(default=None, index=True)
    original_url: str
    edited_url: str
    prompt: str
    created_at: datetime = Field(default_factory=utcnow, index=True)


class CacheImage(SQLModel, table=True):
    """Restore cache entry keyed by the SHA-256 of the input bytes."""
    __tablename__ = "cache_images"

    original_hash: str = Field(primary_key=True)
    original_data: str
    restored_data: str


class CacheEdit(SQLModel, table=True):
    """Edit cache entry keyed by the combined image/prompt digest."""
    __tablename__ = "cache_edits"

    combined_hash: str = Field(primary_key=True)
    original_hash: str = Field(index=True)
    prompt_hash: str
    original_data: str
    prompt: str
    edited_data: str
