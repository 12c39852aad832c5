"""Content-addressed result cache.

Entries are permanent: no TTL, no eviction, no invalidation. Writes are
upserts on the fingerprint, so concurrent writers for the same key simply
leave the last result in place.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from database import get_session
from fingerprint import EditFingerprint
from models import CacheEdit, CacheImage

logger = logging.getLogger(__name__)


def lookup_restoration(original_hash: str) -> Optional[str]:
    """Return the cached restored data URL, or None on a miss."""
    with get_session() as s:
        row = s.get(CacheImage, original_hash)
        return row.restored_data if row and row.restored_data else None


def lookup_edit(combined_hash: str) -> Optional[str]:
    """Return the cached edited data URL, or None on a miss."""
    with get_session() as s:
        row = s.get(CacheEdit, combined_hash)
        return row.edited_data if row and row.edited_data else None


def store_restoration(original_hash: str, original_data: str, restored_data: str) -> None:
    _upsert(
        CacheImage(
            original_hash=original_hash,
            original_data=original_data,
            restored_data=restored_data,
        )
    )


def store_edit(
    fingerprint: EditFingerprint, original_data: str, prompt: str, edited_data: str
) -> None:
    _upsert(
        CacheEdit(
            combined_hash=fingerprint.combined_hash,
            original_hash=fingerprint.original_hash,
            prompt_hash=fingerprint.prompt_hash,
            original_data=original_data,
            prompt=prompt,
            edited_data=edited_data,
        )
    )


def _upsert(row) -> None:
    # The caller already holds the result; a failed write only costs a future miss.
    try:
        with get_session() as s:
            s.merge(row)
            s.commit()
    except SQLAlchemyError:
        logger.exception("Cache write failed for %s", type(row).__name__)
