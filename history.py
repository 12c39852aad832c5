"""Operation history.

Records are append-only. Writing them is best effort: ``append`` reports
failures through a ``HistoryWrite`` value and ``write_best_effort`` logs it,
so a caller that already has its result is not failed by a history problem.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from database import get_session
from identity import Identity
from models import Edit, Restoration, utcnow

logger = logging.getLogger(__name__)

PendingRecord = Union[Restoration, Edit]


@dataclass(frozen=True)
class HistoryWrite:
    record_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def record_restoration(identity: Identity, original: str, restored: str) -> Restoration:
    return Restoration(
        original_url=original,
        restored_url=restored,
        created_at=utcnow(),
        **identity.owner_fields(),
    )


def record_edit(identity: Identity, original: str, edited: str, prompt: str) -> Edit:
    return Edit(
        original_url=original,
        edited_url=edited,
        prompt=prompt,
        created_at=utcnow(),
        **identity.owner_fields(),
    )


def append(record: PendingRecord) -> HistoryWrite:
    """Persist one record. Database errors are returned, not raised."""
    record_id = record.id
    try:
        with get_session() as s:
            s.add(record)
            s.commit()
    except SQLAlchemyError as e:
        return HistoryWrite(error=str(e))
    return HistoryWrite(record_id=record_id)


def write_best_effort(record: PendingRecord) -> None:
    """Background task: append and log the outcome. Never raises."""
    result = append(record)
    if result.ok:
        logger.debug("Recorded %s %s", type(record).__name__, result.record_id)
    else:
        logger.error("History insert failed for %s: %s", type(record).__name__, result.error)


def _timestamp(value) -> Optional[str]:
    return value.isoformat() if value else None


def list_restorations(user_id: str) -> list[dict]:
    """The user's restorations, newest first."""
    with get_session() as s:
        rows = s.exec(
            select(Restoration)
            .where(Restoration.user_id == user_id)
            .order_by(Restoration.created_at.desc())
        ).all()
        return [
            {
                "id": r.id,
                "original_url": r.original_url,
                "restored_url": r.restored_url,
                "created_at": _timestamp(r.created_at),
            }
            for r in rows
        ]


def list_edits(user_id: str) -> list[dict]:
    """The user's edits, newest first."""
    with get_session() as s:
        rows = s.exec(
            select(Edit).where(Edit.user_id == user_id).order_by(Edit.created_at.desc())
        ).all()
        return [
            {
                "id": r.id,
                "original_url": r.original_url,
                "edited_url": r.edited_url,
                "prompt": r.prompt,
                "created_at": _timestamp(r.created_at),
            }
            for r in rows
        ]


def usage_stats(user_id: str) -> dict:
    """Totals and last-7-days counts for each feature."""
    week_ago = utcnow() - timedelta(days=7)
    stats = {}
    with get_session() as s:
        for key, model in (("restorations", Restoration), ("edits", Edit)):
            total = s.exec(
                select(func.count(model.id)).where(model.user_id == user_id)
            ).one()
            this_week = s.exec(
                select(func.count(model.id)).where(
                    model.user_id == user_id, model.created_at > week_ago
                )
            ).one()
            stats[key] = {"total": total, "this_week": this_week}
    return stats
