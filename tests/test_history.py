"""Tests for history.py — best-effort record writes."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

import history
from database import get_session
from identity import Identity
from models import Restoration


@contextmanager
def broken_session():
    raise SQLAlchemyError("disk I/O error")
    yield


def _record():
    return history.record_restoration(Identity(anon_id="anon-1"), "in", "out")


class TestAppend:
    def test_success_reports_record_id(self, engine):
        record = _record()
        expected_id = record.id
        result = history.append(record)
        assert result.ok
        assert result.record_id == expected_id
        with get_session() as s:
            assert s.exec(select(Restoration)).one().anon_id == "anon-1"

    def test_failure_is_returned_not_raised(self, engine, monkeypatch):
        monkeypatch.setattr(history, "get_session", broken_session)
        result = history.append(_record())
        assert not result.ok
        assert result.record_id is None
        assert "disk I/O error" in result.error


class TestWriteBestEffort:
    def test_failure_is_logged(self, engine, monkeypatch, caplog):
        monkeypatch.setattr(history, "get_session", broken_session)
        with caplog.at_level(logging.ERROR, logger="history"):
            assert history.write_best_effort(_record()) is None
        assert "History insert failed for Restoration" in caplog.text

    def test_success_writes_row(self, engine):
        history.write_best_effort(_record())
        with get_session() as s:
            assert len(s.exec(select(Restoration)).all()) == 1
