"""Shared fixtures: in-memory database, fake prediction API, sample images."""

import base64
import io
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image as PILImage
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import database
from accounts import create_user
from app import app
from model_client import ReplicateClient
from routes import get_model_client


class FakeResponse:
    """Just enough of ``requests.Response`` for the client."""

    def __init__(
        self,
        status_code: int = 200,
        json_body=None,
        text: str = "",
        content: bytes = b"",
        headers: Optional[dict] = None,
    ):
        self.status_code = status_code
        self._json = json_body
        self.text = text
        self.content = content
        self.headers = headers or {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


def png_bytes(color=(120, 80, 40)) -> bytes:
    buf = io.BytesIO()
    PILImage.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def data_url(raw: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


@pytest.fixture
def engine(monkeypatch):
    eng = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(eng)
    monkeypatch.setattr(database, "engine", eng)
    return eng


@pytest.fixture
def http():
    """Fake HTTP session handed to ReplicateClient."""
    fake = MagicMock()
    fake.post.return_value = FakeResponse(
        json_body={"output": data_url(png_bytes((1, 2, 3)))}
    )
    return fake


@pytest.fixture
def client(engine, http):
    app.dependency_overrides[get_model_client] = lambda: ReplicateClient(
        api_token="test-token", base_url="https://replicate.test/v1", session=http
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sample_image() -> str:
    return data_url(png_bytes())


@pytest.fixture
def user_token(engine):
    user, token = create_user("ada@example.com")
    return user, token
