"""Tests for model_client.py — prediction calls and output normalization."""

import base64
from unittest.mock import MagicMock

import pytest
import requests

from errors import ConfigurationError, UpstreamError
from model_client import (
    BarePayload,
    EmptyOutput,
    InlineImage,
    RemoteImage,
    ReplicateClient,
    UnexpectedOutput,
    classify_output,
    resolve_output,
)
from tests.conftest import FakeResponse


def _client(http=None, token="tok"):
    return ReplicateClient(api_token=token, base_url="https://replicate.test/v1/", session=http or MagicMock())


class TestClassifyOutput:
    @pytest.mark.parametrize(
        "output, expected",
        [
            ("https://cdn.test/a.png", RemoteImage("https://cdn.test/a.png")),
            (["http://x/img.png", "http://x/other.png"], RemoteImage("http://x/img.png")),
            ("data:image/webp;base64,AAAA", InlineImage("data:image/webp;base64,AAAA")),
            ("QUJD", BarePayload("QUJD")),
            (None, EmptyOutput()),
            ("", EmptyOutput()),
            ([None], UnexpectedOutput(None)),
            ([""], BarePayload("")),
            ([], UnexpectedOutput([])),
            ({"url": "x"}, UnexpectedOutput({"url": "x"})),
            (42, UnexpectedOutput(42)),
        ],
    )
    def test_shapes(self, output, expected):
        assert classify_output(output) == expected


class TestResolveOutput:
    def test_inline_passthrough(self):
        assert resolve_output(InlineImage("data:x;base64,AA"), _client(), "image/png", "restored") == "data:x;base64,AA"

    def test_bare_payload_gets_default_mime(self):
        assert resolve_output(BarePayload("QUJD"), _client(), "image/jpeg", "edited") == "data:image/jpeg;base64,QUJD"

    def test_remote_uses_response_content_type(self):
        http = MagicMock()
        http.get.return_value = FakeResponse(content=b"img", headers={"content-type": "image/webp"})
        out = resolve_output(RemoteImage("http://x/img"), _client(http), "image/png", "restored")
        assert out == "data:image/webp;base64," + base64.b64encode(b"img").decode()

    def test_remote_falls_back_to_default_mime(self):
        http = MagicMock()
        http.get.return_value = FakeResponse(content=b"img")
        out = resolve_output(RemoteImage("http://x/img"), _client(http), "image/jpeg", "edited")
        assert out.startswith("data:image/jpeg;base64,")

    def test_remote_fetch_failure(self):
        http = MagicMock()
        http.get.return_value = FakeResponse(404, text="gone")
        with pytest.raises(UpstreamError, match="Failed to fetch restored image: gone"):
            resolve_output(RemoteImage("http://x/img"), _client(http), "image/png", "restored")

    def test_empty(self):
        with pytest.raises(UpstreamError, match="No output from replicate"):
            resolve_output(EmptyOutput(), _client(), "image/png", "restored")

    def test_unexpected(self):
        with pytest.raises(UpstreamError, match="Unexpected output format"):
            resolve_output(UnexpectedOutput(1), _client(), "image/png", "restored")


class TestPredict:
    def test_missing_token_makes_no_call(self):
        http = MagicMock()
        with pytest.raises(ConfigurationError, match="Missing Replicate API token"):
            _client(http, token=None).predict("owner/model", {"input_image": "x"})
        http.post.assert_not_called()

    def test_request_shape(self):
        http = MagicMock()
        http.post.return_value = FakeResponse(json_body={"output": "QUJD"})
        assert _client(http).predict("owner/model", {"input_image": "x"}) == "QUJD"
        args, kwargs = http.post.call_args
        assert args[0] == "https://replicate.test/v1/models/owner/model/predictions"
        assert kwargs["headers"]["Prefer"] == "wait"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["json"] == {"input": {"input_image": "x"}}

    def test_upstream_error_body_is_forwarded(self):
        http = MagicMock()
        http.post.return_value = FakeResponse(500, text='{"detail":"model crashed"}')
        with pytest.raises(UpstreamError) as exc:
            _client(http).predict("owner/model", {})
        assert exc.value.message == '{"detail":"model crashed"}'

    def test_transport_error(self):
        http = MagicMock()
        http.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(UpstreamError, match="refused"):
            _client(http).predict("owner/model", {})

    def test_invalid_json(self):
        http = MagicMock()
        http.post.return_value = FakeResponse(200, json_body=None, text="<html>")
        with pytest.raises(UpstreamError, match="not valid JSON"):
            _client(http).predict("owner/model", {})
