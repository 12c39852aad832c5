"""Client for the hosted prediction API (Replicate).

Predictions are requested with ``Prefer: wait`` so the call blocks until the
model finishes instead of polling. The ``output`` field comes back in several
shapes; ``classify_output`` turns it into one of the outcome types below and
``resolve_output`` is the single place that decides what each one means.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

import requests

from config import REPLICATE_API_BASE
from errors import ConfigurationError, UpstreamError
from utils import to_data_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteImage:
    url: str


@dataclass(frozen=True)
class InlineImage:
    data_url: str


@dataclass(frozen=True)
class BarePayload:
    payload: str


@dataclass(frozen=True)
class EmptyOutput:
    pass


@dataclass(frozen=True)
class UnexpectedOutput:
    value: Any


PredictionOutcome = Union[RemoteImage, InlineImage, BarePayload, EmptyOutput, UnexpectedOutput]


class ReplicateClient:
    """Thin wrapper around the predictions endpoint."""

    def __init__(
        self,
        api_token: Optional[str],
        base_url: str = REPLICATE_API_BASE,
        session: Optional[requests.Session] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    def predict(self, model: str, inputs: dict) -> Any:
        """Run a prediction synchronously and return its raw ``output`` field."""
        if not self.api_token:
            raise ConfigurationError("Missing Replicate API token")

        url = f"{self.base_url}/models/{model}/predictions"
        logger.info("Requesting prediction from %s", model)
        try:
            r = self.http.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                    "Prefer": "wait",
                },
                json={"input": inputs},
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Prediction request failed: {e}") from e

        if not r.ok:
            logger.warning("Prediction for %s failed with status %s", model, r.status_code)
            raise UpstreamError(r.text)

        try:
            body = r.json()
        except ValueError as e:
            raise UpstreamError("Prediction response is not valid JSON") from e
        if not isinstance(body, dict):
            raise UpstreamError("Unexpected output format from replicate")
        return body.get("output")

    def fetch(self, url: str) -> Tuple[bytes, Optional[str]]:
        """Download a generated image. Returns (bytes, content type)."""
        try:
            r = self.http.get(url)
        except requests.RequestException as e:
            raise UpstreamError(str(e)) from e
        if not r.ok:
            raise UpstreamError(r.text)
        return r.content, r.headers.get("content-type")


def classify_output(output: Any) -> PredictionOutcome:
    """Tag the raw ``output`` field. Arrays contribute their first element.

    Emptiness is judged before unwrapping, so ``[None]`` is an unexpected
    shape rather than a missing output.
    """
    if output is None or output == "":
        return EmptyOutput()
    if isinstance(output, list):
        if not output:
            return UnexpectedOutput(output)
        output = output[0]
    if not isinstance(output, str):
        return UnexpectedOutput(output)
    if output.startswith("data:"):
        return InlineImage(output)
    if output.startswith(("http://", "https://")):
        return RemoteImage(output)
    return BarePayload(output)


def resolve_output(
    outcome: PredictionOutcome, client: ReplicateClient, default_mime: str, label: str
) -> str:
    """Turn an outcome into a data URL or raise ``UpstreamError``.

    ``label`` names the result in fetch errors ("restored", "edited").
    """
    if isinstance(outcome, InlineImage):
        return outcome.data_url
    if isinstance(outcome, RemoteImage):
        try:
            raw, content_type = client.fetch(outcome.url)
        except UpstreamError as e:
            raise UpstreamError(f"Failed to fetch {label} image: {e.message}") from e
        return to_data_url(raw, content_type or default_mime)
    if isinstance(outcome, BarePayload):
        return f"data:{default_mime};base64,{outcome.payload}"
    if isinstance(outcome, EmptyOutput):
        raise UpstreamError("No output from replicate")
    if isinstance(outcome, UnexpectedOutput):
        raise UpstreamError("Unexpected output format from replicate")
    raise TypeError(f"Unknown prediction outcome: {outcome!r}")
