"""Content fingerprints used as cache keys.

Restore entries are keyed by the SHA-256 of the decoded image bytes. Edit
entries are keyed by the SHA-256 of ``image_hash + prompt_hash``, so a change
to either the image or the normalized prompt yields a different key. Nothing
here depends on who is asking.
"""
import base64
import binascii
import hashlib
import re
from dataclasses import dataclass

from errors import InputError

DATA_URL_RE = re.compile(r"^data:.*?;base64,(.*)$", re.DOTALL)


@dataclass(frozen=True)
class EditFingerprint:
    original_hash: str
    prompt_hash: str
    combined_hash: str


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def decode_embedded_data(value: str) -> bytes:
    """Decode a ``data:<mime>;base64,`` string or a bare base64 payload."""
    if not isinstance(value, str) or not value.strip():
        raise InputError("inputImage is required")
    match = DATA_URL_RE.match(value.strip())
    payload = match.group(1) if match else value.strip()
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("inputImage is not valid base64 data") from e
    if not raw:
        raise InputError("inputImage is empty")
    return raw


def normalize_prompt(prompt: str) -> str:
    return prompt.strip().lower()


def image_fingerprint(raw: bytes) -> str:
    """Cache key for the restore feature."""
    return sha256_hex(raw)


def prompt_fingerprint(prompt: str) -> str:
    return sha256_hex(normalize_prompt(prompt).encode("utf-8"))


def edit_fingerprint(raw: bytes, prompt: str) -> EditFingerprint:
    """Cache key for the edit feature: digest of both component digests."""
    original_hash = image_fingerprint(raw)
    prompt_hash = prompt_fingerprint(prompt)
    combined = sha256_hex((original_hash + prompt_hash).encode("ascii"))
    return EditFingerprint(
        original_hash=original_hash,
        prompt_hash=prompt_hash,
        combined_hash=combined,
    )
