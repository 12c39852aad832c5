"""Restore and edit request processing.

Both features run the same stages: quota gate, fingerprint, cache lookup,
model call on a miss, cache store, and a history record for the caller.
Any failure raises a ``ServiceError`` and stops the run at that stage.
"""
import logging
from dataclasses import dataclass

import cache
import history
from config import EDIT_MODEL, RESTORE_MODEL
from errors import InputError
from fingerprint import decode_embedded_data, edit_fingerprint, image_fingerprint
from identity import Identity, enforce_quota
from model_client import ReplicateClient, classify_output, resolve_output
from models import Edit, Restoration
from utils import ensure_image

logger = logging.getLogger(__name__)

RESTORE_DEFAULT_MIME = "image/png"
EDIT_DEFAULT_MIME = "image/jpeg"


@dataclass
class OperationResult:
    """Output for the caller plus the history record still to be written."""
    output: str
    history: history.PendingRecord


def _decode_input(input_image: str) -> bytes:
    raw = decode_embedded_data(input_image)
    ensure_image(raw)
    return raw


def restore(identity: Identity, input_image: str, client: ReplicateClient) -> OperationResult:
    """Restore a photo, reusing a cached result for identical bytes."""
    enforce_quota(identity, Restoration, "restores")

    raw = _decode_input(input_image)
    original_hash = image_fingerprint(raw)

    cached = cache.lookup_restoration(original_hash)
    if cached:
        logger.info("Restore cache hit %s", original_hash[:12])
        return OperationResult(
            output=cached,
            history=history.record_restoration(identity, input_image, cached),
        )

    output = client.predict(RESTORE_MODEL, {"input_image": input_image})
    restored = resolve_output(
        classify_output(output), client, RESTORE_DEFAULT_MIME, "restored"
    )

    cache.store_restoration(original_hash, input_image, restored)
    return OperationResult(
        output=restored,
        history=history.record_restoration(identity, input_image, restored),
    )


def edit(
    identity: Identity, input_image: str, prompt: str, client: ReplicateClient
) -> OperationResult:
    """Apply a prompt-driven edit, cached on image and normalized prompt."""
    enforce_quota(identity, Edit, "edits")

    if not prompt or not prompt.strip():
        raise InputError("Prompt is required for editing")
    prompt = prompt.strip()

    raw = _decode_input(input_image)
    fingerprint = edit_fingerprint(raw, prompt)

    cached = cache.lookup_edit(fingerprint.combined_hash)
    if cached:
        logger.info("Edit cache hit %s", fingerprint.combined_hash[:12])
        return OperationResult(
            output=cached,
            history=history.record_edit(identity, input_image, cached, prompt),
        )

    output = client.predict(
        EDIT_MODEL,
        {"input_image": input_image, "prompt": prompt, "output_format": "jpg"},
    )
    edited = resolve_output(classify_output(output), client, EDIT_DEFAULT_MIME, "edited")

    cache.store_edit(fingerprint, input_image, prompt, edited)
    return OperationResult(
        output=edited,
        history=history.record_edit(identity, input_image, edited, prompt),
    )
