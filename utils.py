"""Utility functions."""
import base64
import io

from PIL import Image as PILImage, UnidentifiedImageError

from errors import InputError


def to_data_url(raw: bytes, mime: str) -> str:
    """Encode bytes as a self-contained data URL."""
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def ensure_image(raw: bytes) -> None:
    """Reject payloads Pillow cannot identify as an image."""
    try:
        with PILImage.open(io.BytesIO(raw)) as im:
            im.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InputError("Input is not a valid image") from e
