"""Seed the restore cache from sample image pairs.

Files are expected as ``<name>-<id>-original.<ext>`` next to
``<name>-<id>-restored.<ext>``. Originals are hashed exactly like uploads in
the restore pipeline, so a later upload of the same bytes is a cache hit.
"""
import logging
import re
import sys
from pathlib import Path
from typing import Iterable, Optional

import cache
from config import CACHE_SEED_DIR, configure_logging
from database import init_db
from fingerprint import image_fingerprint
from utils import to_data_url

logger = logging.getLogger(__name__)

# Configuration
MIME_BY_EXT = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg"}
ORIGINAL_RE = re.compile(r"-(\d+)-original\.(png|jpe?g)$", re.IGNORECASE)


def iter_originals(seed_dir: Path) -> Iterable[Path]:
    """Yield files that look like originals (``*-original.png`` etc.)."""
    for p in sorted(seed_dir.iterdir()):
        if p.is_file() and p.suffix.lower() in MIME_BY_EXT and "-original" in p.name.lower():
            yield p


def find_restored(seed_dir: Path, pair_id: str) -> Optional[Path]:
    """Find the restored counterpart sharing the numeric id."""
    pattern = re.compile(rf"-{pair_id}-restored\.(png|jpe?g)$", re.IGNORECASE)
    for p in sorted(seed_dir.iterdir()):
        if p.is_file() and pattern.search(p.name):
            return p
    return None


def mime_for(path: Path) -> str:
    ext = path.suffix.lower()
    return MIME_BY_EXT.get(ext, f"image/{ext.lstrip('.')}")


def seed(seed_dir: Path) -> dict:
    """Upsert a cache entry for every complete pair. Returns seeding stats."""
    seed_dir = seed_dir.resolve()
    if not seed_dir.is_dir():
        raise ValueError(f"Invalid seed directory: {seed_dir}")

    seeded = skipped = 0
    for original in iter_originals(seed_dir):
        match = ORIGINAL_RE.search(original.name)
        if not match:
            logger.warning("Skipping %s: invalid original filename format", original.name)
            skipped += 1
            continue
        restored = find_restored(seed_dir, match.group(1))
        if not restored:
            logger.warning(
                "Skipping %s: no matching restored file found for ID %s",
                original.name,
                match.group(1),
            )
            skipped += 1
            continue

        original_bytes = original.read_bytes()
        cache.store_restoration(
            image_fingerprint(original_bytes),
            to_data_url(original_bytes, mime_for(original)),
            to_data_url(restored.read_bytes(), mime_for(restored)),
        )
        logger.info("Seeded cache for %s -> %s", original.name, restored.name)
        seeded += 1

    return {"seeded": seeded, "skipped": skipped}


if __name__ == "__main__":
    configure_logging()
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else CACHE_SEED_DIR
    init_db()
    try:
        stats = seed(target)
    except ValueError as e:
        logger.error("Seeding failed: %s", e)
        sys.exit(1)
    logger.info("Cache seeding complete: %s", stats)
