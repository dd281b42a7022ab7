"""Shared helpers — file digests, timestamps, output naming."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path


def sha256_file(path: Path, chunk_size: int = 65536) -> str:
    """Return the hex SHA-256 digest of *path*."""
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_output_path(out_dir: Path, input_file: Path, suffix: str) -> Path:
    """``out/<input stem>_clean<suffix>``, e.g. ``out/nissan_clean.xlsx``."""
    return Path(out_dir) / f"{Path(input_file).stem}_clean{suffix}"
