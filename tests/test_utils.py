from __future__ import annotations

import hashlib
from datetime import datetime
from pathlib import Path

from sheetprep.utils import clean_output_path, sha256_file, utcnow_iso


def test_sha256_file_matches_hashlib(tmp_path: Path) -> None:
    path = tmp_path / "data.bin"
    payload = b"x" * 200_000
    path.write_bytes(payload)

    assert sha256_file(path, chunk_size=4096) == hashlib.sha256(payload).hexdigest()


def test_utcnow_iso_is_timezone_aware() -> None:
    assert datetime.fromisoformat(utcnow_iso()).utcoffset() is not None


def test_clean_output_path_uses_input_stem(tmp_path: Path) -> None:
    assert clean_output_path(tmp_path, Path("in/nissan.xls"), ".xlsx") == tmp_path / "nissan_clean.xlsx"
