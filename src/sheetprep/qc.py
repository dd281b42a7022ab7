"""QC report persistence."""

from __future__ import annotations

from pathlib import Path

from sheetprep.io import write_json
from sheetprep.models import RunReport


def write_qc_report(out_dir: Path, report: RunReport) -> Path:
    """Write ``qc_report.json`` into *out_dir* and return the path."""
    return write_json(Path(out_dir) / "qc_report.json", report.to_dict())
