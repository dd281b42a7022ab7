"""Pipeline settings, threshold parsing and profile files."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from sheetprep import CAR_NAME_LABEL, COMMON_NAME_LABEL, KEY_NAME_LABEL


def _to_unit_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{field_name} must be a number")
    result = float(value)
    if math.isnan(result) or math.isinf(result) or not 0.0 <= result <= 1.0:
        raise ValueError(f"{field_name} must be between 0.0 and 1.0, got: {value}")
    return result


def _to_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field_name} must be an integer")
    if value < 1:
        raise ValueError(f"{field_name} must be >= 1")
    return value


@dataclass(frozen=True)
class PipelineConfig:
    """Knobs for one processing run. Shared read-only across sheets."""

    column_threshold: float = 0.1
    key_label: str = KEY_NAME_LABEL
    always_fill_column: str = CAR_NAME_LABEL
    until_next_column: str = COMMON_NAME_LABEL
    min_header_cells: int = 3
    data_row_min_cells: int = 4
    dedup_fill_ratio: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "column_threshold", _to_unit_float(self.column_threshold, "column_threshold")
        )
        object.__setattr__(
            self, "dedup_fill_ratio", _to_unit_float(self.dedup_fill_ratio, "dedup_fill_ratio")
        )
        object.__setattr__(
            self, "min_header_cells", _to_positive_int(self.min_header_cells, "min_header_cells")
        )
        object.__setattr__(
            self,
            "data_row_min_cells",
            _to_positive_int(self.data_row_min_cells, "data_row_min_cells"),
        )
        if not isinstance(self.key_label, str) or not self.key_label.strip():
            raise ValueError("key_label must be a non-empty string")
        for name in ("always_fill_column", "until_next_column"):
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a string")

    def with_overrides(self, **overrides: Any) -> PipelineConfig:
        present = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **present) if present else self

    @classmethod
    def from_profile(cls, profile: Path | None, **overrides: Any) -> PipelineConfig:
        """Build a config from *profile* lines, then apply non-None *overrides*."""
        base = cls(**load_profile(profile)) if profile else cls()
        return base.with_overrides(**overrides)


def parse_threshold(text: str) -> float:
    """Parse a column threshold such as ``"0.1"`` (10% minimum fill)."""
    try:
        value = float(text)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"column_threshold must be a number between 0.0 and 1.0: {text!r}"
        ) from exc
    return _to_unit_float(value, "column_threshold")


_FLOAT_KEYS = {"column_threshold", "dedup_fill_ratio"}
_INT_KEYS = {"min_header_cells", "data_row_min_cells"}


def _coerce_profile_value(key: str, raw: str) -> Any:
    if key == "column_threshold":
        return parse_threshold(raw)
    if key in _FLOAT_KEYS:
        try:
            return float(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if key in _INT_KEYS:
        try:
            return int(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be an integer, got {raw!r}") from exc
    return raw


def load_profile(profile: Path | None) -> dict[str, Any]:
    """Return config overrides from a ``key=value`` profile file."""
    if not profile:
        return {}
    profile = Path(profile)
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like column_threshold=0.1)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    known = {f.name for f in fields(PipelineConfig)}
    overrides: dict[str, Any] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            raise ValueError(f"Invalid profile line {lineno}: {stripped!r} (expected key=value)")
        key, raw = (part.strip() for part in stripped.split("=", 1))
        if key not in known:
            raise ValueError(f"Unknown profile key {key!r} on line {lineno}")
        overrides[key] = _coerce_profile_value(key, raw)
    return overrides
