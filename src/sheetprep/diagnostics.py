"""Structured diagnostics side-channel for the processing stages.

Stages never interleave their decisions with output formatting; they record
events here and the caller decides how to surface them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

Level = Literal["debug", "info", "warning"]

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
}


@dataclass(frozen=True)
class Event:
    level: Level
    code: str
    message: str
    sheet: str = ""
    column: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "sheet": self.sheet,
            "column": self.column,
        }


@dataclass
class Diagnostics:
    """Accumulates events for one sheet (or one workbook-level step)."""

    sheet: str = ""
    events: list[Event] = field(default_factory=list)

    def record(
        self, level: Level, code: str, message: str, *, column: int | None = None
    ) -> Event:
        event = Event(level=level, code=code, message=message, sheet=self.sheet, column=column)
        self.events.append(event)
        if self.sheet:
            logger.log(_LOG_LEVELS[level], "Sheet '%s': %s", self.sheet, message)
        else:
            logger.log(_LOG_LEVELS[level], "%s", message)
        return event

    def debug(self, code: str, message: str, *, column: int | None = None) -> Event:
        return self.record("debug", code, message, column=column)

    def info(self, code: str, message: str, *, column: int | None = None) -> Event:
        return self.record("info", code, message, column=column)

    def warn(self, code: str, message: str, *, column: int | None = None) -> Event:
        return self.record("warning", code, message, column=column)

    @property
    def warnings(self) -> list[str]:
        return [e.message for e in self.events if e.level == "warning"]

    def codes(self) -> list[str]:
        return [e.code for e in self.events]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.events if e.level != "debug"]


def ensure(diagnostics: Diagnostics | None, sheet: str = "") -> Diagnostics:
    """Return *diagnostics*, or a throwaway collector when none was given."""
    return diagnostics if diagnostics is not None else Diagnostics(sheet=sheet)
