from __future__ import annotations

import logging

import pytest

from sheetprep.diagnostics import Diagnostics, ensure


def test_record_collects_events_with_sheet_and_column() -> None:
    diag = Diagnostics(sheet="Spec")

    diag.info("column-dropped-fill", "removing column 3", column=3)
    diag.warn("no-header-label", "column 5 has no label", column=5)
    diag.debug("fill-down", "details")

    assert diag.codes() == ["column-dropped-fill", "no-header-label", "fill-down"]
    assert diag.warnings == ["column 5 has no label"]
    assert diag.events[0].sheet == "Spec"
    assert diag.events[0].column == 3


def test_to_dicts_excludes_debug_events() -> None:
    diag = Diagnostics(sheet="S")
    diag.debug("a", "hidden")
    diag.info("b", "shown")

    assert [d["code"] for d in diag.to_dicts()] == ["b"]


def test_events_are_mirrored_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    diag = Diagnostics(sheet="Spec")

    with caplog.at_level(logging.WARNING, logger="sheetprep.diagnostics"):
        diag.warn("x", "something odd")

    assert "Sheet 'Spec': something odd" in caplog.text


def test_ensure_returns_given_or_fresh_collector() -> None:
    diag = Diagnostics()

    assert ensure(diag) is diag
    fresh = ensure(None, "S")
    assert fresh.sheet == "S"
    assert fresh.events == []
