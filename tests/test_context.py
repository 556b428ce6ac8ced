"""Tests for the operation context and logging setup."""

import logging

from scenario_import.context import EventLevel, LogEvent, OperationContext
from scenario_import.logging_config import configure_logging


def test_events_are_recorded_in_order():
    context = OperationContext()
    context.info("parse", "started", "a.csv")
    context.warning("parse", "version differs", "a.csv")
    context.error("commit", "locked", "b.csv")
    assert [e.level for e in context.events] == [EventLevel.INFO, EventLevel.WARNING, EventLevel.ERROR]
    assert context.has_errors
    assert [e.message for e in context.for_file("a.csv")] == ["started", "version differs"]
    assert str(context.errors[0]) == "ERROR commit [b.csv]: locked"


def test_event_without_file():
    assert str(LogEvent(EventLevel.INFO, "commit", "done")) == "INFO commit: done"


def test_events_are_mirrored_to_logging(caplog):
    context = OperationContext()
    with caplog.at_level(logging.WARNING, logger="scenario_import.context"):
        context.debug("parse", "noise")
        context.warning("pre_scan", "Skipped bad.csv")
    assert [r.getMessage() for r in caplog.records] == ["WARNING pre_scan: Skipped bad.csv"]


def test_configure_logging_is_idempotent():
    root = logging.getLogger()
    before = list(root.handlers)
    configure_logging()
    configure_logging()
    added = [h for h in root.handlers if h not in before]
    assert len(added) <= 1
    for h in added:
        root.removeHandler(h)
