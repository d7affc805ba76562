"""Tests for ActivityLogService."""

from datetime import timedelta

from conftest import T0
from valta.models.activity import ActivityOutcome, ActivityStatus, LogAction
from valta.services.log_service import ActivityLogService


def test_pending_activity_only_has_creation(make_activity):
    entries = ActivityLogService.generate_log_entries([make_activity()])

    assert [e.action for e in entries] == [LogAction.CREATED]
    assert entries[0].performed_by == "Manager"


def test_awaiting_approval(make_activity):
    activity = make_activity(
        status=ActivityStatus.MANAGER_PENDING,
        outcome=ActivityOutcome.AHEAD,
        started_at=T0 + timedelta(hours=1),
        completed_at=T0 + timedelta(hours=2),
        manager_email="boss@example.com",
    )

    entries = ActivityLogService.generate_log_entries([activity])

    assert [(e.action, e.timestamp) for e in entries] == [
        (LogAction.COMPLETION_REQUESTED, T0 + timedelta(hours=2)),
        (LogAction.STARTED, T0 + timedelta(hours=1)),
        (LogAction.CREATED, T0),
    ]
    assert entries[0].performed_by == "Vlad Alexa"
    assert entries[-1].performed_by == "boss@example.com"


def test_completed_and_canceled_sorted_newest_first(make_activity):
    done = make_activity(
        name="done",
        status=ActivityStatus.COMPLETED,
        outcome=ActivityOutcome.JIT,
        started_at=T0 + timedelta(hours=1),
        completed_at=T0 + timedelta(hours=4),
    )
    dropped = make_activity(
        name="dropped",
        status=ActivityStatus.CANCELED,
        created_at=T0 + timedelta(hours=5),
    )

    entries = ActivityLogService.generate_log_entries([done, dropped])

    assert [(e.activity.name, e.action) for e in entries] == [
        ("dropped", LogAction.CREATED),
        ("dropped", LogAction.CANCELED),
        ("done", LogAction.COMPLETED),
        ("done", LogAction.STARTED),
        ("done", LogAction.CREATED),
    ]
