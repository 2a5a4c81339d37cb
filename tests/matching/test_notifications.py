from __future__ import annotations

from datetime import datetime, timezone

from drivematch.matching.contracts import Assignment, Matching
from drivematch.matching.notifications import (
    ApplyNotificationEffect,
    DeliveryFailure,
    InstructorNotifier,
    fan_out,
)
from tests.factories import CTX, RecordingDispatcher, RecordingStudentRecords, StudentBook, make_student

NOW = datetime(2024, 3, 20, 9, 0, tzinfo=timezone.utc)


def _matching(*pairs: tuple[str, str]) -> Matching:
    return Matching(
        id="m-1",
        name="batch",
        license_types=("B",),
        created_at=NOW,
        created_by="admin",
        assignments=[
            Assignment(student_id=sid, instructor_id=iid, license_type="B", matched_at=NOW)
            for sid, iid in pairs
        ],
    )


def test_notifier_substitutes_name_and_falls_back_to_id() -> None:
    dispatcher = RecordingDispatcher()
    notifier = InstructorNotifier(dispatcher, StudentBook([make_student("s-1", full_name="Nika Ahmadi")]))

    report = notifier.notify(CTX, "i-1", _matching(("s-1", "i-1"), ("s-9", "i-1"), ("s-2", "i-2")), "Hi", "Hello {name}!")

    assert report.attempted == 2
    assert report.delivered == 2
    assert dispatcher.sent == [("s-1", "Hi", "Hello Nika Ahmadi!"), ("s-9", "Hi", "Hello s-9!")]


def test_notifier_reports_false_and_raised_deliveries(caplog) -> None:
    dispatcher = RecordingDispatcher(fail_for={"s-1"}, raise_for={"s-2"})
    notifier = InstructorNotifier(dispatcher)

    with caplog.at_level("WARNING"):
        report = notifier.notify(CTX, "i-1", _matching(("s-1", "i-1"), ("s-2", "i-1")), "Hi", "msg")

    assert report.delivered == 0
    errors = {item.student_id: item.error for item in report.failures}
    assert errors["s-1"] == "dispatcher reported failure"
    assert errors["s-2"].startswith("ConnectionError")
    assert sum(1 for item in caplog.records if item.getMessage() == "notification_failed") == 2


def test_apply_effect_continues_after_record_failure() -> None:
    dispatcher = RecordingDispatcher()
    records = RecordingStudentRecords(fail_for={"s-1"})
    effect = ApplyNotificationEffect(
        notifier=InstructorNotifier(dispatcher),
        title="Assigned",
        message="Welcome {name}",
        student_records=records,
    )

    failures = effect(CTX, "i-1", _matching(("s-1", "i-1"), ("s-2", "i-1")))

    assert [item.student_id for item in failures] == ["s-1"]
    assert records.written == {"s-2": "i-1"}
    assert len(dispatcher.sent) == 2


def test_fan_out_runs_once_per_instructor() -> None:
    seen: list[str] = []

    def effect(ctx, instructor_id, matching):
        seen.append(instructor_id)
        if instructor_id == "i-2":
            raise TimeoutError("slow gateway")
        return [DeliveryFailure(instructor_id, "s-1", "bounced")] if instructor_id == "i-1" else []

    failures = fan_out(
        CTX,
        _matching(("s-1", "i-1"), ("s-2", "i-2"), ("s-3", "i-2"), ("s-4", "i-3")),
        effect,
        max_workers=3,
    )

    assert sorted(seen) == ["i-1", "i-2", "i-3"]
    assert {(item.instructor_id, item.student_id) for item in failures} == {("i-1", "s-1"), ("i-2", None)}


def test_fan_out_with_no_assignments() -> None:
    assert fan_out(CTX, _matching(), lambda ctx, iid, m: []) == []
