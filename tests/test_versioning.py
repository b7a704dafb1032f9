from datetime import datetime, timedelta, timezone

import pytest

from classroom.core.errors import ConcurrentUpdate, PolicyViolation
from classroom.db.session import SessionLocal
from classroom.models.assignment import Assignment
from classroom.models.submission import FeedbackEntry, Submission, SubmissionVersion
from classroom.models.user import User
from classroom.schemas.submission import SubmissionHistory
from classroom.services import lifecycle
from classroom.services.versioning import ContentKind, SubmissionContent


def _load(db, seed_data):
    student = db.get(User, seed_data["student"])
    teacher = db.get(User, seed_data["teacher"])
    assignment = db.get(Assignment, seed_data["assignment"])
    return student, teacher, assignment


def test_content_kind():
    ref = {"name": "a.txt", "size": 1, "content_type": "text/plain", "url": "/a.txt"}

    assert SubmissionContent(text="hi").kind == ContentKind.text
    assert SubmissionContent(files=(ref,)).kind == ContentKind.file_upload
    assert SubmissionContent(text="hi", files=(ref,)).kind == ContentKind.both
    assert SubmissionContent(text="  ").kind == ContentKind.empty

    assert SubmissionContent(text="hi", files=(ref,)).satisfies("text")
    assert not SubmissionContent(text="hi").satisfies("both")


def test_version_count_matches_history(db, seed_data):
    student, _, assignment = _load(db, seed_data)

    sub = lifecycle.submit(db, assignment, student, SubmissionContent(text="v1"))
    for n in (2, 3):
        sub = lifecycle.resubmit(db, sub, student, SubmissionContent(text=f"v{n}"))

    assert sub.current_version == len(sub.versions) == 3
    assert [v.version for v in sub.versions] == [1, 2, 3]


def test_rejected_resubmit_changes_nothing(db, seed_data):
    student, _, assignment = _load(db, seed_data)
    assignment.max_resubmissions = 1
    db.commit()

    sub = lifecycle.submit(db, assignment, student, SubmissionContent(text="only"))

    with pytest.raises(PolicyViolation) as exc:
        lifecycle.resubmit(db, sub, student, SubmissionContent(text="nope"))
    assert exc.value.rule == "max_resubmissions_reached"

    db.expire_all()
    stored = db.get(Submission, sub.id)
    assert stored.current_version == 1
    assert stored.text_submission == "only"
    assert len(stored.versions) == 1


def test_late_first_submit_uses_given_clock(db, seed_data):
    student, _, assignment = _load(db, seed_data)
    after_due = assignment.due_date.replace(tzinfo=timezone.utc) + timedelta(days=2)

    with pytest.raises(PolicyViolation) as exc:
        lifecycle.submit(db, assignment, student, SubmissionContent(text="x"), now=after_due)
    assert exc.value.rule == "late_submission_not_allowed"
    assert db.query(Submission).count() == 0


def test_grade_on_superseded_version_is_rejected(seed_data):
    student_db = SessionLocal()
    teacher_db = SessionLocal()
    try:
        student, _, assignment = _load(student_db, seed_data)
        sub = lifecycle.submit(student_db, assignment, student, SubmissionContent(text="v1"))

        # teacher opens version 1 ...
        teacher = teacher_db.get(User, seed_data["teacher"])
        stale = teacher_db.get(Submission, sub.id)
        assert stale.assignment.max_points == 100

        # ... the student resubmits meanwhile ...
        lifecycle.resubmit(student_db, sub, student, SubmissionContent(text="v2"))

        # ... and the grade for version 1 must not land on version 2
        with pytest.raises(ConcurrentUpdate):
            lifecycle.grade(teacher_db, stale, teacher, 75, "for v1")
    finally:
        student_db.close()
        teacher_db.close()

    check = SessionLocal()
    try:
        stored = check.get(Submission, sub.id)
        assert stored.current_version == 2
        assert stored.status == "resubmitted"
        assert stored.grade is None
        assert check.query(FeedbackEntry).count() == 0
    finally:
        check.close()


def test_concurrent_resubmits_do_not_share_a_version(seed_data):
    first = SessionLocal()
    second = SessionLocal()
    try:
        student, _, assignment = _load(first, seed_data)
        sub = lifecycle.submit(first, assignment, student, SubmissionContent(text="v1"))

        other_student = second.get(User, seed_data["student"])
        other_copy = second.get(Submission, sub.id)
        assert other_copy.current_version == 1
        assert other_copy.assignment is not None

        lifecycle.resubmit(first, sub, student, SubmissionContent(text="from tab A"))
        with pytest.raises(ConcurrentUpdate):
            lifecycle.resubmit(second, other_copy, other_student, SubmissionContent(text="from tab B"))
    finally:
        first.close()
        second.close()

    check = SessionLocal()
    try:
        stored = check.get(Submission, sub.id)
        assert stored.current_version == 2
        assert [v.text_submission for v in stored.versions] == ["v1", "from tab A"]
    finally:
        check.close()


def test_history_rows_are_append_only(db, seed_data):
    student, _, assignment = _load(db, seed_data)
    sub = lifecycle.submit(db, assignment, student, SubmissionContent(text="original"))

    entry = sub.versions[0]
    entry.text_submission = "rewritten"
    with pytest.raises(ValueError):
        db.commit()
    db.rollback()

    assert db.query(SubmissionVersion).one().text_submission == "original"


def test_history_round_trip(db, seed_data):
    student, teacher, assignment = _load(db, seed_data)
    t0 = datetime.now(timezone.utc)

    sub = lifecycle.submit(db, assignment, student, SubmissionContent(text="v1"), comments="first", now=t0)
    lifecycle.grade(db, sub, teacher, 55, "rework section 2", now=t0 + timedelta(minutes=5))
    lifecycle.resubmit(db, sub, student, SubmissionContent(text="v2"), comments="reworked", now=t0 + timedelta(minutes=10))
    lifecycle.grade(db, sub, teacher, 80, "better", now=t0 + timedelta(minutes=15))
    lifecycle.add_feedback(db, sub, teacher, "one more note", now=t0 + timedelta(minutes=20))

    snapshot = SubmissionHistory.model_validate(sub)
    assert len(snapshot.versions) == 2
    assert len(snapshot.feedback_history) == 3

    reloaded = SubmissionHistory.model_validate_json(snapshot.model_dump_json())
    assert reloaded == snapshot
    assert [v.comments for v in reloaded.versions] == ["first", "reworked"]
    assert [(f.version, f.grade, f.feedback) for f in reloaded.feedback_history] == [
        (1, 55, "rework section 2"),
        (2, 80, "better"),
        (2, 80, "one more note"),
    ]
