import pytest

from mod_assign.core.exceptions import (
    LockedSubmission,
    NotFound,
    PermissionDenied,
    SubmissionsClosed,
    ValidationFailed,
)
from mod_assign.models.capability import CapabilityOverride
from mod_assign.models.gradebook import GradebookGrade
from mod_assign.models.log import LogEntry
from mod_assign.models.message import Message
from mod_assign.models.scale import Scale
from mod_assign.services import gradebook
from mod_assign.services.files import NewFile
from mod_assign.services.lifecycle import SubmissionLifecycle, SubmissionState
from mod_assign.services.store import get_grade, get_submission


def essay(text: str) -> dict:
    return {"onlinetext": {"text": text, "format": 1}}


@pytest.fixture()
def as_student(make_ctx, assignment, registry, seed):
    return SubmissionLifecycle(make_ctx(seed.student1_id), assignment, registry)


@pytest.fixture()
def as_teacher(make_ctx, assignment, registry, seed):
    return SubmissionLifecycle(make_ctx(seed.teacher_id), assignment, registry)


def test_get_or_create_returns_the_same_rows(as_student, seed):
    ctx, assignment = as_student.ctx, as_student.assignment

    assert get_submission(ctx, assignment) is None
    first = get_submission(ctx, assignment, create=True)
    second = get_submission(ctx, assignment, create=True)
    assert first.id == second.id
    assert first.status == "draft"

    g1 = get_grade(ctx, assignment, seed.student1_id, create=True)
    g2 = get_grade(ctx, assignment, seed.student1_id, create=True)
    assert g1.id == g2.id
    assert g1.grade == -1


def test_save_keeps_draft_and_updates_time(as_student, clock):
    clock.now = 1_500
    submission = as_student.save_submission(essay("<p>hello world</p>"))

    assert submission.status == "draft"
    assert submission.time_modified == 1_500
    assert submission.online_text == "<p>hello world</p>"
    assert as_student.state(submission.user_id).status is SubmissionState.DRAFT


def test_save_without_drafts_is_final(as_student, db):
    as_student.assignment.submission_drafts = False
    db.commit()

    submission = as_student.save_submission(essay("done"))
    assert submission.status == "submitted"
    # no drafts means the student may keep editing
    again = as_student.save_submission(essay("done again"))
    assert again.id == submission.id
    assert again.online_text == "done again"


def test_lock_blocks_save_and_unlock_allows_it(as_student, as_teacher, seed):
    as_teacher.lock(seed.student1_id)
    with pytest.raises(LockedSubmission):
        as_student.save_submission(essay("too late"))
    assert as_student.state(seed.student1_id).locked is True

    as_teacher.unlock(seed.student1_id)
    submission = as_student.save_submission(essay("fine now"))
    assert submission.online_text == "fine now"


def test_lock_blocks_submit_for_grading(as_student, as_teacher, seed):
    as_student.save_submission(essay("ready"))
    as_teacher.lock(seed.student1_id)

    with pytest.raises(LockedSubmission):
        as_student.submit_for_grading()
    assert as_student.state(seed.student1_id).status is SubmissionState.DRAFT


def test_lock_is_reported_before_a_closed_window(as_student, as_teacher, db, clock, seed):
    as_student.assignment.allow_submissions_from_date = clock.now + 100
    db.commit()
    as_teacher.lock(seed.student1_id)

    with pytest.raises(LockedSubmission):
        as_student.save_submission(essay("x"))


@pytest.mark.parametrize(
    "now, allowed",
    [(999, False), (1_000, True), (1_500, True), (2_000, True), (2_001, False)],
)
def test_submission_window(as_student, db, clock, now, allowed):
    a = as_student.assignment
    a.allow_submissions_from_date = 1_000
    a.due_date = 2_000
    a.prevent_late_submissions = True
    db.commit()

    clock.now = now
    if allowed:
        assert as_student.save_submission(essay("on time")).time_modified == now
    else:
        with pytest.raises(SubmissionsClosed):
            as_student.save_submission(essay("outside window"))


def test_late_submission_allowed_when_not_prevented(as_student, db, clock):
    a = as_student.assignment
    a.due_date = 2_000
    a.prevent_late_submissions = False
    db.commit()

    clock.now = 5_000
    assert as_student.window_open()
    assert as_student.save_submission(essay("late")).time_modified == 5_000


def test_submit_then_revert(as_student, as_teacher, clock, seed):
    as_student.save_submission(essay("draft"))
    clock.now = 1_100
    submitted = as_student.submit_for_grading()
    assert submitted.status == "submitted"

    with pytest.raises(SubmissionsClosed):
        as_student.save_submission(essay("edit after submit"))

    clock.now = 1_200
    reverted = as_teacher.revert_to_draft(seed.student1_id)
    assert reverted.status == "draft"
    # the submission time is not touched, the grade row records the action
    assert reverted.time_modified == 1_100
    grade = get_grade(as_teacher.ctx, as_teacher.assignment, seed.student1_id)
    assert grade.time_modified == 1_200

    assert as_student.save_submission(essay("edited")).online_text == "edited"


def test_revert_is_idempotent(as_student, as_teacher, seed):
    assert as_teacher.revert_to_draft(seed.student1_id) is None

    as_student.save_submission(essay("draft"))
    first = as_teacher.revert_to_draft(seed.student1_id)
    second = as_teacher.revert_to_draft(seed.student1_id)
    assert first.status == second.status == "draft"


def test_revert_of_a_submitted_submission_twice(as_student, as_teacher, clock, seed):
    as_student.save_submission(essay("draft"))
    as_student.submit_for_grading()

    clock.now = 1_200
    assert as_teacher.revert_to_draft(seed.student1_id).status == "draft"
    clock.now = 1_300
    again = as_teacher.revert_to_draft(seed.student1_id)

    assert again.status == "draft"
    grade = get_grade(as_teacher.ctx, as_teacher.assignment, seed.student1_id)
    assert grade.time_modified == 1_200


def test_submit_twice_is_a_no_op(as_student, clock):
    as_student.save_submission(essay("x"))
    first = as_student.submit_for_grading()
    clock.now = 9_999
    second = as_student.submit_for_grading()
    assert second.id == first.id
    assert second.time_modified == first.time_modified


def test_students_cannot_use_teacher_actions(as_student, seed):
    with pytest.raises(PermissionDenied):
        as_student.lock(seed.student2_id)
    with pytest.raises(PermissionDenied):
        as_student.revert_to_draft(seed.student2_id)
    with pytest.raises(PermissionDenied):
        as_student.save_grade(seed.student2_id, 50)


def test_teacher_cannot_submit(as_teacher):
    with pytest.raises(PermissionDenied):
        as_teacher.save_submission(essay("not mine"))


def test_teacher_actions_need_an_enrolled_user(as_teacher, seed):
    with pytest.raises(NotFound):
        as_teacher.lock(seed.outsider_id)


def test_module_override_denies_submit(as_student, db, seed):
    db.add(
        CapabilityOverride(
            role="student",
            course_id=seed.course_id,
            assignment_id=seed.assignment_id,
            capability="mod/assign:submit",
            allow=False,
        )
    )
    db.commit()
    with pytest.raises(PermissionDenied):
        as_student.save_submission(essay("x"))


def test_save_grade_updates_gradebook(as_teacher, db, clock, seed):
    clock.now = 3_000
    grade = as_teacher.save_grade(seed.student1_id, 85.5, feedback_text="<p>Good work</p>")

    assert grade.grade == 85.5
    assert grade.grader_id == seed.teacher_id
    assert grade.time_modified == 3_000
    assert as_teacher.display_grade(grade.grade) == "85.5 / 100"

    row = db.query(GradebookGrade).filter(GradebookGrade.user_id == seed.student1_id).one()
    assert row.final_grade == 85.5
    assert row.date_graded == 3_000


def test_save_grade_rejects_out_of_range(as_teacher, seed):
    with pytest.raises(ValidationFailed):
        as_teacher.save_grade(seed.student1_id, 101)
    with pytest.raises(ValidationFailed):
        as_teacher.save_grade(seed.student1_id, -5)


def test_save_grade_rejects_non_finite_values(as_teacher, seed):
    for value in (float("nan"), float("inf")):
        with pytest.raises(ValidationFailed):
            as_teacher.save_grade(seed.student1_id, value)
    assert get_grade(as_teacher.ctx, as_teacher.assignment, seed.student1_id) is None


def test_feedback_files_are_stored_with_the_grade(as_teacher, seed):
    notes = [NewFile(filename="notes.txt", content=b"good"), NewFile(filename="marked.pdf", content=b"%PDF")]
    grade = as_teacher.save_grade(seed.student1_id, 70, feedback_files=notes)
    assert grade.num_feedback_files == 2

    # existing grade row, area replaced
    grade = as_teacher.save_grade(seed.student1_id, 75, feedback_files=notes[:1])
    assert grade.num_feedback_files == 1


def test_duplicate_feedback_files_are_rejected(as_teacher, seed):
    twice = [NewFile(filename="notes.txt", content=b"a"), NewFile(filename="notes.txt", content=b"b")]
    with pytest.raises(ValidationFailed):
        as_teacher.save_grade(seed.student1_id, 70, feedback_files=twice)
    assert get_grade(as_teacher.ctx, as_teacher.assignment, seed.student1_id) is None


def test_scale_grades(as_teacher, db, seed):
    scale = Scale(name="Quality", scale="Poor, Fair, Good")
    db.add(scale)
    db.commit()
    as_teacher.assignment.grade = -scale.id
    db.commit()

    grade = as_teacher.save_grade(seed.student1_id, 3)
    assert as_teacher.display_grade(grade.grade) == "Good"
    with pytest.raises(ValidationFailed):
        as_teacher.save_grade(seed.student1_id, 4)


def test_ungraded_value_displays_dash(as_teacher, seed):
    grade = as_teacher.save_grade(seed.student1_id, None, feedback_text="see comments")
    assert grade.grade == -1
    assert as_teacher.display_grade(grade.grade) == "-"


def test_graders_are_notified_on_submit(as_student, db, seed):
    as_student.save_submission(essay("x"))
    as_student.submit_for_grading()

    messages = db.query(Message).all()
    assert [m.user_to_id for m in messages] == [seed.teacher_id]
    assert messages[0].user_from_id == seed.student1_id
    assert "Essay" in messages[0].subject


def test_no_notifications_when_disabled(as_student, db):
    as_student.assignment.send_notifications = False
    db.commit()
    as_student.save_submission(essay("x"))
    as_student.submit_for_grading()
    assert db.query(Message).count() == 0


def test_transitions_are_logged(as_student, as_teacher, db, seed):
    as_student.save_submission(essay("one two three"))
    as_teacher.lock(seed.student1_id)

    actions = [e.action for e in db.query(LogEntry).order_by(LogEntry.id).all()]
    assert actions == ["submit", "lock submission"]
    info = db.query(LogEntry).first().info
    assert "Online text: 3 word(s)." in info
    assert len(info) <= 255


def test_failed_gradebook_push_keeps_the_submission(as_student, monkeypatch, seed):
    def boom(*args):
        raise RuntimeError("gradebook down")

    monkeypatch.setattr(gradebook, "push_grade", boom)
    submission = as_student.save_submission(essay("still saved"))

    fresh = get_submission(as_student.ctx, as_student.assignment, seed.student1_id)
    assert fresh.id == submission.id
    assert fresh.online_text == "still saved"


def test_submission_status_for_student(as_student, as_teacher, seed):
    status = as_student.submission_status()
    assert status["status"] == "nosubmission"
    assert status["can_edit"] is True
    assert status["grade"] is None

    as_student.save_submission(essay("a b c d"))
    as_teacher.save_grade(seed.student1_id, 70, feedback_text="ok")
    status = as_student.submission_status()
    assert status["status"] == "draft"
    assert status["can_submit"] is True
    assert status["online_text_words"] == 4
    assert status["grade"] == "70 / 100"
    assert status["feedback"] == "ok"


def test_student_cannot_read_other_status(as_student, seed):
    with pytest.raises(PermissionDenied):
        as_student.submission_status(seed.student2_id)
