import pytest

from mod_assign.core.exceptions import ValidationFailed
from mod_assign.models.assignment import Assignment
from mod_assign.models.capability import CapabilityOverride
from mod_assign.models.course import Course
from mod_assign.services.external import get_assignments, get_submissions
from mod_assign.services.lifecycle import SubmissionLifecycle


def warning_codes(result):
    return [(w.item, w.itemid, w.warningcode) for w in result.warnings]


def save_as(make_ctx, assignment, registry, user_id, text):
    SubmissionLifecycle(make_ctx(user_id), assignment, registry).save_submission(
        {"onlinetext": {"text": text, "format": 1}}
    )


def test_student_sees_enrolled_courses(make_ctx, seed):
    result = get_assignments(make_ctx(seed.student1_id))

    assert result.warnings == []
    assert [c["id"] for c in result.courses] == [seed.course_id]
    course = result.courses[0]
    assert course["shortname"] == "TEST101"
    assert [a["id"] for a in course["assignments"]] == [seed.assignment_id]
    assert course["assignments"][0]["submissiondrafts"] == 1


def test_assignment_configs_are_returned(make_ctx, assignment, registry, db, seed):
    registry.get("file").save_settings(db, assignment, {"enabled": True, "maxfilesubmissions": 3})
    db.commit()

    result = get_assignments(make_ctx(seed.student1_id), [seed.course_id])
    configs = {c["name"]: c["value"] for c in result.courses[0]["assignments"][0]["configs"]}
    assert configs == {"enabled": "1", "maxfilesubmissions": "3"}


def test_requested_course_not_enrolled(make_ctx, db, seed):
    other = Course(fullname="Other", shortname="OTHER", time_modified=1)
    db.add(other)
    db.commit()

    result = get_assignments(make_ctx(seed.outsider_id), [seed.course_id, other.id])
    assert result.courses == []
    assert warning_codes(result) == [
        ("course", seed.course_id, "2"),
        ("course", other.id, "2"),
    ]


def test_course_without_viewparticipants(make_ctx, db, seed):
    db.add(
        CapabilityOverride(
            role="student",
            course_id=seed.course_id,
            capability="moodle/course:viewparticipants",
            allow=False,
        )
    )
    db.commit()

    result = get_assignments(make_ctx(seed.student1_id), [seed.course_id])
    assert result.courses == []
    assert warning_codes(result) == [("course", seed.course_id, "1")]


def test_extra_capability_filter(make_ctx, seed):
    result = get_assignments(make_ctx(seed.student1_id), [seed.course_id], ["mod/assign:grade"])
    assert result.courses == []
    assert warning_codes(result) == [("course", seed.course_id, "2")]

    result = get_assignments(make_ctx(seed.teacher_id), [seed.course_id], ["mod/assign:grade"])
    assert [c["id"] for c in result.courses] == [seed.course_id]


def test_hidden_module_is_reported(make_ctx, db, seed):
    db.add(
        CapabilityOverride(
            role="student",
            course_id=seed.course_id,
            assignment_id=seed.assignment_id,
            capability="mod/assign:view",
            allow=False,
        )
    )
    db.commit()

    result = get_assignments(make_ctx(seed.student1_id))
    assert result.courses[0]["assignments"] == []
    assert warning_codes(result) == [("module", seed.assignment_id, "1")]


def test_invalid_capability_name(make_ctx, seed):
    with pytest.raises(ValidationFailed):
        get_assignments(make_ctx(seed.student1_id), [], ["not a capability"])


def test_submissions_time_window(make_ctx, assignment, registry, db, clock, seed):
    clock.now = 150
    save_as(make_ctx, assignment, registry, seed.student1_id, "<p>early bird</p>")
    clock.now = 250
    save_as(make_ctx, assignment, registry, seed.student2_id, "late one")

    second = Assignment(course_id=seed.course_id, name="Quiz", time_modified=1)
    db.add(second)
    db.commit()
    clock.now = 260
    save_as(make_ctx, second, registry, seed.student1_id, "outside")

    result = get_submissions(make_ctx(seed.teacher_id), [assignment.id, second.id], since=100, before=200)

    assert len(result.assignments) == 1
    entry = result.assignments[0]
    assert entry["assignmentid"] == assignment.id
    assert [s["userid"] for s in entry["submissions"]] == [seed.student1_id]
    assert entry["submissions"][0]["onlinetexts"] == [{"text": "early bird", "format": 1, "wordcount": 2}]
    assert warning_codes(result) == [("assignment", second.id, "3")]


def test_submissions_since_only(make_ctx, assignment, registry, clock, seed):
    clock.now = 150
    save_as(make_ctx, assignment, registry, seed.student1_id, "a")
    clock.now = 250
    save_as(make_ctx, assignment, registry, seed.student2_id, "b")

    result = get_submissions(make_ctx(seed.teacher_id), [assignment.id], since=200)
    assert [s["userid"] for s in result.assignments[0]["submissions"]] == [seed.student2_id]


def test_submissions_status_filter(make_ctx, assignment, registry, seed):
    save_as(make_ctx, assignment, registry, seed.student1_id, "a")
    save_as(make_ctx, assignment, registry, seed.student2_id, "b")
    SubmissionLifecycle(make_ctx(seed.student2_id), assignment, registry).submit_for_grading()

    result = get_submissions(make_ctx(seed.teacher_id), [assignment.id], status="submitted")
    submissions = result.assignments[0]["submissions"]
    assert [(s["userid"], s["status"]) for s in submissions] == [(seed.student2_id, "submitted")]


def test_submissions_need_grade_capability(make_ctx, assignment, registry, seed):
    save_as(make_ctx, assignment, registry, seed.student1_id, "a")

    result = get_submissions(make_ctx(seed.student1_id), [assignment.id, 9999])
    assert result.assignments == []
    assert warning_codes(result) == [
        ("assignment", assignment.id, "1"),
        ("assignment", 9999, "1"),
    ]


def test_submissions_argument_checks(make_ctx, seed):
    ctx = make_ctx(seed.teacher_id)
    with pytest.raises(ValidationFailed):
        get_submissions(ctx, [])
    with pytest.raises(ValidationFailed):
        get_submissions(ctx, [seed.assignment_id], status="graded")
    with pytest.raises(ValidationFailed):
        get_submissions(ctx, [seed.assignment_id], since=300, before=200)
