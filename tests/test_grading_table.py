import pytest

from mod_assign.core.exceptions import PermissionDenied, ValidationFailed
from mod_assign.services.grading_table import (
    GradingTable,
    grading_options,
    grading_summary,
    save_grading_options,
)
from mod_assign.services.lifecycle import SubmissionLifecycle


def lifecycle_for(make_ctx, assignment, registry, user_id):
    return SubmissionLifecycle(make_ctx(user_id), assignment, registry)


@pytest.fixture()
def teacher(make_ctx, assignment, registry, seed):
    return lifecycle_for(make_ctx, assignment, registry, seed.teacher_id)


def submit_as(make_ctx, assignment, registry, user_id, text="answer"):
    lifecycle = lifecycle_for(make_ctx, assignment, registry, user_id)
    return lifecycle.save_submission({"onlinetext": {"text": text, "format": 1}})


def test_all_participants_are_listed(teacher, seed):
    table = GradingTable(teacher)
    rows = list(table.rows())

    # only users who can submit, teacher excluded
    assert [r.user_id for r in rows] == [seed.student1_id, seed.student2_id]
    assert table.count() == 2
    assert all(r.status == "nosubmission" for r in rows)
    assert rows[0].grade_display == "-"


def test_submitted_filter(teacher, make_ctx, assignment, registry, seed):
    submit_as(make_ctx, assignment, registry, seed.student2_id)

    table = GradingTable(teacher, filter="submitted")
    rows = list(table.rows())
    assert [r.user_id for r in rows] == [seed.student2_id]
    assert table.count() == 1


def test_require_grading_filter(teacher, make_ctx, assignment, registry, db, clock, seed):
    assignment.submission_drafts = False
    db.commit()

    clock.now = 100
    submit_as(make_ctx, assignment, registry, seed.student1_id)
    clock.now = 200
    teacher.save_grade(seed.student1_id, 60)

    table = GradingTable(teacher, filter="require_grading")
    assert table.count() == 0

    # ungraded submission
    clock.now = 300
    submit_as(make_ctx, assignment, registry, seed.student2_id)
    assert [r.user_id for r in table.rows()] == [seed.student2_id]

    # edited after grading
    clock.now = 400
    submit_as(make_ctx, assignment, registry, seed.student1_id, text="improved")
    assert table.count() == 2
    assert {r.user_id for r in table.rows()} == {seed.student1_id, seed.student2_id}


def test_count_matches_paged_rows(teacher, make_ctx, assignment, registry, seed):
    submit_as(make_ctx, assignment, registry, seed.student1_id)

    for filter in ("", "submitted", "require_grading"):
        table = GradingTable(teacher, filter=filter, per_page=1)
        seen = []
        for page in range(table.page_count()):
            seen.extend(r.user_id for r in table.rows(page))
        assert len(seen) == table.count()


def test_row_numbers_and_user_for_row(teacher, seed):
    table = GradingTable(teacher, per_page=1)
    assert [r.row_number for r in table.rows(1)] == [1]
    assert table.user_id_for_row(0) == seed.student1_id
    assert table.user_id_for_row(1) == seed.student2_id
    assert table.user_id_for_row(2) is None
    assert table.user_id_for_row(-1) is None

    reversed_table = GradingTable(teacher, sort="lastname", direction="desc")
    assert reversed_table.user_id_for_row(0) == seed.student2_id


def test_sort_by_grade(teacher, seed):
    teacher.save_grade(seed.student1_id, 90)
    teacher.save_grade(seed.student2_id, 40)

    table = GradingTable(teacher, sort="grade")
    rows = list(table.rows())
    assert [r.user_id for r in rows] == [seed.student2_id, seed.student1_id]
    assert rows[1].grade_display == "90 / 100"
    assert rows[1].final_grade == "90 / 100"


def test_row_actions(teacher, make_ctx, assignment, registry, seed):
    submit_as(make_ctx, assignment, registry, seed.student1_id)
    lifecycle_for(make_ctx, assignment, registry, seed.student1_id).submit_for_grading()
    teacher.lock(seed.student2_id)

    rows = {r.user_id: r for r in GradingTable(teacher).rows()}
    assert rows[seed.student1_id].can_revert is True
    assert rows[seed.student1_id].can_lock is False
    assert rows[seed.student2_id].locked is True
    assert rows[seed.student2_id].can_unlock is True


def test_students_cannot_see_the_table(make_ctx, assignment, registry, seed):
    student = lifecycle_for(make_ctx, assignment, registry, seed.student1_id)
    with pytest.raises(PermissionDenied):
        GradingTable(student)


def test_invalid_arguments(teacher):
    with pytest.raises(ValidationFailed):
        GradingTable(teacher, filter="everything")
    with pytest.raises(ValidationFailed):
        GradingTable(teacher, sort="password")
    with pytest.raises(ValidationFailed):
        GradingTable(teacher, per_page=0)


def test_grading_options_are_saved_per_user(teacher):
    assert grading_options(teacher) == (10, "")
    save_grading_options(teacher, 25, "require_grading")
    assert grading_options(teacher) == (25, "require_grading")


def test_grading_summary(teacher, make_ctx, assignment, registry, db, clock, seed):
    assignment.due_date = clock.now + 3_600
    db.commit()
    submit_as(make_ctx, assignment, registry, seed.student1_id)

    summary = grading_summary(teacher)
    assert summary["participants"] == 2
    assert summary["drafts"] == 1
    assert summary["submitted"] == 0
    assert summary["time_remaining"] == 3_600
