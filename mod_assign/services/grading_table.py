"""Paginated grading table: every user who can submit, left joined to their
submission and grade rows for one assignment.

The row count and the page content are built from the same filtered query so
pagination always agrees with what is displayed.
"""
import logging
import math
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Query

from mod_assign.core.config import DEFAULT_PER_PAGE, MAX_PER_PAGE
from mod_assign.core.exceptions import ValidationFailed
from mod_assign.core.permissions import CAP_GRADE, CAP_SUBMIT, CAP_VIEW, roles_with_capability
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.grade import Grade
from mod_assign.models.submission import STATUS_DRAFT, STATUS_SUBMITTED, Submission
from mod_assign.models.user import User
from mod_assign.services import gradebook
from mod_assign.services.formatting import shorten_text
from mod_assign.services.lifecycle import SubmissionLifecycle, SubmissionState
from mod_assign.services.preferences import (
    PREF_FILTER,
    PREF_PER_PAGE,
    get_user_preference,
    set_user_preference,
)

logger = logging.getLogger(__name__)

FILTER_NONE = ""
FILTER_SUBMITTED = "submitted"
FILTER_REQUIRE_GRADING = "require_grading"
FILTERS = (FILTER_NONE, FILTER_SUBMITTED, FILTER_REQUIRE_GRADING)

SORT_COLUMNS = {
    "lastname": User.last_name,
    "firstname": User.first_name,
    "email": User.email,
    "status": Submission.status,
    "grade": Grade.grade,
    "timesubmitted": Submission.time_modified,
    "timemarked": Grade.time_modified,
}
DEFAULT_SORT = "lastname"


@dataclass
class GradingRow:
    row_number: int
    user_id: int
    fullname: str
    email: str
    submission_id: int | None
    status: str
    grade: float | None
    grade_display: str
    final_grade: str
    locked: bool
    comment: str
    feedback: str
    num_files: int
    num_feedback_files: int
    time_submitted: int | None
    time_marked: int | None
    can_lock: bool
    can_unlock: bool
    can_revert: bool


class GradingTable:
    def __init__(
        self,
        lifecycle: SubmissionLifecycle,
        filter: str = FILTER_NONE,
        sort: str = DEFAULT_SORT,
        direction: str = "asc",
        per_page: int = DEFAULT_PER_PAGE,
    ):
        if filter not in FILTERS:
            raise ValidationFailed(f"Unknown filter {filter!r}")
        if sort not in SORT_COLUMNS:
            raise ValidationFailed(f"Cannot sort by {sort!r}")
        if direction not in ("asc", "desc"):
            raise ValidationFailed("direction must be 'asc' or 'desc'")
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValidationFailed(f"per_page must be between 1 and {MAX_PER_PAGE}")

        lifecycle.require(CAP_VIEW, CAP_GRADE)
        self.lifecycle = lifecycle
        self.db = lifecycle.db
        self.assignment = lifecycle.assignment
        self.filter = filter
        self.sort = sort
        self.direction = direction
        self.per_page = per_page

    def _filtered(self) -> Query:
        """Single source of the WHERE clause for both count and rows."""
        roles = roles_with_capability(self.db, CAP_SUBMIT, self.lifecycle.context)
        participants = select(Enrollment.user_id).where(
            Enrollment.course_id == self.assignment.course_id, Enrollment.role.in_(roles)
        )
        q = (
            self.db.query(User, Submission, Grade)
            .outerjoin(
                Submission,
                and_(Submission.user_id == User.id, Submission.assignment_id == self.assignment.id),
            )
            .outerjoin(
                Grade,
                and_(Grade.user_id == User.id, Grade.assignment_id == self.assignment.id),
            )
            .filter(User.id.in_(participants))
        )
        if self.filter == FILTER_SUBMITTED:
            q = q.filter(Submission.time_modified > 0)
        elif self.filter == FILTER_REQUIRE_GRADING:
            # a submission with no grade row at all also needs grading
            q = q.filter(
                or_(
                    Grade.time_modified < Submission.time_modified,
                    and_(Submission.id.is_not(None), Grade.id.is_(None)),
                )
            )
        return q

    def _ordered(self) -> Query:
        column = SORT_COLUMNS[self.sort]
        order = column.asc() if self.direction == "asc" else column.desc()
        return self._filtered().order_by(order, User.id.asc())

    def count(self) -> int:
        return self._filtered().order_by(None).count()

    def page_count(self) -> int:
        return max(1, math.ceil(self.count() / self.per_page))

    def rows(self, page: int = 0) -> Iterator[GradingRow]:
        start = page * self.per_page
        results = self._ordered().offset(start).limit(self.per_page).all()
        finals = gradebook.final_grades(self.db, self.assignment.id, [u.id for u, _, _ in results])
        for offset, (user, submission, grade) in enumerate(results):
            yield self._make_row(start + offset, user, submission, grade, finals.get(user.id))

    def user_id_for_row(self, row_number: int) -> int | None:
        """Re-runs the table query for one row; O(page) per call."""
        if row_number < 0:
            return None
        result = self._ordered().offset(row_number).limit(1).first()
        if result is None:
            return None
        return result[0].id

    def _make_row(self, row_number, user, submission, grade, final_grade) -> GradingRow:
        status = submission.status if submission else SubmissionState.NO_SUBMISSION.value
        locked = bool(grade and grade.locked)
        drafts = bool(self.assignment.submission_drafts)

        can_toggle_lock = submission is None or status == STATUS_DRAFT or not drafts
        return GradingRow(
            row_number=row_number,
            user_id=user.id,
            fullname=user.full_name,
            email=user.email,
            submission_id=submission.id if submission else None,
            status=status,
            grade=grade.grade if grade else None,
            grade_display=self.lifecycle.display_grade(grade.grade if grade else None),
            final_grade=self.lifecycle.display_grade(final_grade),
            locked=locked,
            comment=shorten_text(submission.comment_text) if submission else "",
            feedback=shorten_text(grade.feedback_text) if grade else "",
            num_files=submission.num_files if submission else 0,
            num_feedback_files=grade.num_feedback_files if grade else 0,
            time_submitted=submission.time_modified if submission and submission.time_modified else None,
            time_marked=grade.time_modified if grade and grade.time_modified else None,
            can_lock=can_toggle_lock and not locked,
            can_unlock=can_toggle_lock and locked,
            can_revert=status == STATUS_SUBMITTED and drafts,
        )


def grading_options(lifecycle: SubmissionLifecycle) -> tuple[int, str]:
    """Per-teacher page size and filter."""
    db, user_id = lifecycle.db, lifecycle.ctx.actor_id
    per_page = int(get_user_preference(db, user_id, PREF_PER_PAGE, str(DEFAULT_PER_PAGE)))
    filter = get_user_preference(db, user_id, PREF_FILTER, FILTER_NONE)
    return per_page, filter


def save_grading_options(lifecycle: SubmissionLifecycle, per_page: int, filter: str) -> None:
    lifecycle.require(CAP_VIEW, CAP_GRADE)
    if not 1 <= per_page <= MAX_PER_PAGE:
        raise ValidationFailed(f"per_page must be between 1 and {MAX_PER_PAGE}")
    if filter not in FILTERS:
        raise ValidationFailed(f"Unknown filter {filter!r}")
    set_user_preference(lifecycle.db, lifecycle.ctx.actor_id, PREF_PER_PAGE, per_page)
    set_user_preference(lifecycle.db, lifecycle.ctx.actor_id, PREF_FILTER, filter)


def grading_summary(lifecycle: SubmissionLifecycle) -> dict:
    lifecycle.require(CAP_VIEW, CAP_GRADE)
    db, assignment = lifecycle.db, lifecycle.assignment

    roles = roles_with_capability(db, CAP_SUBMIT, lifecycle.context)
    participants = (
        db.query(func.count(Enrollment.id))
        .filter(Enrollment.course_id == assignment.course_id, Enrollment.role.in_(roles))
        .scalar()
    ) or 0

    def count_status(status: str) -> int:
        return (
            db.query(func.count(Submission.id))
            .filter(Submission.assignment_id == assignment.id, Submission.status == status)
            .scalar()
        ) or 0

    now = lifecycle.ctx.now()
    return {
        "assignment_id": assignment.id,
        "participants": int(participants),
        "drafts": count_status(STATUS_DRAFT) if assignment.submission_drafts else None,
        "submitted": count_status(STATUS_SUBMITTED),
        "due_date": assignment.due_date or None,
        "time_remaining": (assignment.due_date - now) if assignment.due_date else None,
    }
