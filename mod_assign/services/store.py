"""Get-or-create access to the per (assignment, user) submission and grade rows.

Uniqueness under concurrent first-time creation is enforced by the unique
constraints on both tables; losing the insert race means re-reading the winner.
"""
import logging

from sqlalchemy.exc import IntegrityError

from mod_assign.core.context import RequestContext
from mod_assign.models.assignment import Assignment
from mod_assign.models.grade import UNGRADED, Grade
from mod_assign.models.submission import STATUS_DRAFT, STATUS_SUBMITTED, Submission

logger = logging.getLogger(__name__)


def _find_submission(ctx: RequestContext, assignment_id: int, user_id: int) -> Submission | None:
    return (
        ctx.db.query(Submission)
        .filter(Submission.assignment_id == assignment_id, Submission.user_id == user_id)
        .first()
    )


def _find_grade(ctx: RequestContext, assignment_id: int, user_id: int) -> Grade | None:
    return (
        ctx.db.query(Grade)
        .filter(Grade.assignment_id == assignment_id, Grade.user_id == user_id)
        .first()
    )


def get_submission(
    ctx: RequestContext,
    assignment: Assignment,
    user_id: int | None = None,
    create: bool = False,
) -> Submission | None:
    if not user_id:
        user_id = ctx.actor_id

    submission = _find_submission(ctx, assignment.id, user_id)
    if submission or not create:
        return submission

    now = ctx.now()
    submission = Submission(
        assignment_id=assignment.id,
        user_id=user_id,
        time_created=now,
        time_modified=now,
        online_text="",
        online_format=ctx.preferred_format,
        comment_text="",
        comment_format=ctx.preferred_format,
        num_files=0,
        status=STATUS_DRAFT if assignment.submission_drafts else STATUS_SUBMITTED,
    )
    ctx.db.add(submission)
    try:
        ctx.db.commit()
    except IntegrityError:
        ctx.db.rollback()
        logger.info("submission for assignment %s user %s created concurrently", assignment.id, user_id)
        return _find_submission(ctx, assignment.id, user_id)
    ctx.db.refresh(submission)
    return submission


def get_grade(
    ctx: RequestContext,
    assignment: Assignment,
    user_id: int,
    create: bool = False,
) -> Grade | None:
    grade = _find_grade(ctx, assignment.id, user_id)
    if grade or not create:
        return grade

    now = ctx.now()
    grade = Grade(
        assignment_id=assignment.id,
        user_id=user_id,
        time_created=now,
        time_modified=now,
        locked=False,
        grade=UNGRADED,
        feedback_text="",
        feedback_format=ctx.preferred_format,
        num_feedback_files=0,
    )
    ctx.db.add(grade)
    try:
        ctx.db.commit()
    except IntegrityError:
        ctx.db.rollback()
        logger.info("grade for assignment %s user %s created concurrently", assignment.id, user_id)
        return _find_grade(ctx, assignment.id, user_id)
    ctx.db.refresh(grade)
    return grade
