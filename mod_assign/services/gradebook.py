"""Gradebook collaborator: one grade item per assignment, one grade per user."""
import logging

from sqlalchemy.orm import Session

from mod_assign.models.assignment import Assignment
from mod_assign.models.grade import UNGRADED, Grade
from mod_assign.models.gradebook import (
    GRADE_TYPE_SCALE,
    GRADE_TYPE_TEXT,
    GRADE_TYPE_VALUE,
    GradebookGrade,
    GradeItem,
)
from mod_assign.models.submission import Submission

logger = logging.getLogger(__name__)

ITEM_MODULE = "assign"


def grade_item_params(assignment: Assignment) -> dict:
    params = {"item_name": assignment.name}
    if assignment.grade > 0:
        params.update(grade_type=GRADE_TYPE_VALUE, grade_max=float(assignment.grade), grade_min=0.0, scale_id=None)
    elif assignment.grade < 0:
        params.update(grade_type=GRADE_TYPE_SCALE, scale_id=-assignment.grade)
    else:
        # allow text comments only
        params.update(grade_type=GRADE_TYPE_TEXT, scale_id=None)
    return params


def get_grade_item(db: Session, assignment_id: int) -> GradeItem | None:
    return (
        db.query(GradeItem)
        .filter(GradeItem.item_module == ITEM_MODULE, GradeItem.item_instance == assignment_id)
        .first()
    )


def update_grade_item(db: Session, assignment: Assignment) -> GradeItem:
    """Create or refresh the assignment's grade item. Caller commits."""
    item = get_grade_item(db, assignment.id)
    if item is None:
        item = GradeItem(course_id=assignment.course_id, item_module=ITEM_MODULE, item_instance=assignment.id)
        db.add(item)
    for key, value in grade_item_params(assignment).items():
        setattr(item, key, value)
    db.flush()
    return item


def delete_grade_item(db: Session, assignment_id: int) -> None:
    item = get_grade_item(db, assignment_id)
    if item is not None:
        db.delete(item)


def grade_for_gradebook(grade: Grade) -> dict:
    return {
        "raw_grade": None if grade.grade is None or grade.grade == UNGRADED else grade.grade,
        "feedback": grade.feedback_text,
        "feedback_format": grade.feedback_format,
        "user_modified": grade.grader_id,
        "date_graded": grade.time_modified,
    }


def submission_for_gradebook(submission: Submission) -> dict:
    return {
        "user_modified": submission.user_id,
        "date_submitted": submission.time_modified,
    }


def push_grade(db: Session, assignment: Assignment, user_id: int, values: dict) -> bool:
    """Mirror grade or submission values into the gradebook and commit."""
    item = update_grade_item(db, assignment)
    row = (
        db.query(GradebookGrade)
        .filter(GradebookGrade.item_id == item.id, GradebookGrade.user_id == user_id)
        .first()
    )
    if row is None:
        row = GradebookGrade(item_id=item.id, user_id=user_id)
        db.add(row)
    for key, value in values.items():
        setattr(row, key, value)
    if "raw_grade" in values:
        row.final_grade = values["raw_grade"]
    db.commit()
    logger.debug("gradebook updated for assignment %s user %s", assignment.id, user_id)
    return True


def final_grades(db: Session, assignment_id: int, user_ids: list[int]) -> dict[int, float | None]:
    if not user_ids:
        return {}
    item = get_grade_item(db, assignment_id)
    if item is None:
        return {}
    rows = (
        db.query(GradebookGrade)
        .filter(GradebookGrade.item_id == item.id, GradebookGrade.user_id.in_(user_ids))
        .all()
    )
    return {r.user_id: r.final_grade for r in rows}
