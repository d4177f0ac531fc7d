import logging

from sqlalchemy.orm import Session

from mod_assign.core.context import RequestContext
from mod_assign.core.exceptions import NotFound, ValidationFailed
from mod_assign.core.permissions import CAP_ADDINSTANCE, CAP_VIEW, Authorizer, Context
from mod_assign.models.assignment import Assignment
from mod_assign.models.capability import CapabilityOverride
from mod_assign.models.course import Course
from mod_assign.models.scale import Scale
from mod_assign.services import gradebook
from mod_assign.services.files import FileStorage
from mod_assign.services.plugins import PluginRegistry

logger = logging.getLogger(__name__)

SETTING_FIELDS = (
    "name",
    "intro",
    "grade",
    "due_date",
    "allow_submissions_from_date",
    "prevent_late_submissions",
    "submission_drafts",
    "online_text_submission",
    "submission_comments",
    "send_notifications",
)


def get_course_or_404(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFound("Course not found")
    return course


def get_assignment_or_404(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment


def _validate(db: Session, course_id: int, values: dict) -> None:
    grade = values.get("grade")
    if grade is not None and grade < 0:
        scale = db.query(Scale).filter(Scale.id == -grade).first()
        if scale is None or (scale.course_id is not None and scale.course_id != course_id):
            raise ValidationFailed(f"Scale {-grade} is not available in this course")
    due = values.get("due_date") or 0
    opens = values.get("allow_submissions_from_date") or 0
    if due and opens and due < opens:
        raise ValidationFailed("Due date must be after the date submissions open")


def _save_plugin_settings(db: Session, registry: PluginRegistry, assignment: Assignment, plugin_settings: dict) -> None:
    for name, values in (plugin_settings or {}).items():
        try:
            plugin = registry.get(name)
        except KeyError:
            raise ValidationFailed(f"Unknown submission plugin {name!r}")
        plugin.save_settings(db, assignment, values)


def add_instance(
    ctx: RequestContext,
    registry: PluginRegistry,
    course_id: int,
    values: dict,
    plugin_settings: dict | None = None,
) -> Assignment:
    get_course_or_404(ctx.db, course_id)
    Authorizer(ctx.db, ctx.actor).require_capability(CAP_ADDINSTANCE, Context.for_course(course_id))
    _validate(ctx.db, course_id, values)

    assignment = Assignment(course_id=course_id, time_modified=ctx.now())
    for key in SETTING_FIELDS:
        if key in values and values[key] is not None:
            setattr(assignment, key, values[key])
    ctx.db.add(assignment)
    ctx.db.flush()

    _save_plugin_settings(ctx.db, registry, assignment, plugin_settings)
    gradebook.update_grade_item(ctx.db, assignment)
    ctx.db.commit()
    ctx.db.refresh(assignment)
    logger.info("assignment %s created in course %s by user %s", assignment.id, course_id, ctx.actor_id)
    return assignment


def update_instance(
    ctx: RequestContext,
    registry: PluginRegistry,
    assignment: Assignment,
    values: dict,
    plugin_settings: dict | None = None,
) -> Assignment:
    Authorizer(ctx.db, ctx.actor).require_capability(CAP_ADDINSTANCE, Context.for_assignment(assignment))
    merged = {key: getattr(assignment, key) for key in SETTING_FIELDS}
    merged.update({k: v for k, v in values.items() if v is not None})
    _validate(ctx.db, assignment.course_id, merged)

    for key in SETTING_FIELDS:
        if key in values and values[key] is not None:
            setattr(assignment, key, values[key])
    assignment.time_modified = ctx.now()

    _save_plugin_settings(ctx.db, registry, assignment, plugin_settings)
    gradebook.update_grade_item(ctx.db, assignment)
    ctx.db.commit()
    ctx.db.refresh(assignment)
    return assignment


def delete_instance(ctx: RequestContext, assignment: Assignment) -> None:
    """Remove the assignment with its files, submissions, grades and gradebook item."""
    Authorizer(ctx.db, ctx.actor).require_capability(CAP_ADDINSTANCE, Context.for_assignment(assignment))
    assignment_id = assignment.id

    FileStorage(ctx.db).delete_area_files(assignment_id)
    gradebook.delete_grade_item(ctx.db, assignment_id)
    ctx.db.query(CapabilityOverride).filter(CapabilityOverride.assignment_id == assignment_id).delete()
    ctx.db.delete(assignment)
    try:
        ctx.db.commit()
    except Exception:
        ctx.db.rollback()
        raise
    logger.info("assignment %s deleted by user %s", assignment_id, ctx.actor_id)


def list_course_assignments(ctx: RequestContext, course_id: int) -> list[Assignment]:
    get_course_or_404(ctx.db, course_id)
    auth = Authorizer(ctx.db, ctx.actor)
    assignments = (
        ctx.db.query(Assignment)
        .filter(Assignment.course_id == course_id)
        # no due date sorts last
        .order_by(Assignment.due_date == 0, Assignment.due_date.asc(), Assignment.id.asc())
        .all()
    )
    return [a for a in assignments if auth.has_capability(CAP_VIEW, Context.for_assignment(a))]
