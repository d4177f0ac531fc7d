from fastapi import APIRouter, Depends, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from mod_assign.core.context import RequestContext
from mod_assign.core.current_user import get_current_user, get_request_context, require_site_admin
from mod_assign.core.deps import get_clock, get_db, get_registry
from mod_assign.core.exceptions import PermissionDenied
from mod_assign.core.permissions import CAP_GRADE, CAP_SUBMIT, Authorizer, Context, enrolled_users_with_capability
from mod_assign.models.assignment import Assignment
from mod_assign.models.course import Course
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.gradebook import GradebookGrade, GradeItem
from mod_assign.models.user import User
from mod_assign.schemas.course import CourseCreate, CourseRead
from mod_assign.schemas.gradebook import GradebookRow
from mod_assign.services.gradebook import ITEM_MODULE
from mod_assign.services.instances import get_course_or_404
from mod_assign.services.lifecycle import SubmissionLifecycle
from mod_assign.services.plugins import PluginRegistry

router = APIRouter()


def _assignment_order_by():
    """
    Assignment ordering:
    - due_date 0 (no due date) last
    - due_date ascending
    - assignment id ascending
    """
    return (
        Assignment.due_date == 0,
        Assignment.due_date.asc(),
        Assignment.id.asc(),
    )


def _gradebook_rows(
    ctx: RequestContext,
    registry: PluginRegistry,
    course_id: int,
    users: list[User],
) -> list[dict]:
    assignments = (
        ctx.db.query(Assignment)
        .filter(Assignment.course_id == course_id)
        .order_by(*_assignment_order_by())
        .all()
    )
    user_ids = [u.id for u in users]

    rows = (
        ctx.db.query(GradeItem.item_instance, GradebookGrade)
        .join(
            GradebookGrade,
            and_(GradebookGrade.item_id == GradeItem.id, GradebookGrade.user_id.in_(user_ids)),
        )
        .filter(GradeItem.course_id == course_id, GradeItem.item_module == ITEM_MODULE)
        .all()
    )
    grades = {(assignment_id, g.user_id): g for assignment_id, g in rows}

    result: list[dict] = []
    for user in sorted(users, key=lambda u: u.email):
        for a in assignments:
            lifecycle = SubmissionLifecycle(ctx, a, registry)
            g = grades.get((a.id, user.id))
            if g is not None and g.raw_grade is not None:
                status_val = "graded"
            elif g is not None and g.date_submitted:
                status_val = "submitted"
            else:
                status_val = "missing"

            result.append(
                {
                    "user_id": user.id,
                    "user_email": user.email,
                    "fullname": user.full_name,
                    "assignment_id": a.id,
                    "item_name": a.name,
                    "raw_grade": g.raw_grade if g else None,
                    "final_grade": g.final_grade if g else None,
                    "display_grade": lifecycle.display_grade(g.final_grade if g else None),
                    "feedback": g.feedback if g else None,
                    "date_submitted": g.date_submitted if g else None,
                    "date_graded": g.date_graded if g else None,
                    "status": status_val,
                }
            )
    return result


@router.get("/", response_model=list[CourseRead])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Course).order_by(Course.id.asc()).all()


@router.post("/", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_site_admin),
    clock=Depends(get_clock),
):
    course = Course(
        fullname=payload.fullname,
        shortname=payload.shortname,
        summary=payload.summary,
        time_modified=clock(),
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.get("/me", response_model=list[CourseRead])
def my_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.user_id == current_user.id)
        .order_by(Course.id.asc())
        .all()
    )


@router.get("/{course_id}/gradebook", response_model=list[GradebookRow])
def course_gradebook(
    course_id: int,
    ctx: RequestContext = Depends(get_request_context),
    registry: PluginRegistry = Depends(get_registry),
):
    get_course_or_404(ctx.db, course_id)
    context = Context.for_course(course_id)
    Authorizer(ctx.db, ctx.actor).require_capability(CAP_GRADE, context)

    students = enrolled_users_with_capability(ctx.db, CAP_SUBMIT, context)
    return _gradebook_rows(ctx, registry, course_id, students)


# student sees only their own rows
@router.get("/{course_id}/gradebook/me", response_model=list[GradebookRow])
def my_course_gradebook(
    course_id: int,
    ctx: RequestContext = Depends(get_request_context),
    registry: PluginRegistry = Depends(get_registry),
):
    get_course_or_404(ctx.db, course_id)
    if not Authorizer(ctx.db, ctx.actor).course_role(course_id):
        raise PermissionDenied(CAP_SUBMIT, "Not enrolled in this course")

    return _gradebook_rows(ctx, registry, course_id, [ctx.actor])
