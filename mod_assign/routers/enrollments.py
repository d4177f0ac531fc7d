import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mod_assign.core.context import RequestContext
from mod_assign.core.current_user import get_current_user, get_request_context
from mod_assign.core.deps import get_db
from mod_assign.core.exceptions import NotFound
from mod_assign.core.permissions import CAP_ADDINSTANCE, ROLE_STUDENT, Authorizer, Context
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.user import User
from mod_assign.schemas.enrollment import EnrollmentCreate, EnrollmentOut, EnrolUser
from mod_assign.services.instances import get_course_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


def _enrol(db: Session, user_id: int, course_id: int, role: str) -> Enrollment:
    enrollment = Enrollment(user_id=user_id, course_id=course_id, role=role)
    db.add(enrollment)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already enrolled")

    db.refresh(enrollment)
    logger.info("user %s enrolled in course %s as %s", user_id, course_id, role)
    return enrollment


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll_me(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    get_course_or_404(db, payload.course_id)
    return _enrol(db, me.id, payload.course_id, ROLE_STUDENT)


@router.post("/users", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enrol_user(
    payload: EnrolUser,
    ctx: RequestContext = Depends(get_request_context),
):
    get_course_or_404(ctx.db, payload.course_id)
    Authorizer(ctx.db, ctx.actor).require_capability(CAP_ADDINSTANCE, Context.for_course(payload.course_id))
    if ctx.db.query(User).filter(User.id == payload.user_id).first() is None:
        raise NotFound("User not found")
    return _enrol(ctx.db, payload.user_id, payload.course_id, payload.role)


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return db.query(Enrollment).filter(Enrollment.user_id == me.id).all()
