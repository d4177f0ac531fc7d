from dataclasses import dataclass

from sqlalchemy.orm import Session

from mod_assign.core.exceptions import PermissionDenied
from mod_assign.models.capability import CapabilityOverride
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.user import User

CAP_VIEW = "mod/assign:view"
CAP_SUBMIT = "mod/assign:submit"
CAP_GRADE = "mod/assign:grade"
CAP_ADDINSTANCE = "mod/assign:addinstance"
CAP_VIEWPARTICIPANTS = "moodle/course:viewparticipants"

ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"
ROLE_EDITINGTEACHER = "editingteacher"

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_STUDENT: frozenset({CAP_VIEW, CAP_SUBMIT, CAP_VIEWPARTICIPANTS}),
    ROLE_TEACHER: frozenset({CAP_VIEW, CAP_GRADE, CAP_VIEWPARTICIPANTS}),
    ROLE_EDITINGTEACHER: frozenset({CAP_VIEW, CAP_GRADE, CAP_VIEWPARTICIPANTS, CAP_ADDINSTANCE}),
}

SITE_ADMIN = "admin"


@dataclass(frozen=True)
class Context:
    """Scope a capability is checked against: a course, or one assignment in it."""

    course_id: int
    assignment_id: int | None = None

    @property
    def level(self) -> str:
        return "module" if self.assignment_id is not None else "course"

    @classmethod
    def for_course(cls, course_id: int) -> "Context":
        return cls(course_id=course_id)

    @classmethod
    def for_assignment(cls, assignment) -> "Context":
        return cls(course_id=assignment.course_id, assignment_id=assignment.id)


def role_has_capability(db: Session, role: str, capability: str, context: Context) -> bool:
    overrides = (
        db.query(CapabilityOverride)
        .filter(
            CapabilityOverride.role == role,
            CapabilityOverride.course_id == context.course_id,
            CapabilityOverride.capability == capability,
        )
        .all()
    )
    course_override = None
    for override in overrides:
        if override.assignment_id is None:
            course_override = override
        elif override.assignment_id == context.assignment_id:
            # module level wins
            return bool(override.allow)
    if course_override is not None:
        return bool(course_override.allow)
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


class Authorizer:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self._roles: dict[int, str | None] = {}

    def course_role(self, course_id: int) -> str | None:
        if course_id not in self._roles:
            enrollment = (
                self.db.query(Enrollment)
                .filter(Enrollment.course_id == course_id, Enrollment.user_id == self.user.id)
                .first()
            )
            self._roles[course_id] = enrollment.role if enrollment else None
        return self._roles[course_id]

    def has_capability(self, capability: str, context: Context) -> bool:
        if self.user.role == SITE_ADMIN:
            return True
        role = self.course_role(context.course_id)
        if role is None:
            return False
        return role_has_capability(self.db, role, capability, context)

    def require_capability(self, capability: str, context: Context) -> None:
        if not self.has_capability(capability, context):
            raise PermissionDenied(capability)


def is_enrolled(db: Session, course_id: int, user_id: int) -> bool:
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.user_id == user_id)
        .first()
        is not None
    )


def roles_with_capability(db: Session, capability: str, context: Context) -> list[str]:
    return [
        role for role in ROLE_CAPABILITIES
        if role_has_capability(db, role, capability, context)
    ]


def enrolled_users_with_capability(db: Session, capability: str, context: Context) -> list[User]:
    roles = roles_with_capability(db, capability, context)
    if not roles:
        return []
    return (
        db.query(User)
        .join(Enrollment, Enrollment.user_id == User.id)
        .filter(Enrollment.course_id == context.course_id, Enrollment.role.in_(roles))
        .order_by(User.id.asc())
        .all()
    )
