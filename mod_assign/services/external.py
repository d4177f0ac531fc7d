"""Read API over courses, assignments and submissions.

Authorization is evaluated per item. An item the caller cannot see is left
out of the result and reported as a warning; it never fails the request.
"""
import logging
from dataclasses import asdict, dataclass, field
from itertools import groupby

from mod_assign.core.context import RequestContext
from mod_assign.core.exceptions import ValidationFailed
from mod_assign.core.permissions import (
    CAP_GRADE,
    CAP_VIEW,
    CAP_VIEWPARTICIPANTS,
    Authorizer,
    Context,
)
from mod_assign.models.assignment import Assignment
from mod_assign.models.course import Course
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.file import FILEAREA_SUBMISSION_FILES, FILEAREA_SUBMISSION_ONLINETEXT
from mod_assign.models.submission import STATUS_DRAFT, STATUS_SUBMITTED, Submission
from mod_assign.services.files import FileStorage
from mod_assign.services.formatting import count_words, rewrite_pluginfile_urls, strip_markup

logger = logging.getLogger(__name__)

WARNING_NO_ACCESS = "1"
WARNING_NOT_ENROLLED = "2"
WARNING_NO_SUBMISSIONS = "3"

SUBMISSION_STATUSES = ("", STATUS_DRAFT, STATUS_SUBMITTED)


@dataclass
class ExternalWarning:
    item: str
    itemid: int
    warningcode: str
    message: str


@dataclass
class ExternalResult:
    warnings: list[ExternalWarning] = field(default_factory=list)

    def warn(self, item: str, itemid: int, code: str, message: str) -> None:
        self.warnings.append(ExternalWarning(item=item, itemid=itemid, warningcode=code, message=message))


@dataclass
class AssignmentsResult(ExternalResult):
    courses: list[dict] = field(default_factory=list)


@dataclass
class SubmissionsResult(ExternalResult):
    assignments: list[dict] = field(default_factory=list)


def _config_array(assignment: Assignment) -> list[dict]:
    return [
        {
            "id": c.id,
            "assignment": c.assignment_id,
            "plugin": c.plugin,
            "subtype": c.subtype,
            "name": c.name,
            "value": c.value,
        }
        for c in sorted(assignment.configs, key=lambda c: c.id)
    ]


def _assignment_dict(assignment: Assignment) -> dict:
    return {
        "id": assignment.id,
        "course": assignment.course_id,
        "name": assignment.name,
        "preventlatesubmissions": int(bool(assignment.prevent_late_submissions)),
        "submissiondrafts": int(bool(assignment.submission_drafts)),
        "sendnotifications": int(bool(assignment.send_notifications)),
        "duedate": assignment.due_date,
        "allowsubmissionsfromdate": assignment.allow_submissions_from_date,
        "grade": assignment.grade,
        "timemodified": assignment.time_modified,
        "configs": _config_array(assignment),
    }


def get_assignments(
    ctx: RequestContext,
    course_ids: list[int] | None = None,
    capabilities: list[str] | None = None,
) -> AssignmentsResult:
    course_ids = list(dict.fromkeys(course_ids or []))
    capabilities = list(capabilities or [])
    for cap in capabilities:
        if not cap or "/" not in cap or ":" not in cap:
            raise ValidationFailed(f"Invalid capability {cap!r}")

    result = AssignmentsResult()
    auth = Authorizer(ctx.db, ctx.actor)

    courses = (
        ctx.db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.user_id == ctx.actor_id)
        .order_by(Course.id.asc())
        .all()
    )

    # requested ids that cannot be returned, reported with their own code
    unavailable: list[int] = []
    if course_ids:
        enrolled_ids = {c.id for c in courses}
        unavailable = [cid for cid in course_ids if cid not in enrolled_ids]
        courses = [c for c in courses if c.id in course_ids]

    visible: list[Course] = []
    for course in courses:
        context = Context.for_course(course.id)
        if not auth.has_capability(CAP_VIEWPARTICIPANTS, context):
            result.warn("course", course.id, WARNING_NO_ACCESS, "No access rights in course context")
            continue
        if not all(auth.has_capability(cap, context) for cap in capabilities):
            if course_ids:
                unavailable.append(course.id)
            continue
        visible.append(course)

    for course in visible:
        assignments = []
        for assignment in sorted(course.assignments, key=lambda a: a.id):
            if not auth.has_capability(CAP_VIEW, Context.for_assignment(assignment)):
                result.warn("module", assignment.id, WARNING_NO_ACCESS, "No access rights in module context")
                continue
            assignments.append(_assignment_dict(assignment))

        result.courses.append(
            {
                "id": course.id,
                "fullname": course.fullname,
                "shortname": course.shortname,
                "timemodified": course.time_modified,
                "assignments": assignments,
            }
        )

    for course_id in unavailable:
        result.warn(
            "course",
            course_id,
            WARNING_NOT_ENROLLED,
            "User is not enrolled or does not have requested capability",
        )

    logger.debug("get_assignments: %s courses, %s warnings", len(result.courses), len(result.warnings))
    return result


def _submission_dict(storage: FileStorage, submission: Submission) -> dict:
    files = storage.get_area_files(submission.assignment_id, FILEAREA_SUBMISSION_FILES, submission.user_id)
    onlinetexts = []
    if submission.online_text:
        text = rewrite_pluginfile_urls(
            submission.online_text, submission.assignment_id, FILEAREA_SUBMISSION_ONLINETEXT, submission.id
        )
        text = strip_markup(text)
        onlinetexts.append(
            {"text": text, "format": submission.online_format, "wordcount": count_words(text)}
        )
    return {
        "id": submission.id,
        "userid": submission.user_id,
        "status": submission.status,
        "timecreated": submission.time_created,
        "timemodified": submission.time_modified,
        "files": [
            {"filepath": f.filepath, "filename": f.filename, "mimetype": f.mimetype, "filesize": f.filesize}
            for f in files
        ],
        "onlinetexts": onlinetexts,
    }


def get_submissions(
    ctx: RequestContext,
    assignment_ids: list[int],
    status: str = "",
    since: int = 0,
    before: int = 0,
) -> SubmissionsResult:
    if not assignment_ids:
        raise ValidationFailed("At least one assignment id is required")
    if status not in SUBMISSION_STATUSES:
        raise ValidationFailed(f"Invalid status {status!r}")
    if since < 0 or before < 0:
        raise ValidationFailed("since and before must not be negative")
    if before and before < since:
        raise ValidationFailed("before must not be earlier than since")

    result = SubmissionsResult()
    auth = Authorizer(ctx.db, ctx.actor)
    requested = list(dict.fromkeys(assignment_ids))

    found = {
        a.id: a
        for a in ctx.db.query(Assignment).filter(Assignment.id.in_(requested)).all()
    }
    allowed: list[int] = []
    for assignment_id in requested:
        assignment = found.get(assignment_id)
        if assignment is None or not auth.has_capability(CAP_GRADE, Context.for_assignment(assignment)):
            result.warn("assignment", assignment_id, WARNING_NO_ACCESS, "No access rights in module context")
            continue
        allowed.append(assignment_id)

    grouped: dict[int, list[dict]] = {}
    if allowed:
        q = ctx.db.query(Submission).filter(Submission.assignment_id.in_(allowed))
        if status:
            q = q.filter(Submission.status == status)
        if before:
            q = q.filter(Submission.time_modified >= since, Submission.time_modified <= before)
        else:
            q = q.filter(Submission.time_modified >= since)
        submissions = q.order_by(Submission.assignment_id.asc(), Submission.id.asc()).all()

        storage = FileStorage(ctx.db)
        for assignment_id, subs in groupby(submissions, key=lambda s: s.assignment_id):
            grouped[assignment_id] = [_submission_dict(storage, s) for s in subs]

    for assignment_id in allowed:
        if assignment_id in grouped:
            result.assignments.append(
                {"assignmentid": assignment_id, "submissions": grouped[assignment_id]}
            )
        else:
            result.warn("assignment", assignment_id, WARNING_NO_SUBMISSIONS, "No submissions found")

    return result


def as_dict(result: ExternalResult) -> dict:
    return asdict(result)
