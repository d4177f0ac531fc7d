"""Submission and grading lifecycle for one assignment.

States per (assignment, user) are ``nosubmission``, ``draft`` and ``submitted``;
the grade's ``locked`` flag is orthogonal and blocks every student-side change.
Every transition commits its own state first, then runs its side effects
(gradebook push, audit entry, grader notification). A failing side effect is
logged and never undoes the committed state.

Concurrent edits of the same row are last-writer-wins; there is no optimistic
versioning.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from mod_assign.core.context import RequestContext
from mod_assign.core.config import settings
from mod_assign.core.exceptions import (
    LockedSubmission,
    NotFound,
    SubmissionsClosed,
    ValidationFailed,
)
from mod_assign.core.permissions import (
    CAP_GRADE,
    CAP_SUBMIT,
    CAP_VIEW,
    Authorizer,
    Context,
    enrolled_users_with_capability,
    is_enrolled,
)
from mod_assign.models.assignment import Assignment
from mod_assign.models.file import FILEAREA_SUBMISSION_FEEDBACK, FILEAREA_SUBMISSION_FILES
from mod_assign.models.grade import UNGRADED, Grade
from mod_assign.models.scale import Scale
from mod_assign.models.submission import STATUS_DRAFT, STATUS_SUBMITTED, Submission
from mod_assign.models.user import User
from mod_assign.services import gradebook
from mod_assign.services.audit import add_to_log
from mod_assign.services.files import FileStorage, NewFile, check_unique_paths
from mod_assign.services.formatting import count_words, escape
from mod_assign.services.notifications import Notifier, OutgoingMessage
from mod_assign.services.plugins import PluginRegistry
from mod_assign.services.store import get_grade, get_submission

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    NO_SUBMISSION = "nosubmission"
    DRAFT = "draft"
    SUBMITTED = "submitted"


@dataclass
class LifecycleState:
    status: SubmissionState
    locked: bool


def format_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


class SubmissionLifecycle:
    def __init__(
        self,
        ctx: RequestContext,
        assignment: Assignment,
        registry: PluginRegistry,
        notifier: Notifier | None = None,
    ):
        self.ctx = ctx
        self.db = ctx.db
        self.assignment = assignment
        self.context = Context.for_assignment(assignment)
        self.auth = Authorizer(ctx.db, ctx.actor)
        self.registry = registry
        self.notifier = notifier or Notifier(ctx.db)
        self._scale_items: list[str] | None = None

    # -- gates -------------------------------------------------------------

    def require(self, *capabilities: str) -> None:
        for capability in capabilities:
            self.auth.require_capability(capability, self.context)

    def _require_participant(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None or not is_enrolled(self.db, self.assignment.course_id, user_id):
            raise NotFound(f"User {user_id} is not enrolled in this course")
        return user

    def window_open(self, now: int | None = None) -> bool:
        a = self.assignment
        now = self.ctx.now() if now is None else now
        if a.prevent_late_submissions and a.due_date:
            return a.allow_submissions_from_date <= now <= a.due_date
        return a.allow_submissions_from_date <= now

    def _closed_reason(self, user_id: int) -> str | None:
        if not self.window_open():
            return "Submissions are not open for this assignment"
        if not is_enrolled(self.db, self.assignment.course_id, user_id):
            return "You are not enrolled in this course"
        submission = get_submission(self.ctx, self.assignment, user_id)
        if (
            submission
            and self.assignment.submission_drafts
            and submission.status == STATUS_SUBMITTED
        ):
            return "This assignment has already been submitted for grading"
        grade = get_grade(self.ctx, self.assignment, user_id)
        if grade and grade.locked:
            return "Submissions for this user are locked"
        return None

    def submissions_open(self, user_id: int | None = None) -> bool:
        return self._closed_reason(user_id or self.ctx.actor_id) is None

    def _check_not_locked(self, user_id: int) -> None:
        grade = get_grade(self.ctx, self.assignment, user_id)
        if grade and grade.locked:
            raise LockedSubmission()

    def check_submissions_open(self, user_id: int | None = None) -> None:
        user_id = user_id or self.ctx.actor_id
        self._check_not_locked(user_id)
        reason = self._closed_reason(user_id)
        if reason:
            raise SubmissionsClosed(reason)

    def state(self, user_id: int) -> LifecycleState:
        submission = get_submission(self.ctx, self.assignment, user_id)
        grade = get_grade(self.ctx, self.assignment, user_id)
        status = SubmissionState(submission.status) if submission else SubmissionState.NO_SUBMISSION
        return LifecycleState(status=status, locked=bool(grade and grade.locked))

    # -- persistence + side effects ---------------------------------------

    def _side_effect(self, what: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception:
            self.db.rollback()
            logger.exception("assign %s: %s failed", self.assignment.id, what)

    def update_submission(self, submission: Submission, update_time: bool = True) -> Submission:
        if update_time:
            submission.time_modified = self.ctx.now()
        self.db.commit()
        self.db.refresh(submission)
        self._side_effect(
            "gradebook push",
            gradebook.push_grade,
            self.db,
            self.assignment,
            submission.user_id,
            gradebook.submission_for_gradebook(submission),
        )
        return submission

    def update_grade(self, grade: Grade) -> Grade:
        grade.time_modified = self.ctx.now()
        self.db.commit()
        self.db.refresh(grade)
        self._side_effect(
            "gradebook push",
            gradebook.push_grade,
            self.db,
            self.assignment,
            grade.user_id,
            gradebook.grade_for_gradebook(grade),
        )
        return grade

    def log(self, action: str, info: str = "", url: str = "") -> None:
        self._side_effect("audit log", add_to_log, self.ctx, self.assignment, action, info, url)

    # -- student transitions ----------------------------------------------

    def save_submission(self, data: dict) -> Submission:
        self.require(CAP_VIEW, CAP_SUBMIT)
        user_id = self.ctx.actor_id
        self.check_submissions_open(user_id)

        self.registry.validate(self.assignment, data)
        submission = get_submission(self.ctx, self.assignment, user_id, create=True)
        try:
            for plugin in self.registry.enabled_for(self.assignment):
                plugin.save(self.ctx, self.assignment, submission, data)
        except ValidationFailed:
            self.db.rollback()
            raise
        if not self.assignment.submission_drafts:
            submission.status = STATUS_SUBMITTED
        self.update_submission(submission)

        self.log("submit", self.format_submission_for_log(submission))
        if not self.assignment.submission_drafts:
            self.email_graders(submission)
        return submission

    def submit_for_grading(self) -> Submission:
        self.require(CAP_VIEW, CAP_SUBMIT)
        user_id = self.ctx.actor_id
        self._check_not_locked(user_id)

        existing = get_submission(self.ctx, self.assignment, user_id)
        if existing and existing.status == STATUS_SUBMITTED:
            return existing
        self.check_submissions_open(user_id)

        submission = existing or get_submission(self.ctx, self.assignment, user_id, create=True)
        submission.status = STATUS_SUBMITTED
        self.update_submission(submission)

        self.log("submit for grading", self.format_submission_for_log(submission))
        self.email_graders(submission)
        return submission

    # -- teacher transitions ----------------------------------------------

    def revert_to_draft(self, user_id: int) -> Submission | None:
        self.require(CAP_VIEW, CAP_GRADE)
        user = self._require_participant(user_id)

        submission = get_submission(self.ctx, self.assignment, user_id)
        if submission is None or submission.status == STATUS_DRAFT:
            return submission

        submission.status = STATUS_DRAFT
        self.update_submission(submission, update_time=False)

        # records the grader action even though the grade value is unchanged
        grade = get_grade(self.ctx, self.assignment, user_id, create=True)
        self.update_grade(grade)

        self.log("revert submission to draft", f"Revert submission to draft for student: (id={user.id}, fullname={user.full_name}).")
        return submission

    def _set_locked(self, user_id: int, locked: bool) -> Grade:
        self.require(CAP_VIEW, CAP_GRADE)
        user = self._require_participant(user_id)

        grade = get_grade(self.ctx, self.assignment, user_id, create=True)
        grade.locked = locked
        self.update_grade(grade)

        action = "lock submission" if locked else "unlock submission"
        verb = "Prevent" if locked else "Allow"
        self.log(action, f"{verb} submission changes for student: (id={user.id}, fullname={user.full_name}).")
        return grade

    def lock(self, user_id: int) -> Grade:
        return self._set_locked(user_id, True)

    def unlock(self, user_id: int) -> Grade:
        return self._set_locked(user_id, False)

    def save_grade(
        self,
        user_id: int,
        grade_value: float | None,
        feedback_text: str = "",
        feedback_format: int | None = None,
        feedback_files: list[NewFile] | None = None,
    ) -> Grade:
        self.require(CAP_VIEW, CAP_GRADE)
        self._require_participant(user_id)
        value = self.clean_grade(grade_value)
        if feedback_files is not None:
            check_unique_paths(feedback_files)

        grade = get_grade(self.ctx, self.assignment, user_id, create=True)
        storage = FileStorage(self.db)
        if feedback_files is not None:
            storage.replace_area_files(
                self.assignment.id, FILEAREA_SUBMISSION_FEEDBACK, user_id, feedback_files, self.ctx.now()
            )
            self.db.flush()
        grade.grade = value
        grade.grader_id = self.ctx.actor_id
        grade.feedback_text = feedback_text or ""
        grade.feedback_format = self.ctx.preferred_format if feedback_format is None else feedback_format
        grade.num_feedback_files = storage.count_area_files(self.assignment.id, FILEAREA_SUBMISSION_FEEDBACK, user_id)
        self.update_grade(grade)

        self.log("grade submission", self.format_grade_for_log(grade))
        return grade

    # -- grades --------------------------------------------------------------

    def scale_items(self) -> list[str]:
        if self._scale_items is None:
            scale = self.db.query(Scale).filter(Scale.id == -self.assignment.grade).first()
            self._scale_items = scale.items if scale else []
        return self._scale_items

    def clean_grade(self, value: float | None) -> float:
        if value is None or value == UNGRADED:
            return UNGRADED
        if not math.isfinite(value):
            raise ValidationFailed("Grade must be a finite number")
        if self.assignment.grade == 0:
            # text feedback only
            return UNGRADED
        if self.assignment.grade > 0:
            if value < 0 or value > self.assignment.grade:
                raise ValidationFailed(f"Grade must be between 0 and {self.assignment.grade}")
            return float(value)

        items = self.scale_items()
        if not items:
            raise NotFound(f"Scale {-self.assignment.grade} not found")
        if value != int(value) or not 1 <= value <= len(items):
            raise ValidationFailed(f"Grade must be a scale item between 1 and {len(items)}")
        return float(value)

    def display_grade(self, value: float | None) -> str:
        if value is None:
            return "-"
        if self.assignment.grade >= 0:
            if value == UNGRADED:
                return "-"
            return f"{format_number(value)} / {self.assignment.grade}"

        items = self.scale_items()
        index = int(value)
        if index == value and 1 <= index <= len(items):
            return items[index - 1]
        return "-"

    # -- log summaries (kept under the 255 char audit limit by add_to_log) --

    def format_submission_for_log(self, submission: Submission) -> str:
        info = f"Submission status: {submission.status}."
        if submission.num_files > 0:
            info += f" {submission.num_files} file(s)."
        else:
            info += " No files."
        if submission.online_text:
            info += f" Online text: {count_words(submission.online_text)} word(s)."
        else:
            info += " No online text."
        if submission.comment_text:
            info += f" Comment: {count_words(submission.comment_text)} word(s)."
        else:
            info += " No comment."
        return info

    def format_grade_for_log(self, grade: Grade) -> str:
        user = self.db.query(User).filter(User.id == grade.user_id).first()
        fullname = user.full_name if user else ""
        info = f"Grade student: (id={grade.user_id}, fullname={fullname})."
        if grade.num_feedback_files > 0:
            info += f" {grade.num_feedback_files} feedback file(s)."
        else:
            info += " No feedback files."
        if grade.feedback_text:
            info += f" Feedback: {count_words(grade.feedback_text)} word(s)."
        else:
            info += " No feedback."
        if grade.grade != UNGRADED:
            info += f" Grade: {self.display_grade(grade.grade)}."
        else:
            info += " No grade."
        if grade.locked:
            info += " Submissions locked."
        return info

    # -- notifications -------------------------------------------------------

    def graders(self, user: User) -> list[User]:
        return [
            t for t in enrolled_users_with_capability(self.db, CAP_GRADE, self.context)
            if t.id != user.id
        ]

    def email_graders(self, submission: Submission) -> None:
        if not self.assignment.send_notifications:
            return

        user = self.db.query(User).filter(User.id == submission.user_id).first()
        if user is None:
            return

        url = f"{settings.BASE_URL}/assignments/{self.assignment.id}"
        subject = f"Submitted: {user.full_name} -> {self.assignment.name}"
        text = (
            f"{self.assignment.course.shortname} -> Assignment -> {self.assignment.name}\n"
            + "-" * 69 + "\n"
            + f"{user.full_name} has updated their assignment submission for '{self.assignment.name}'.\n"
            + f"It is available here: {url}\n"
            + "-" * 69 + "\n"
        )
        for teacher in self.graders(user):
            html = ""
            if teacher.mail_html:
                html = (
                    f"<p>{escape(user.full_name)} has updated their assignment submission for "
                    f"<a href=\"{url}\">{escape(self.assignment.name)}</a>.</p>"
                )
            message = OutgoingMessage(
                user_from_id=user.id,
                user_to_id=teacher.id,
                subject=subject,
                full_message=text,
                full_message_html=html,
                small_message=subject,
                context_url=url,
                context_url_name=self.assignment.name,
            )
            self._side_effect("grader notification", self.notifier.send, message, self.ctx.now())

    # -- student facing status ---------------------------------------------

    def submission_status(self, user_id: int | None = None) -> dict:
        self.require(CAP_VIEW)
        user_id = user_id or self.ctx.actor_id
        if user_id != self.ctx.actor_id:
            self.require(CAP_GRADE)

        submission = get_submission(self.ctx, self.assignment, user_id)
        grade = get_grade(self.ctx, self.assignment, user_id)
        storage = FileStorage(self.db)
        now = self.ctx.now()

        files = []
        if submission:
            files = [
                {"filepath": f.filepath, "filename": f.filename, "filesize": f.filesize, "mimetype": f.mimetype}
                for f in storage.get_area_files(self.assignment.id, FILEAREA_SUBMISSION_FILES, user_id)
            ]

        graded = grade is not None and (grade.grade != UNGRADED or bool(grade.feedback_text))
        return {
            "assignment_id": self.assignment.id,
            "user_id": user_id,
            "status": submission.status if submission else SubmissionState.NO_SUBMISSION.value,
            "locked": bool(grade and grade.locked),
            "can_edit": self.submissions_open(user_id),
            "can_submit": bool(
                self.assignment.submission_drafts
                and submission
                and submission.status == STATUS_DRAFT
                and self.submissions_open(user_id)
            ),
            "time_modified": submission.time_modified if submission else None,
            "due_date": self.assignment.due_date or None,
            "time_remaining": (self.assignment.due_date - now) if self.assignment.due_date else None,
            "online_text_words": count_words(submission.online_text) if submission else 0,
            "num_files": submission.num_files if submission else 0,
            "files": files,
            "grade": self.display_grade(grade.grade) if graded else None,
            "feedback": grade.feedback_text if graded else None,
            "grader_id": grade.grader_id if graded else None,
            "time_graded": grade.time_modified if graded else None,
        }
