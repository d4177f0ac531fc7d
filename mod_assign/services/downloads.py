import logging
import re

from mod_assign.core.permissions import CAP_GRADE, CAP_SUBMIT, CAP_VIEW, enrolled_users_with_capability
from mod_assign.models.file import FILEAREA_SUBMISSION_FILES
from mod_assign.models.submission import Submission
from mod_assign.services.files import FileStorage, archive_to_bytes
from mod_assign.services.lifecycle import SubmissionLifecycle

logger = logging.getLogger(__name__)

ONLINETEXT_FILENAME = "onlinetext.html"


def clean_filename(name: str) -> str:
    cleaned = re.sub(r"[^\w\-. ]+", "", name).strip()
    return cleaned.replace(" ", "_") or "user"


def archive_filename(lifecycle: SubmissionLifecycle) -> str:
    a = lifecycle.assignment
    return clean_filename(f"{a.course.shortname}-{a.name}-{a.id}") + ".zip"


def download_submissions(lifecycle: SubmissionLifecycle) -> bytes:
    """Zip every participant's submission, one folder per user."""
    lifecycle.require(CAP_VIEW, CAP_GRADE)
    db, assignment = lifecycle.db, lifecycle.assignment
    storage = FileStorage(db)

    submissions = {
        s.user_id: s
        for s in db.query(Submission).filter(Submission.assignment_id == assignment.id).all()
    }

    files_for_zipping: dict[str, bytes] = {}
    for user in enrolled_users_with_capability(db, CAP_SUBMIT, lifecycle.context):
        submission = submissions.get(user.id)
        if submission is None:
            continue
        prefix = f"{clean_filename(user.full_name)}_{user.id}"

        for f in storage.get_area_files(assignment.id, FILEAREA_SUBMISSION_FILES, user.id):
            path = f"{f.filepath.strip('/')}/{f.filename}".lstrip("/")
            files_for_zipping[f"{prefix}/{path}"] = f.content

        if assignment.online_text_submission and submission.online_text:
            files_for_zipping[f"{prefix}/{ONLINETEXT_FILENAME}"] = submission.online_text.encode("utf-8")

    logger.info(
        "assignment %s: %s files zipped for user %s", assignment.id, len(files_for_zipping), lifecycle.ctx.actor_id
    )
    lifecycle.log("download all submissions", "Download all submissions")
    return archive_to_bytes(files_for_zipping)
