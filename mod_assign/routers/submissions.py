from fastapi import APIRouter, Depends

from mod_assign.routers.assignments import get_lifecycle
from mod_assign.schemas.submission import SubmissionRead, SubmissionSave, SubmissionStatus
from mod_assign.services.lifecycle import SubmissionLifecycle

router = APIRouter()


def _plugin_data(payload: SubmissionSave) -> dict:
    """Shape the request body the way the submission plugins read it."""
    data = payload.model_dump(exclude_unset=True, exclude={"files"})
    if payload.files is not None:
        data["files"] = [f.model_dump() for f in payload.files]
    return data


@router.get("/assignments/{assignment_id}/submission", response_model=SubmissionStatus)
def submission_status(
    user_id: int | None = None,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    return lifecycle.submission_status(user_id)


@router.put("/assignments/{assignment_id}/submission", response_model=SubmissionRead)
def save_submission(
    payload: SubmissionSave,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    return lifecycle.save_submission(_plugin_data(payload))


@router.post("/assignments/{assignment_id}/submission/submit", response_model=SubmissionRead)
def submit_for_grading(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    return lifecycle.submit_for_grading()
