from typing import Literal

from fastapi import APIRouter, Depends, Query, Response

from mod_assign.core.config import MAX_PER_PAGE
from mod_assign.routers.assignments import get_lifecycle
from mod_assign.schemas.grading import (
    GradeRead,
    GradeSave,
    GradingFilter,
    GradingOptions,
    GradingPage,
    GradingSummary,
    RowUser,
)
from mod_assign.schemas.submission import SubmissionStatus
from mod_assign.services.downloads import archive_filename, download_submissions
from mod_assign.services.files import NewFile
from mod_assign.services.grading_table import (
    DEFAULT_SORT,
    GradingTable,
    grading_options,
    grading_summary,
    save_grading_options,
)
from mod_assign.services.lifecycle import SubmissionLifecycle

router = APIRouter(prefix="/assignments/{assignment_id}/grading")


def _table(
    lifecycle: SubmissionLifecycle,
    filter: str | None,
    sort: str,
    direction: str,
    per_page: int | None,
) -> GradingTable:
    saved_per_page, saved_filter = grading_options(lifecycle)
    return GradingTable(
        lifecycle,
        filter=saved_filter if filter is None else filter,
        sort=sort,
        direction=direction,
        per_page=saved_per_page if per_page is None else per_page,
    )


@router.get("", response_model=GradingPage)
def grading_table(
    page: int = Query(0, ge=0),
    filter: GradingFilter | None = None,
    sort: str = DEFAULT_SORT,
    direction: Literal["asc", "desc"] = "asc",
    per_page: int | None = Query(None, ge=1, le=MAX_PER_PAGE),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    table = _table(lifecycle, filter, sort, direction, per_page)
    return {
        "assignment_id": lifecycle.assignment.id,
        "filter": table.filter,
        "sort": table.sort,
        "direction": table.direction,
        "page": page,
        "per_page": table.per_page,
        "total": table.count(),
        "pages": table.page_count(),
        "rows": list(table.rows(page)),
    }


@router.get("/options", response_model=GradingOptions)
def read_options(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    per_page, filter = grading_options(lifecycle)
    return {"per_page": per_page, "filter": filter}


@router.put("/options", response_model=GradingOptions)
def update_options(
    payload: GradingOptions,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    save_grading_options(lifecycle, payload.per_page, payload.filter)
    return payload


@router.get("/summary", response_model=GradingSummary)
def summary(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    return grading_summary(lifecycle)


@router.get("/rows/{row_number}", response_model=RowUser)
def user_for_row(
    row_number: int,
    filter: GradingFilter | None = None,
    sort: str = DEFAULT_SORT,
    direction: Literal["asc", "desc"] = "asc",
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    table = _table(lifecycle, filter, sort, direction, None)
    return {"row_number": row_number, "user_id": table.user_id_for_row(row_number)}


@router.get("/users/{user_id}", response_model=SubmissionStatus)
def user_status(user_id: int, lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    return lifecycle.submission_status(user_id)


@router.post("/users/{user_id}/revert")
def revert_to_draft(user_id: int, lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    lifecycle.revert_to_draft(user_id)
    return {"user_id": user_id, "status": lifecycle.state(user_id).status.value}


@router.post("/users/{user_id}/lock", response_model=GradeRead)
def lock(user_id: int, lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    return lifecycle.lock(user_id)


@router.post("/users/{user_id}/unlock", response_model=GradeRead)
def unlock(user_id: int, lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    return lifecycle.unlock(user_id)


@router.put("/users/{user_id}/grade", response_model=GradeRead)
def save_grade(
    user_id: int,
    payload: GradeSave,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    feedback_files = None
    if payload.feedback_files is not None:
        feedback_files = [NewFile(**f.model_dump()) for f in payload.feedback_files]
    return lifecycle.save_grade(
        user_id,
        payload.grade,
        feedback_text=payload.feedback,
        feedback_format=payload.feedback_format,
        feedback_files=feedback_files,
    )


@router.get("/download")
def download(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    content = download_submissions(lifecycle)
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_filename(lifecycle)}"'},
    )
