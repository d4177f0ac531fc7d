from fastapi import APIRouter, Depends

from mod_assign.core.context import RequestContext
from mod_assign.core.current_user import get_request_context
from mod_assign.schemas.external import (
    GetAssignmentsRequest,
    GetAssignmentsResponse,
    GetSubmissionsRequest,
    GetSubmissionsResponse,
)
from mod_assign.services import external

router = APIRouter()


@router.post("/assignments", response_model=GetAssignmentsResponse)
def get_assignments(
    payload: GetAssignmentsRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    result = external.get_assignments(ctx, payload.courseids, payload.capabilities)
    return external.as_dict(result)


@router.post("/submissions", response_model=GetSubmissionsResponse)
def get_submissions(
    payload: GetSubmissionsRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    result = external.get_submissions(
        ctx, payload.assignmentids, payload.status, payload.since, payload.before
    )
    return external.as_dict(result)
