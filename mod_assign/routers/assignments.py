from dataclasses import asdict

from fastapi import APIRouter, Depends, Response, status

from mod_assign.core.context import RequestContext
from mod_assign.core.current_user import get_request_context
from mod_assign.core.deps import get_registry
from mod_assign.core.permissions import CAP_SUBMIT, CAP_VIEW
from mod_assign.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    FormSection,
    PluginInfo,
)
from mod_assign.services import instances
from mod_assign.services.lifecycle import SubmissionLifecycle
from mod_assign.services.plugins import PluginRegistry
from mod_assign.services.store import get_submission

router = APIRouter()


def get_lifecycle(
    assignment_id: int,
    ctx: RequestContext = Depends(get_request_context),
    registry: PluginRegistry = Depends(get_registry),
) -> SubmissionLifecycle:
    assignment = instances.get_assignment_or_404(ctx.db, assignment_id)
    return SubmissionLifecycle(ctx, assignment, registry)


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: int,
    ctx: RequestContext = Depends(get_request_context),
):
    return instances.list_course_assignments(ctx, course_id)


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    ctx: RequestContext = Depends(get_request_context),
    registry: PluginRegistry = Depends(get_registry),
):
    values = payload.model_dump(exclude={"plugin_settings"}, exclude_unset=True)
    return instances.add_instance(ctx, registry, course_id, values, payload.plugin_settings)


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
def read_assignment(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    lifecycle.require(CAP_VIEW)
    return lifecycle.assignment


@router.patch("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    payload: AssignmentUpdate,
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    values = payload.model_dump(exclude={"plugin_settings"}, exclude_unset=True)
    return instances.update_instance(
        lifecycle.ctx, lifecycle.registry, lifecycle.assignment, values, payload.plugin_settings
    )


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    instances.delete_instance(lifecycle.ctx, lifecycle.assignment)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/assignments/{assignment_id}/plugins", response_model=list[PluginInfo])
def list_plugins(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    lifecycle.require(CAP_VIEW)
    return [
        {
            "name": plugin.name,
            "display_name": plugin.display_name(),
            "enabled": plugin.is_enabled(lifecycle.assignment),
            "settings": [asdict(s) for s in plugin.settings_schema()],
        }
        for plugin in lifecycle.registry
    ]


@router.get("/assignments/{assignment_id}/form", response_model=list[FormSection])
def submission_form(lifecycle: SubmissionLifecycle = Depends(get_lifecycle)):
    lifecycle.require(CAP_VIEW, CAP_SUBMIT)
    submission = get_submission(lifecycle.ctx, lifecycle.assignment)
    return [
        {**section, "elements": [asdict(e) for e in section["elements"]]}
        for section in lifecycle.registry.form_elements(lifecycle.assignment, submission)
    ]
