"""Submission lifecycle hooks"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from qpy_submission.api import deps
from qpy_submission.core.rate_limit import hook_limit
from qpy_submission.models.enums import DeletionReason
from qpy_submission.schemas.responses import SuccessResponse
from qpy_submission.schemas.submission import (
    CopySubmissionRequest,
    PrecheckResult,
    RenderedQuestion,
    SubmissionActions,
)
from qpy_submission.services.usage_lifecycle_service import UsageLifecycleManager

router = APIRouter()


@router.get("/{assignment_id}/submissions/{submission_id}/form", response_model=SuccessResponse)
@hook_limit
async def get_submission_form(
    request: Request,
    submission_id: int,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    """Question HTML for the submission form; the first view creates the usage."""
    usage, html = await lifecycle.render_form(submission_id)
    return SuccessResponse(data=RenderedQuestion(submission_id=submission_id, usage_id=usage.id, html=html))


@router.get("/{assignment_id}/submissions/{submission_id}/summary", response_model=SuccessResponse)
@hook_limit
async def get_submission_summary(
    request: Request,
    submission_id: int,
    can_grade: bool = Query(False),
    hide_identities: bool = Query(False),
    team_submission: bool = Query(False),
    user_id: Optional[int] = Query(None),
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    html = await lifecycle.view_summary(
        submission_id,
        can_grade=can_grade,
        hide_identities=hide_identities,
        team_submission=team_submission,
        user_id=user_id,
    )
    return SuccessResponse(data=RenderedQuestion(submission_id=submission_id, html=html))


@router.get("/{assignment_id}/submissions/{submission_id}/precheck", response_model=SuccessResponse)
@hook_limit
async def precheck_submission(
    request: Request,
    submission_id: int,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    result = await lifecycle.precheck_submission(submission_id)
    if result is True:
        return SuccessResponse(data=PrecheckResult(ready=True))
    return SuccessResponse(data=PrecheckResult(ready=False, message=result))


@router.post("/{assignment_id}/submissions/{submission_id}/save", response_model=SuccessResponse)
@hook_limit
async def save_submission(
    request: Request,
    submission_id: int,
    actions: SubmissionActions,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    usage = await lifecycle.apply_submission_actions(submission_id, actions.action_data)
    return SuccessResponse(data={"submission_id": submission_id, "usage_id": usage.id}, message="Answer saved")


@router.post("/{assignment_id}/submissions/{submission_id}/submit", response_model=SuccessResponse)
@hook_limit
async def submit_for_grading(
    request: Request,
    submission_id: int,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    usage = await lifecycle.submit_for_grading(submission_id)
    return SuccessResponse(data={"submission_id": submission_id, "usage_id": usage.id}, message="Submitted for grading")


@router.post("/{assignment_id}/submissions/{submission_id}/revert", response_model=SuccessResponse)
@hook_limit
async def revert_to_draft(
    request: Request,
    submission_id: int,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    await lifecycle.revert_to_draft(submission_id)
    return SuccessResponse(data={"submission_id": submission_id})


@router.post("/{assignment_id}/submissions/{submission_id}/copy", response_model=SuccessResponse)
@hook_limit
async def copy_submission(
    request: Request,
    submission_id: int,
    copy_in: CopySubmissionRequest,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    """Base this submission on an earlier one of the same student."""
    usage = await lifecycle.copy_from(copy_in.source_submission_id, submission_id)
    return SuccessResponse(
        data={"submission_id": submission_id, "usage_id": usage.id if usage else None},
        message="Submission copied",
    )


@router.delete("/{assignment_id}/submissions/{submission_id}", response_model=SuccessResponse)
@hook_limit
async def remove_submission(
    request: Request,
    submission_id: int,
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    await lifecycle.remove(submission_id)
    return SuccessResponse(data={"submission_id": submission_id}, message="Submission data removed")


@router.delete("/{assignment_id}", response_model=SuccessResponse)
@hook_limit
async def delete_instance(
    request: Request,
    reason: DeletionReason = Query(...),
    host: str = Depends(deps.get_host),
    lifecycle: UsageLifecycleManager = Depends(deps.get_lifecycle),
) -> Any:
    """Whole-activity deletion or course reset."""
    removed = await lifecycle.delete_instance(reason)
    return SuccessResponse(data={"removed_usages": removed, "reason": reason.value})
