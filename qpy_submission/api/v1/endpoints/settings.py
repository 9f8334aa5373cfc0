"""Assignment settings hooks"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.api import deps
from qpy_submission.core.rate_limit import hook_limit
from qpy_submission.schemas.assignment import AssignmentContext, PluginSettingsUpdate
from qpy_submission.schemas.responses import ErrorDetail, ErrorResponse, SuccessResponse
from qpy_submission.services.plugin_config_service import PluginConfigService

router = APIRouter()


@router.get("/{assignment_id}/settings", response_model=SuccessResponse)
@hook_limit
async def get_settings(
    request: Request,
    host: str = Depends(deps.get_host),
    assignment: AssignmentContext = Depends(deps.get_assignment),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Current question and behaviour, used as form defaults."""
    settings = await PluginConfigService(db, assignment).get_settings()
    return SuccessResponse(data=settings)


@router.put("/{assignment_id}/settings", response_model=SuccessResponse)
@hook_limit
async def save_settings(
    request: Request,
    settings_in: PluginSettingsUpdate,
    host: str = Depends(deps.get_host),
    assignment: AssignmentContext = Depends(deps.get_assignment),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Validate and save the settings form. Field errors come back as 422."""
    service = PluginConfigService(db, assignment)
    errors = await service.validate_settings(settings_in)
    if errors:
        body = ErrorResponse(error=ErrorDetail(
            code="INVALID_SETTINGS",
            message="The settings contain errors",
            fields=errors,
        ))
        return JSONResponse(status_code=422, content=body.model_dump())

    await service.save_settings(settings_in)
    return SuccessResponse(data=await service.get_settings(), message="Settings saved")
