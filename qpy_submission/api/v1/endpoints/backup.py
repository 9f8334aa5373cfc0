"""Backup and restore hooks"""

import xml.etree.ElementTree as ET
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.api import deps
from qpy_submission.backup.annotator import BackupAnnotator
from qpy_submission.backup.restore import AssignmentRestoreReader
from qpy_submission.backup.structure import AssignmentBackupWriter, to_bytes
from qpy_submission.backup.tracking import BackupIdsService, RestoreMappingService
from qpy_submission.core.logging import get_logger
from qpy_submission.core.rate_limit import hook_limit
from qpy_submission.database import atomic
from qpy_submission.models.enums import BackupItem
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.schemas.backup import AnnotationSummary, MappingEntry, RestoreTask
from qpy_submission.schemas.responses import SuccessResponse
from qpy_submission.services.question_engine import QuestionEngine

logger = get_logger(__name__)

router = APIRouter()

# backupid / restoreid columns are String(32)
RUN_ID_MAX_LENGTH = 32


@router.post("/assignments/{assignment_id}/backup")
@hook_limit
async def backup_assignment(
    request: Request,
    backup_id: str = Query(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    host: str = Depends(deps.get_host),
    assignment: AssignmentContext = Depends(deps.get_assignment),
    db: AsyncSession = Depends(deps.get_db),
    engine: QuestionEngine = Depends(deps.get_question_engine),
) -> Response:
    """Annotate question categories for the run and return the plugin's XML."""
    async with atomic(db):
        await BackupAnnotator(db, assignment, BackupIdsService(db, backup_id)).collect()
    root = await AssignmentBackupWriter(db, assignment, engine).build()
    return Response(content=to_bytes(root), media_type="application/xml")


@router.get("/backups/{backup_id}/annotations", response_model=SuccessResponse)
@hook_limit
async def get_annotations(
    request: Request,
    backup_id: str = Path(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    host: str = Depends(deps.get_host),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    backup_ids = BackupIdsService(db, backup_id)
    return SuccessResponse(data=AnnotationSummary(
        backup_id=backup_id,
        full=await backup_ids.get_ids(BackupItem.QUESTION_CATEGORY),
        partial=await backup_ids.get_ids(BackupItem.QUESTION_CATEGORY_PARTIAL),
    ))


@router.delete("/backups/{backup_id}", response_model=SuccessResponse)
@hook_limit
async def finish_backup(
    request: Request,
    backup_id: str = Path(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    host: str = Depends(deps.get_host),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Drop the run's annotations once the host has written its backup."""
    async with atomic(db):
        removed = await BackupIdsService(db, backup_id).clear()
    logger.info("Backup run cleared", extra={"backup_id": backup_id, "count": removed})
    return SuccessResponse(data={"backup_id": backup_id, "removed": removed})


@router.put("/restores/{restore_id}/mappings", response_model=SuccessResponse)
@hook_limit
async def set_restore_mappings(
    request: Request,
    entries: List[MappingEntry],
    restore_id: str = Path(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    host: str = Depends(deps.get_host),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Record the old-to-new ids the host assigned while restoring its own rows."""
    mappings = RestoreMappingService(db, restore_id)
    async with atomic(db):
        for entry in entries:
            await mappings.set_mapping(entry.itemname, entry.oldid, entry.newid)
    return SuccessResponse(data={"restore_id": restore_id, "count": len(entries)})


@router.post("/restores/{restore_id}/assignments/{assignment_id}", response_model=SuccessResponse)
@hook_limit
async def restore_assignment(
    request: Request,
    assignment_id: int = Path(..., gt=0),
    restore_id: str = Path(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    context_id: int = Query(..., gt=0),
    host: str = Depends(deps.get_host),
    db: AsyncSession = Depends(deps.get_db),
    engine: QuestionEngine = Depends(deps.get_question_engine),
) -> Any:
    """Restore a backup document into the (new) assignment assignment_id."""
    try:
        root = ET.fromstring(await request.body())
    except ET.ParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid backup XML: {e}")

    task = RestoreTask(restore_id=restore_id, new_assignment_id=assignment_id, new_context_id=context_id)
    summary = await AssignmentRestoreReader(db, task, engine).restore(root)
    return SuccessResponse(data=summary, message="Restore completed")


@router.delete("/restores/{restore_id}", response_model=SuccessResponse)
@hook_limit
async def finish_restore(
    request: Request,
    restore_id: str = Path(..., min_length=1, max_length=RUN_ID_MAX_LENGTH),
    host: str = Depends(deps.get_host),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Drop the run's id mappings once every assignment of the restore is in."""
    async with atomic(db):
        removed = await RestoreMappingService(db, restore_id).clear()
    logger.info("Restore run cleared", extra={"restore_id": restore_id, "count": removed})
    return SuccessResponse(data={"restore_id": restore_id, "removed": removed})
