"""Backup and restore schemas"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from qpy_submission.models.enums import BackupItem


class RestoreTask(BaseModel):
    """Identifiers of one restore run into a new assignment instance"""
    model_config = ConfigDict(frozen=True)

    restore_id: str = Field(..., min_length=1, max_length=32)
    new_assignment_id: int
    new_context_id: int


class MappingEntry(BaseModel):
    itemname: BackupItem
    oldid: int
    newid: int


class AnnotationSummary(BaseModel):
    backup_id: str
    full: List[int]
    partial: List[int]


class RestoreSummary(BaseModel):
    references: int = 0
    submissions: int = 0
    skipped: int = 0
