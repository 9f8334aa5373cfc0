"""Models Package - Export all models for easy imports"""

from qpy_submission.models.base import BaseModel, TimestampMixin
from qpy_submission.models.enums import *
from qpy_submission.models.submission import SubmissionUsageLink
from qpy_submission.models.question import (
    QuestionCategory,
    QuestionBankEntry,
    QuestionVersion,
    QuestionReference,
)
from qpy_submission.models.config import AssignPluginConfig
from qpy_submission.models.backup import BackupIdRecord, RestoreMapping


__all__ = [
    # Base classes
    "BaseModel",
    "TimestampMixin",

    # Enums and tags
    "COMPONENT",
    "QUESTION_AREA",
    "PLUGIN_NAME",
    "PLUGIN_SUBTYPE",
    "DeletionReason",
    "QuestionBehaviour",
    "BackupItem",

    # Submission
    "SubmissionUsageLink",

    # Question bank
    "QuestionCategory",
    "QuestionBankEntry",
    "QuestionVersion",
    "QuestionReference",

    # Configuration
    "AssignPluginConfig",

    # Backup and restore
    "BackupIdRecord",
    "RestoreMapping",
]
