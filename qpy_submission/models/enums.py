"""Centralized Enum and Constant Definitions"""

import enum

# Tags identifying this plugin's rows in shared host tables
COMPONENT = "assignsubmission_qpy"
QUESTION_AREA = "main"
PLUGIN_NAME = "qpy"
PLUGIN_SUBTYPE = "assignsubmission"


class DeletionReason(str, enum.Enum):
    """Why an assignment's plugin data is being deleted"""
    FULL_DELETE = "full_delete"
    RESET = "reset"


class QuestionBehaviour(str, enum.Enum):
    """Answering behaviours the question engine offers"""
    DEFERRED_FEEDBACK = "deferredfeedback"
    DEFERRED_CBM = "deferredcbm"
    IMMEDIATE_FEEDBACK = "immediatefeedback"
    IMMEDIATE_CBM = "immediatecbm"
    INTERACTIVE = "interactive"
    ADAPTIVE = "adaptive"
    ADAPTIVE_NO_PENALTY = "adaptivenopenalty"


class BackupItem(str, enum.Enum):
    """Item names used in backup id tracking and restore mappings"""
    QUESTION_CATEGORY = "question_category"
    QUESTION_CATEGORY_PARTIAL = "question_category_partial"
    QUESTION_BANK_ENTRY = "question_bank_entry"
    CONTEXT = "context"
    SUBMISSION = "submission"
    ASSIGN = "assign"
    QUESTION_USAGE = "question_usage"
