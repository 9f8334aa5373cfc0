"""Submission hook schemas"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class SubmissionActions(BaseModel):
    """Posted answer data forwarded to the question engine"""
    action_data: Dict[str, Any] = {}


class CopySubmissionRequest(BaseModel):
    source_submission_id: int


class SubmissionUsageResponse(BaseModel):
    assignment: int
    submission: int
    questionusageid: int

    model_config = ConfigDict(from_attributes=True)


class RenderedQuestion(BaseModel):
    submission_id: int
    usage_id: Optional[int] = None
    html: str


class PrecheckResult(BaseModel):
    ready: bool
    message: Optional[str] = None
