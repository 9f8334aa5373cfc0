"""Assignment context and plugin settings schemas"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qpy_submission.models.enums import QuestionBehaviour


class AssignmentContext(BaseModel):
    """
    The assignment instance a hook call is about.

    default_instance_id is the instance whose question reference is looked up;
    it equals instance_id unless the host says otherwise.
    """
    model_config = ConfigDict(frozen=True)

    context_id: int = Field(..., gt=0)
    instance_id: int = Field(..., gt=0)
    default_instance_id: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def default_instance(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("default_instance_id") is None:
            data = {**data, "default_instance_id": data.get("instance_id")}
        return data


class PluginSettingsUpdate(BaseModel):
    """Settings form data; values are checked by PluginConfigService.validate_settings"""
    question_id: int
    preferred_behaviour: str = QuestionBehaviour.DEFERRED_FEEDBACK.value


class PluginSettingsResponse(BaseModel):
    question_id: Optional[int] = None
    preferred_behaviour: QuestionBehaviour
