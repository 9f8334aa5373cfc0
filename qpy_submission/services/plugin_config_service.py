"""Plugin Settings Service - per-assignment configuration"""

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.database import atomic
from qpy_submission.core.logging import get_logger
from qpy_submission.models.config import AssignPluginConfig
from qpy_submission.models.enums import PLUGIN_NAME, PLUGIN_SUBTYPE, QuestionBehaviour
from qpy_submission.schemas.assignment import (
    AssignmentContext,
    PluginSettingsResponse,
    PluginSettingsUpdate,
)
from qpy_submission.services.question_reference_service import QuestionReferenceResolver

logger = get_logger(__name__)

PREFERRED_BEHAVIOUR = "preferredbehaviour"


class PluginConfigService:
    """Settings form backend: read, validate and save the plugin configuration."""

    def __init__(self, db: AsyncSession, assignment: AssignmentContext):
        self.db = db
        self.assignment = assignment
        self.references = QuestionReferenceResolver(db, assignment)

    async def _get_row(self, name: str) -> Optional[AssignPluginConfig]:
        result = await self.db.execute(
            select(AssignPluginConfig).where(
                AssignPluginConfig.assignment == self.assignment.instance_id,
                AssignPluginConfig.plugin == PLUGIN_NAME,
                AssignPluginConfig.subtype == PLUGIN_SUBTYPE,
                AssignPluginConfig.name == name,
            )
        )
        return result.scalar_one_or_none()

    async def get_config(self, name: str) -> Optional[str]:
        row = await self._get_row(name)
        return row.value if row is not None else None

    async def set_config(self, name: str, value: str) -> None:
        row = await self._get_row(name)
        if row is None:
            self.db.add(AssignPluginConfig(
                assignment=self.assignment.instance_id,
                plugin=PLUGIN_NAME,
                subtype=PLUGIN_SUBTYPE,
                name=name,
                value=value,
            ))
        else:
            row.value = value
        await self.db.flush()

    async def get_settings(self) -> PluginSettingsResponse:
        """Current settings; a fresh instance defaults to deferred feedback."""
        resolved = await self.references.resolve()
        behaviour = await self.get_config(PREFERRED_BEHAVIOUR)
        return PluginSettingsResponse(
            question_id=resolved.question_id if resolved else None,
            preferred_behaviour=behaviour or QuestionBehaviour.DEFERRED_FEEDBACK,
        )

    async def validate_settings(self, data: PluginSettingsUpdate) -> Dict[str, str]:
        """Field errors for the settings form; empty when the data can be saved."""
        errors: Dict[str, str] = {}
        if await self.references.get_question_version(data.question_id) is None:
            errors["question_id"] = "Question not found"
        if data.preferred_behaviour not in {behaviour.value for behaviour in QuestionBehaviour}:
            errors["preferred_behaviour"] = "Unknown question behaviour"
        return errors

    async def save_settings(self, data: PluginSettingsUpdate) -> None:
        """
        Store the behaviour and point the assignment at the question's entry and version.
        Call validate_settings first; an unknown question id raises ValueError.
        """
        version = await self.references.get_question_version(data.question_id)
        if version is None:
            raise ValueError(f"Question {data.question_id} does not exist")

        async with atomic(self.db):
            await self.set_config(PREFERRED_BEHAVIOUR, QuestionBehaviour(data.preferred_behaviour).value)
            await self.references.upsert(version.questionbankentryid, version.version)
        logger.info(
            "Plugin settings saved",
            extra={
                "assignment_id": self.assignment.instance_id,
                "question_id": data.question_id,
                "preferred_behaviour": QuestionBehaviour(data.preferred_behaviour).value,
            },
        )
