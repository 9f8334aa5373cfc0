"""
Submission to question usage lifecycle.

Every submission that shows a question owns exactly one question usage. This
service creates, loads, copies and removes those usages and keeps the link
table in step with the question engine.
"""

from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.config import settings
from qpy_submission.core.exceptions import LinkNotFound, QuestionNotConfigured
from qpy_submission.core.logging import get_logger
from qpy_submission.database import atomic
from qpy_submission.models.enums import COMPONENT, DeletionReason
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_engine import (
    HIDDEN,
    VISIBLE,
    DisplayOptions,
    QuestionEngine,
    QuestionUsage,
)
from qpy_submission.services.question_reference_service import QuestionReferenceResolver
from qpy_submission.services.usage_record_store import UsageRecordStore

logger = get_logger(__name__)

NOT_ANSWERED_MESSAGE = "The question has not been answered or the answer is incomplete."


class UsageLifecycleManager:
    """Owns the question usages of one assignment's submissions."""

    def __init__(self, db: AsyncSession, assignment: AssignmentContext, engine: QuestionEngine):
        self.db = db
        self.assignment = assignment
        self.engine = engine
        self.store = UsageRecordStore(db)
        self.references = QuestionReferenceResolver(db, assignment)

    async def load_usage(self, submission_id: int, must_exist: bool = True) -> Optional[QuestionUsage]:
        usage_id = await self.store.get_usage_id(submission_id)
        if usage_id is None:
            if must_exist:
                raise LinkNotFound(f"No question usage found for submission {submission_id}")
            return None
        return await self.engine.load(usage_id)

    async def get_or_create_usage(self, submission_id: int, base_on: Optional[int] = None) -> QuestionUsage:
        """
        Return the submission's usage, creating it on first use.

        Args:
            submission_id: Submission the usage belongs to
            base_on: Usage id whose first attempt seeds the new attempt

        Raises:
            QuestionNotConfigured: If the assignment has no question
        """
        usage = await self.load_usage(submission_id, must_exist=False)
        if usage is not None:
            return usage
        try:
            return await self._create_usage(submission_id, base_on)
        except IntegrityError:
            # A concurrent request linked the submission first
            usage = await self.load_usage(submission_id, must_exist=False)
            if usage is None:
                raise
            return usage

    async def _create_usage(self, submission_id: int, base_on: Optional[int]) -> QuestionUsage:
        resolved = await self.references.resolve()
        if resolved is None:
            raise QuestionNotConfigured(
                f"No question is set up for assignment {self.assignment.instance_id}"
            )
        usage = None
        try:
            async with atomic(self.db):
                usage = await self.engine.create_usage(COMPONENT, self.assignment.context_id)
                await self.engine.set_preferred_behaviour(usage, settings.DEFAULT_PREFERRED_BEHAVIOUR)
                slot = await self.engine.add_question(usage, resolved.question_id)
                if base_on is not None:
                    previous = await self.engine.load(base_on)
                    prior = await self.engine.get_attempt(previous, previous.first_slot)
                    await self.engine.start_based_on(usage, slot, prior)
                else:
                    await self.engine.start(usage, slot)
                usage_id = await self.engine.save(usage)
                await self.store.insert(self.assignment.instance_id, submission_id, usage_id)
        except Exception:
            if usage is not None and usage.id is not None:
                await self._discard_engine_usage(usage.id)
            raise

        logger.info(
            "Question usage created",
            extra={
                "assignment_id": self.assignment.instance_id,
                "submission_id": submission_id,
                "usage_id": usage.id,
                "question_id": resolved.question_id,
                "based_on": base_on,
            },
        )
        return usage

    async def _discard_engine_usage(self, usage_id: int) -> None:
        """Delete an engine usage whose link never got committed."""
        try:
            await self.engine.delete(usage_id)
        except Exception:
            logger.exception("Could not discard orphaned question usage", extra={"usage_id": usage_id})

    async def apply_submission_actions(self, submission_id: int, action_data: dict) -> QuestionUsage:
        """Store an in-progress answer."""
        async with atomic(self.db):
            usage = await self.load_usage(submission_id)
            await self.engine.process_actions(usage, action_data)
            await self.engine.save(usage)
        return usage

    async def submit_for_grading(self, submission_id: int) -> QuestionUsage:
        async with atomic(self.db):
            usage = await self.load_usage(submission_id)
            if all(attempt.is_finished for attempt in usage.attempts):
                logger.info(
                    "Submission already finished",
                    extra={"submission_id": submission_id, "usage_id": usage.id},
                )
                return usage
            await self.engine.finish_all(usage)
            await self.engine.save(usage)
        logger.info(
            "Submission finished for grading",
            extra={"submission_id": submission_id, "usage_id": usage.id},
        )
        return usage

    async def revert_to_draft(self, submission_id: int) -> None:
        # The attempt stays finished; the engine has no reopen action.
        logger.info("Submission reverted to draft", extra={"submission_id": submission_id})

    async def copy_from(self, source_submission_id: int, dest_submission_id: int) -> Optional[QuestionUsage]:
        """Base a new submission's usage on the last attempt of an older submission."""
        await self.remove(dest_submission_id)

        source_usage_id = await self.store.get_usage_id(source_submission_id)
        if source_usage_id is None:
            return None
        return await self.get_or_create_usage(dest_submission_id, base_on=source_usage_id)

    async def remove(self, submission_id: int) -> None:
        """Delete the submission's usage and link; nothing to do when there is none."""
        async with atomic(self.db):
            usage_id = await self.store.get_usage_id(submission_id)
            if usage_id is None:
                return
            await self.store.delete(submission_id)
            await self.engine.delete(usage_id)
        logger.info(
            "Question usage removed",
            extra={"submission_id": submission_id, "usage_id": usage_id},
        )

    async def _remove_all(self, assignment_id: int) -> int:
        usage_ids = await self.store.usage_ids_for_assignment(assignment_id)
        await self.store.delete_for_assignment(assignment_id)
        await self.engine.delete_usages(usage_ids)
        return len(usage_ids)

    async def remove_all(self, assignment_id: int) -> int:
        async with atomic(self.db):
            removed = await self._remove_all(assignment_id)
        logger.info(
            "Question usages removed for assignment",
            extra={"assignment_id": assignment_id, "count": removed},
        )
        return removed

    async def delete_instance(self, reason: DeletionReason) -> int:
        """
        Remove the plugin data of the assignment.

        The question reference survives a reset and goes only with the
        assignment itself.
        """
        async with atomic(self.db):
            if reason == DeletionReason.FULL_DELETE:
                await self.references.delete_for_item()
            removed = await self._remove_all(self.assignment.instance_id)
        logger.info(
            "Assignment plugin data deleted",
            extra={
                "assignment_id": self.assignment.instance_id,
                "reason": DeletionReason(reason).value,
                "usages": removed,
            },
        )
        return removed

    async def precheck_submission(self, submission_id: int) -> Union[bool, str]:
        """True when the answer can be submitted, otherwise a message for the student."""
        usage = await self.load_usage(submission_id)
        if not await self.engine.is_gradable_response(usage, usage.first_slot):
            return NOT_ANSWERED_MESSAGE
        return True

    async def render_form(self, submission_id: int) -> tuple[QuestionUsage, str]:
        """The editable question for the submission form, creating the usage on first view."""
        usage = await self.get_or_create_usage(submission_id)
        html = await self.engine.render(usage, usage.first_slot, DisplayOptions(flags=HIDDEN))
        return usage, html

    async def view_summary(
        self,
        submission_id: int,
        *,
        can_grade: bool = False,
        hide_identities: bool = False,
        team_submission: bool = False,
        user_id: Optional[int] = None,
    ) -> str:
        """Read-only rendering; graders also see the response history."""
        usage = await self.load_usage(submission_id, must_exist=False)
        if usage is None:
            return ""

        options = DisplayOptions(readonly=True, flags=HIDDEN, history=HIDDEN)
        if can_grade:
            options.history = VISIBLE
            if hide_identities:
                options.userinfoinhistory = HIDDEN
            elif team_submission:
                options.userinfoinhistory = True
            else:
                options.userinfoinhistory = user_id
        return await self.engine.render(usage, usage.first_slot, options)
