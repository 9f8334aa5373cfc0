"""Resolution and upkeep of the question an assignment points at"""

from typing import List, NamedTuple, Optional, Tuple

from sqlalchemy import and_, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.core.logging import get_logger
from qpy_submission.models.enums import COMPONENT, QUESTION_AREA
from qpy_submission.models.question import (
    QuestionBankEntry,
    QuestionCategory,
    QuestionReference,
    QuestionVersion,
)
from qpy_submission.schemas.assignment import AssignmentContext

logger = get_logger(__name__)


class ResolvedQuestion(NamedTuple):
    question_id: int
    bank_entry_id: int
    version: int


def dialect_insert(db: AsyncSession):
    """The dialect-specific INSERT construct offering ON CONFLICT clauses"""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


class QuestionReferenceResolver:
    """Looks up and maintains this plugin's row in question_references."""

    def __init__(self, db: AsyncSession, assignment: AssignmentContext):
        self.db = db
        self.assignment = assignment

    def _slot_filter(self, item_id: int):
        return and_(
            QuestionReference.usingcontextid == self.assignment.context_id,
            QuestionReference.component == COMPONENT,
            QuestionReference.questionarea == QUESTION_AREA,
            QuestionReference.itemid == item_id,
        )

    async def get_reference(self) -> Optional[QuestionReference]:
        result = await self.db.execute(
            select(QuestionReference)
            .where(self._slot_filter(self.assignment.default_instance_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def resolve(self) -> Optional[ResolvedQuestion]:
        """
        Resolve the configured question of the assignment.

        A reference without a version follows the latest version of its entry.
        Returns None when nothing is configured or the version is gone.
        """
        reference = await self.get_reference()
        if reference is None:
            return None

        version = reference.version
        if version is None:
            version = await self.db.scalar(
                select(func.max(QuestionVersion.version))
                .where(QuestionVersion.questionbankentryid == reference.questionbankentryid)
            )
            if version is None:
                return None

        question_id = await self.db.scalar(
            select(QuestionVersion.questionid).where(
                QuestionVersion.questionbankentryid == reference.questionbankentryid,
                QuestionVersion.version == version,
            )
        )
        if question_id is None:
            logger.warning(
                "Question reference points at a missing version",
                extra={
                    "context_id": self.assignment.context_id,
                    "item_id": reference.itemid,
                    "bank_entry_id": reference.questionbankentryid,
                    "version": version,
                },
            )
            return None
        return ResolvedQuestion(question_id, reference.questionbankentryid, version)

    async def get_question_version(self, question_id: int) -> Optional[QuestionVersion]:
        result = await self.db.execute(
            select(QuestionVersion).where(QuestionVersion.questionid == question_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, bank_entry_id: int, version: Optional[int]) -> None:
        """Point the assignment at (entry, version), inserting or updating in one statement."""
        insert = dialect_insert(self.db)
        stmt = insert(QuestionReference).values(
            usingcontextid=self.assignment.context_id,
            component=COMPONENT,
            questionarea=QUESTION_AREA,
            itemid=self.assignment.instance_id,
            questionbankentryid=bank_entry_id,
            version=version,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["usingcontextid", "component", "questionarea", "itemid"],
            set_={
                "questionbankentryid": stmt.excluded.questionbankentryid,
                "version": stmt.excluded.version,
            },
        )
        await self.db.execute(stmt)
        logger.info(
            "Question reference saved",
            extra={
                "context_id": self.assignment.context_id,
                "item_id": self.assignment.instance_id,
                "bank_entry_id": bank_entry_id,
                "version": version,
            },
        )

    async def delete_for_item(self) -> int:
        result = await self.db.execute(
            delete(QuestionReference).where(self._slot_filter(self.assignment.instance_id))
        )
        return result.rowcount or 0

    async def references_for_item(self) -> List[QuestionReference]:
        result = await self.db.execute(
            select(QuestionReference)
            .where(self._slot_filter(self.assignment.instance_id))
            .order_by(QuestionReference.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def categories_for_context(self) -> List[Tuple[int, int]]:
        """(id, parent) of every category holding an entry this plugin references in the context."""
        result = await self.db.execute(
            select(QuestionCategory.id, QuestionCategory.parent)
            .select_from(QuestionReference)
            .join(QuestionBankEntry, QuestionBankEntry.id == QuestionReference.questionbankentryid)
            .join(QuestionCategory, QuestionCategory.id == QuestionBankEntry.questioncategoryid)
            .where(
                QuestionReference.usingcontextid == self.assignment.context_id,
                QuestionReference.component == COMPONENT,
                QuestionReference.questionarea == QUESTION_AREA,
            )
            .distinct()
            .order_by(QuestionCategory.id)
        )
        return [(row.id, row.parent) for row in result.all()]

    async def get_category_parent(self, category_id: int) -> Optional[int]:
        return await self.db.scalar(
            select(QuestionCategory.parent).where(QuestionCategory.id == category_id)
        )
