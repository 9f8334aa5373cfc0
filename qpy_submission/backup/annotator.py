"""Question category annotation for backups"""

from typing import Set

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.backup.tracking import BackupIdsService
from qpy_submission.core.logging import get_logger
from qpy_submission.models.enums import BackupItem
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_reference_service import QuestionReferenceResolver

logger = get_logger(__name__)


class BackupAnnotationSet(BaseModel):
    """
    Categories a backup must carry.

    full holds every referenced category and all its ancestors so the tree can
    be rebuilt; partial holds the referenced categories whose bank entries,
    not whole contents, are exported.
    """
    full: Set[int] = set()
    partial: Set[int] = set()


class BackupAnnotator:
    def __init__(self, db: AsyncSession, assignment: AssignmentContext, backup_ids: BackupIdsService):
        self.references = QuestionReferenceResolver(db, assignment)
        self.backup_ids = backup_ids
        self.assignment = assignment

    async def _register(self, annotated: Set[int], item_name: BackupItem, category_id: int) -> None:
        if category_id in annotated:
            return
        annotated.add(category_id)
        await self.backup_ids.register(item_name, category_id)

    async def collect(self) -> BackupAnnotationSet:
        """Annotate every referenced category of the context together with its ancestors."""
        annotations = BackupAnnotationSet()
        for category_id, parent_id in await self.references.categories_for_context():
            await self._register(annotations.full, BackupItem.QUESTION_CATEGORY, category_id)
            await self._annotate_ancestors(annotations, category_id, parent_id)
            await self._register(annotations.partial, BackupItem.QUESTION_CATEGORY_PARTIAL, category_id)

        logger.info(
            "Question categories annotated",
            extra={
                "backup_id": self.backup_ids.backup_id,
                "context_id": self.assignment.context_id,
                "full": len(annotations.full),
                "partial": len(annotations.partial),
            },
        )
        return annotations

    async def _annotate_ancestors(self, annotations: BackupAnnotationSet, category_id: int, parent_id: int) -> None:
        visited = {category_id}
        while parent_id:
            if parent_id in visited:
                logger.warning(
                    "Cycle in question category tree",
                    extra={"category_id": category_id, "repeated_id": parent_id},
                )
                return
            visited.add(parent_id)
            await self._register(annotations.full, BackupItem.QUESTION_CATEGORY, parent_id)
            parent_id = await self.references.get_category_parent(parent_id)
