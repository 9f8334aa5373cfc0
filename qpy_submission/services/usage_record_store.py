"""Persistence of submission to question usage links"""

from typing import List, Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.models.submission import SubmissionUsageLink


class UsageRecordStore:
    """CRUD over the assignsubmission_qpy table. Never commits; callers own the transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, submission_id: int) -> Optional[SubmissionUsageLink]:
        result = await self.db.execute(
            select(SubmissionUsageLink).where(SubmissionUsageLink.submission == submission_id)
        )
        return result.scalar_one_or_none()

    async def get_usage_id(self, submission_id: int) -> Optional[int]:
        return await self.db.scalar(
            select(SubmissionUsageLink.questionusageid)
            .where(SubmissionUsageLink.submission == submission_id)
        )

    async def insert(self, assignment_id: int, submission_id: int, usage_id: int) -> SubmissionUsageLink:
        """
        Insert a link row and flush it.

        A second row for the same submission fails on the unique key, which
        aborts the caller's transaction.
        """
        link = SubmissionUsageLink(
            assignment=assignment_id,
            submission=submission_id,
            questionusageid=usage_id,
        )
        self.db.add(link)
        await self.db.flush()
        return link

    async def delete(self, submission_id: int) -> int:
        result = await self.db.execute(
            delete(SubmissionUsageLink).where(SubmissionUsageLink.submission == submission_id)
        )
        return result.rowcount or 0

    def usage_ids_query(self, assignment_id: int) -> Select:
        return (
            select(SubmissionUsageLink.questionusageid)
            .where(SubmissionUsageLink.assignment == assignment_id)
        )

    async def usage_ids_for_assignment(self, assignment_id: int) -> List[int]:
        result = await self.db.execute(self.usage_ids_query(assignment_id))
        return list(result.scalars().all())

    async def list_for_assignment(self, assignment_id: int) -> List[SubmissionUsageLink]:
        result = await self.db.execute(
            select(SubmissionUsageLink)
            .where(SubmissionUsageLink.assignment == assignment_id)
            .order_by(SubmissionUsageLink.submission)
        )
        return list(result.scalars().all())

    async def delete_for_assignment(self, assignment_id: int) -> int:
        result = await self.db.execute(
            delete(SubmissionUsageLink).where(SubmissionUsageLink.assignment == assignment_id)
        )
        return result.rowcount or 0
