"""
Restore of this plugin's backup data into a new assignment.

Archived ids (context, bank entry, submission) are mapped into the new id
space. A submission link can only be written once the question engine has
restored the archived usage and minted its new id, so link insertion is a
two-step request: begin_submission_insert() holds the mapped row,
complete_submission_insert() attaches the new usage id and writes it. Only
one request may be outstanding at a time.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.backup.structure import read_fields
from qpy_submission.backup.tracking import RestoreMappingService
from qpy_submission.core.exceptions import MappingNotFound, ProtocolViolation, RestoreConflict
from qpy_submission.core.logging import get_logger
from qpy_submission.database import atomic
from qpy_submission.models.enums import COMPONENT, QUESTION_AREA, BackupItem
from qpy_submission.models.question import QuestionReference
from qpy_submission.models.submission import SubmissionUsageLink
from qpy_submission.schemas.backup import RestoreSummary, RestoreTask
from qpy_submission.services.question_engine import QuestionEngine
from qpy_submission.services.usage_record_store import UsageRecordStore

logger = get_logger(__name__)


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class PendingInsert:
    """A mapped submission link still waiting for its new usage id"""
    assignment_id: int
    submission_id: int
    old_usage_id: Optional[int] = None


class RestoreReconnector:
    """Writes restored references and links; not shared between restore runs."""

    def __init__(self, db: AsyncSession, task: RestoreTask, mappings: RestoreMappingService):
        self.db = db
        self.task = task
        self.mappings = mappings
        self.store = UsageRecordStore(db)
        self._pending: Optional[PendingInsert] = None

    @property
    def pending(self) -> Optional[PendingInsert]:
        return self._pending

    async def _require_mapping(self, item_name: BackupItem, old_id: int) -> int:
        new_id = await self.mappings.get_mapping_id(item_name, old_id)
        if new_id is None:
            raise MappingNotFound(f"No {BackupItem(item_name).value} mapping for id {old_id}")
        return new_id

    async def process_reference_record(self, raw: Mapping[str, Optional[str]]) -> QuestionReference:
        """Insert an archived question reference pointing at the new assignment."""
        context_id = await self._require_mapping(BackupItem.CONTEXT, int(raw["usingcontextid"]))

        # Entries outside this backup keep their id
        bank_entry_id = int(raw["questionbankentryid"])
        mapped_entry = await self.mappings.get_mapping_id(BackupItem.QUESTION_BANK_ENTRY, bank_entry_id)
        if mapped_entry is not None:
            bank_entry_id = mapped_entry

        reference = QuestionReference(
            usingcontextid=context_id,
            component=raw.get("component") or COMPONENT,
            questionarea=raw.get("questionarea") or QUESTION_AREA,
            itemid=self.task.new_assignment_id,
            questionbankentryid=bank_entry_id,
            version=_optional_int(raw.get("version")),
        )
        self.db.add(reference)
        await self.db.flush()
        return reference

    async def begin_submission_insert(self, raw: Mapping[str, Optional[str]]) -> PendingInsert:
        if self._pending is not None:
            raise ProtocolViolation(
                f"Submission {self._pending.submission_id} is still waiting for its question usage"
            )
        submission_id = await self._require_mapping(BackupItem.SUBMISSION, int(raw["submission"]))
        self._pending = PendingInsert(
            assignment_id=self.task.new_assignment_id,
            submission_id=submission_id,
            old_usage_id=_optional_int(raw.get("questionusageid")),
        )
        return self._pending

    async def complete_submission_insert(self, pending: PendingInsert, usage_id: int) -> SubmissionUsageLink:
        if self._pending is None:
            raise ProtocolViolation("No submission is waiting for a question usage")
        if pending is not self._pending:
            raise ProtocolViolation(
                f"Usage {usage_id} was assigned to submission {pending.submission_id}, "
                f"but submission {self._pending.submission_id} is waiting"
            )
        self._pending = None

        link = await self.store.insert(pending.assignment_id, pending.submission_id, usage_id)
        if pending.old_usage_id is not None:
            await self.mappings.set_mapping(BackupItem.QUESTION_USAGE, pending.old_usage_id, usage_id)
        return link

    async def process_submission_record(self, raw: Mapping[str, Optional[str]]) -> None:
        await self.begin_submission_insert(raw)

    async def on_new_usage_assigned(self, new_usage_id: int) -> SubmissionUsageLink:
        if self._pending is None:
            raise ProtocolViolation("No submission is waiting for a question usage")
        return await self.complete_submission_insert(self._pending, new_usage_id)


class AssignmentRestoreReader:
    """Walks a backup tree of one assignment and restores this plugin's rows."""

    def __init__(self, db: AsyncSession, task: RestoreTask, engine: QuestionEngine):
        self.db = db
        self.task = task
        self.engine = engine
        self.mappings = RestoreMappingService(db, task.restore_id)
        self.reconnector = RestoreReconnector(db, task, self.mappings)

    async def restore(self, root: ET.Element) -> RestoreSummary:
        summary = RestoreSummary()
        restored_usages: List[int] = []
        try:
            async with atomic(self.db):
                for element in root.iter("question_reference"):
                    await self.reconnector.process_reference_record(read_fields(element))
                    summary.references += 1

                for element in root.iter("submission_qpy"):
                    usage_element = element.find("question_usage")
                    if usage_element is None:
                        logger.warning(
                            "Archived submission has no question usage",
                            extra={"restore_id": self.task.restore_id, "element_id": element.get("id")},
                        )
                        summary.skipped += 1
                        continue
                    pending = await self.reconnector.begin_submission_insert(read_fields(element))
                    usage_id = await self.engine.restore_usage(usage_element, COMPONENT, self.task.new_context_id)
                    restored_usages.append(usage_id)
                    await self.reconnector.complete_submission_insert(pending, usage_id)
                    summary.submissions += 1
        except IntegrityError as e:
            await self._discard_usages(restored_usages)
            raise RestoreConflict(
                f"Assignment {self.task.new_assignment_id} already holds restored question data"
            ) from e
        except Exception:
            await self._discard_usages(restored_usages)
            raise

        logger.info(
            "Assignment plugin data restored",
            extra={
                "restore_id": self.task.restore_id,
                "assignment_id": self.task.new_assignment_id,
                **summary.model_dump(),
            },
        )
        return summary

    async def _discard_usages(self, usage_ids: List[int]) -> None:
        for usage_id in usage_ids:
            try:
                await self.engine.delete(usage_id)
            except Exception:
                logger.exception("Could not discard restored question usage", extra={"usage_id": usage_id})
