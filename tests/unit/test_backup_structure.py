"""Unit tests for the backup XML writer and the restore reader."""

import xml.etree.ElementTree as ET

import pytest
from sqlalchemy import select

from qpy_submission.backup.restore import AssignmentRestoreReader
from qpy_submission.backup.structure import (
    ASSIGN_WRAPPER,
    NULL_MARKER,
    SUBMISSION_WRAPPER,
    AssignmentBackupWriter,
    read_fields,
    to_bytes,
)
from qpy_submission.backup.tracking import RestoreMappingService
from qpy_submission.core.exceptions import MappingNotFound, RestoreConflict
from qpy_submission.models.enums import COMPONENT, BackupItem
from qpy_submission.models.question import QuestionReference
from qpy_submission.models.submission import SubmissionUsageLink
from qpy_submission.schemas.backup import RestoreTask
from qpy_submission.services.question_reference_service import QuestionReferenceResolver
from qpy_submission.services.usage_lifecycle_service import UsageLifecycleManager

from tests.fakes import ASSIGNMENT_ID, BANK_ENTRY_ID, CONTEXT_ID

NEW_ASSIGNMENT_ID = 55
NEW_CONTEXT_ID = 110


@pytest.fixture
def task() -> RestoreTask:
    return RestoreTask(restore_id="restore1", new_assignment_id=NEW_ASSIGNMENT_ID, new_context_id=NEW_CONTEXT_ID)


async def backup_document(db, assignment, engine) -> ET.Element:
    root = await AssignmentBackupWriter(db, assignment, engine).build()
    return ET.fromstring(to_bytes(root))


async def set_mappings(db, submissions: dict) -> None:
    mappings = RestoreMappingService(db, "restore1")
    await mappings.set_mapping(BackupItem.CONTEXT, CONTEXT_ID, NEW_CONTEXT_ID)
    await mappings.set_mapping(BackupItem.QUESTION_BANK_ENTRY, BANK_ENTRY_ID, 77)
    for old_id, new_id in submissions.items():
        await mappings.set_mapping(BackupItem.SUBMISSION, old_id, new_id)
    await db.commit()


async def links_of(db, assignment_id: int) -> list:
    result = await db.execute(
        select(SubmissionUsageLink)
        .where(SubmissionUsageLink.assignment == assignment_id)
        .order_by(SubmissionUsageLink.submission)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_assign_element_writes_references(db, assignment, question_bank, question_engine):
    await QuestionReferenceResolver(db, assignment).upsert(BANK_ENTRY_ID, None)
    await db.commit()

    wrapper = await AssignmentBackupWriter(db, assignment, question_engine).assign_element()

    assert wrapper.tag == ASSIGN_WRAPPER
    reference = wrapper.find("question_references/question_reference")
    assert reference.find("version").text == NULL_MARKER
    assert read_fields(reference) == {
        "usingcontextid": str(CONTEXT_ID),
        "component": COMPONENT,
        "questionarea": "main",
        "questionbankentryid": str(BANK_ENTRY_ID),
        "version": None,
    }


@pytest.mark.asyncio
async def test_submission_element_without_usage(db, assignment, question_engine):
    wrapper = await AssignmentBackupWriter(db, assignment, question_engine).submission_element(1)

    assert wrapper.tag == SUBMISSION_WRAPPER
    assert len(wrapper) == 0


@pytest.mark.asyncio
async def test_to_bytes_has_declaration(db, configured_assignment, question_engine):
    root = await AssignmentBackupWriter(db, configured_assignment, question_engine).build()

    document = to_bytes(root)

    assert document.startswith(b'<?xml version="1.0" encoding="UTF-8"?>')
    assert ET.fromstring(document).get("id") == str(ASSIGNMENT_ID)


@pytest.mark.asyncio
async def test_backup_and_restore_round_trip(db, configured_assignment, question_engine, task):
    resolver = QuestionReferenceResolver(db, configured_assignment)
    await resolver.upsert(BANK_ENTRY_ID, 2)
    await db.commit()
    lifecycle = UsageLifecycleManager(db, configured_assignment, question_engine)
    original = await lifecycle.get_or_create_usage(1)
    await lifecycle.apply_submission_actions(1, {"answer": "kept"})

    root = await backup_document(db, configured_assignment, question_engine)
    submission_qpy = root.find(f"submissions/submission/{SUBMISSION_WRAPPER}/submission_qpy")
    assert read_fields(submission_qpy) == {"submission": "1", "questionusageid": str(original.id)}
    assert submission_qpy.find("question_usage") is not None

    await set_mappings(db, {1: 11})
    summary = await AssignmentRestoreReader(db, task, question_engine).restore(root)

    assert (summary.references, summary.submissions, summary.skipped) == (1, 1, 0)

    result = await db.execute(select(QuestionReference).where(QuestionReference.itemid == NEW_ASSIGNMENT_ID))
    reference = result.scalar_one()
    assert reference.usingcontextid == NEW_CONTEXT_ID
    assert reference.questionbankentryid == 77
    assert reference.version == 2

    [link] = await links_of(db, NEW_ASSIGNMENT_ID)
    assert link.submission == 11
    assert link.questionusageid != original.id
    restored = question_engine.usages[link.questionusageid]
    assert restored.context_id == NEW_CONTEXT_ID
    assert restored.attempts[0].last_qt_data == {"answer": "kept"}

    mapped_usage = await RestoreMappingService(db, "restore1").get_mapping_id(BackupItem.QUESTION_USAGE, original.id)
    assert mapped_usage == link.questionusageid


@pytest.mark.asyncio
async def test_restore_failure_rolls_back_and_discards_usages(db, configured_assignment, question_engine, task):
    lifecycle = UsageLifecycleManager(db, configured_assignment, question_engine)
    await lifecycle.get_or_create_usage(1)
    await lifecycle.get_or_create_usage(2)
    root = await backup_document(db, configured_assignment, question_engine)
    await set_mappings(db, {1: 11})
    before = set(question_engine.usages)

    with pytest.raises(MappingNotFound):
        await AssignmentRestoreReader(db, task, question_engine).restore(root)

    assert await links_of(db, NEW_ASSIGNMENT_ID) == []
    reference = await db.scalar(select(QuestionReference).where(QuestionReference.itemid == NEW_ASSIGNMENT_ID))
    assert reference is None
    assert set(question_engine.usages) == before
    assert len(question_engine.deleted) == 1


@pytest.mark.asyncio
async def test_restore_skips_submission_without_usage(db, question_engine, task):
    root = ET.fromstring(
        "<assign><submissions><submission id='1'>"
        f"<{SUBMISSION_WRAPPER}><submission_qpy id='4'>"
        "<submission>1</submission><questionusageid>100</questionusageid>"
        f"</submission_qpy></{SUBMISSION_WRAPPER}>"
        "</submission></submissions></assign>"
    )

    summary = await AssignmentRestoreReader(db, task, question_engine).restore(root)

    assert summary.skipped == 1
    assert summary.submissions == 0
    assert await links_of(db, NEW_ASSIGNMENT_ID) == []


@pytest.mark.asyncio
async def test_repeated_restore_conflicts(db, configured_assignment, question_engine, task):
    lifecycle = UsageLifecycleManager(db, configured_assignment, question_engine)
    await lifecycle.get_or_create_usage(1)
    root = await backup_document(db, configured_assignment, question_engine)
    await set_mappings(db, {1: 11})
    await AssignmentRestoreReader(db, task, question_engine).restore(root)
    before = set(question_engine.usages)

    with pytest.raises(RestoreConflict):
        await AssignmentRestoreReader(db, task, question_engine).restore(root)

    assert set(question_engine.usages) == before
    assert len(await links_of(db, NEW_ASSIGNMENT_ID)) == 1
