"""Unit tests for QuestionReferenceResolver."""

import pytest
from sqlalchemy import func, select

from qpy_submission.models.question import QuestionReference, QuestionVersion
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_reference_service import QuestionReferenceResolver, ResolvedQuestion

from tests.fakes import ASSIGNMENT_ID, BANK_ENTRY_ID, CONTEXT_ID, QUESTION_V1, QUESTION_V2


@pytest.fixture
def resolver(db, assignment, question_bank):
    return QuestionReferenceResolver(db, assignment)


async def count_references(db) -> int:
    return await db.scalar(select(func.count()).select_from(QuestionReference))


@pytest.mark.asyncio
async def test_resolve_without_reference(resolver):
    assert await resolver.resolve() is None


@pytest.mark.asyncio
async def test_resolve_pinned_version(db, resolver):
    await resolver.upsert(BANK_ENTRY_ID, 1)
    await db.commit()

    assert await resolver.resolve() == ResolvedQuestion(QUESTION_V1, BANK_ENTRY_ID, 1)


@pytest.mark.asyncio
async def test_resolve_always_latest(db, resolver):
    await resolver.upsert(BANK_ENTRY_ID, None)
    await db.commit()

    assert await resolver.resolve() == ResolvedQuestion(QUESTION_V2, BANK_ENTRY_ID, 2)

    db.add(QuestionVersion(questionbankentryid=BANK_ENTRY_ID, version=3, questionid=503))
    await db.commit()
    assert (await resolver.resolve()).question_id == 503


@pytest.mark.asyncio
async def test_resolve_missing_version(db, resolver):
    await resolver.upsert(BANK_ENTRY_ID, 9)
    await db.commit()

    assert await resolver.resolve() is None


@pytest.mark.asyncio
async def test_resolve_uses_default_instance(db, question_bank):
    template = AssignmentContext(context_id=CONTEXT_ID, instance_id=3)
    await QuestionReferenceResolver(db, template).upsert(BANK_ENTRY_ID, 2)
    await db.commit()

    copy = AssignmentContext(context_id=CONTEXT_ID, instance_id=ASSIGNMENT_ID, default_instance_id=3)
    resolved = await QuestionReferenceResolver(db, copy).resolve()

    assert resolved.question_id == QUESTION_V2


@pytest.mark.asyncio
async def test_upsert_keeps_single_row(db, resolver):
    await resolver.upsert(BANK_ENTRY_ID, 1)
    await resolver.upsert(BANK_ENTRY_ID, 2)
    await db.commit()

    assert await count_references(db) == 1
    reference = await resolver.get_reference()
    assert reference.version == 2
    assert reference.itemid == ASSIGNMENT_ID


@pytest.mark.asyncio
async def test_delete_for_item(db, resolver):
    await resolver.upsert(BANK_ENTRY_ID, 1)
    await db.commit()

    assert await resolver.delete_for_item() == 1
    await db.commit()
    assert await count_references(db) == 0


@pytest.mark.asyncio
async def test_get_question_version(resolver):
    version = await resolver.get_question_version(QUESTION_V2)
    assert (version.questionbankentryid, version.version) == (BANK_ENTRY_ID, 2)
    assert await resolver.get_question_version(999) is None


@pytest.mark.asyncio
async def test_categories_for_context(db, resolver):
    assert await resolver.categories_for_context() == []

    await resolver.upsert(BANK_ENTRY_ID, 1)
    await db.commit()

    assert await resolver.categories_for_context() == [(3, 2)]
    assert await resolver.get_category_parent(2) == 1
    assert await resolver.get_category_parent(1) == 0
