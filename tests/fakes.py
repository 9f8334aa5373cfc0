"""In-memory question engine and seed data shared by the tests."""

import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Set

from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.core.exceptions import QuestionEngineError
from qpy_submission.models.question import QuestionBankEntry, QuestionCategory, QuestionVersion
from qpy_submission.services.question_engine import DisplayOptions, QuestionAttempt, QuestionUsage

CONTEXT_ID = 10
ASSIGNMENT_ID = 5
BANK_ENTRY_ID = 7
QUESTION_V1 = 501
QUESTION_V2 = 502


class EngineFailure(Exception):
    pass


class FakeQuestionEngine:
    """Keeps saved usages in a dict; operations named in fail_on raise EngineFailure."""

    def __init__(self):
        self.usages: Dict[int, QuestionUsage] = {}
        self.deleted: List[int] = []
        self.rendered: List[DisplayOptions] = []
        self.fail_on: Set[str] = set()
        self._next_id = 100

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise EngineFailure(f"{operation} failed")

    async def create_usage(self, owning_component: str, context_id: int) -> QuestionUsage:
        self._check("create_usage")
        return QuestionUsage(owning_component=owning_component, context_id=context_id)

    async def set_preferred_behaviour(self, usage: QuestionUsage, behaviour: str) -> None:
        usage.preferred_behaviour = behaviour

    async def add_question(self, usage: QuestionUsage, question_id: int) -> int:
        slot = len(usage.attempts) + 1
        usage.attempts.append(QuestionAttempt(slot=slot, question_id=question_id))
        return slot

    async def get_attempt(self, usage: QuestionUsage, slot: int) -> QuestionAttempt:
        return next(a for a in usage.attempts if a.slot == slot)

    async def start(self, usage: QuestionUsage, slot: int) -> None:
        self._check("start")
        attempt = await self.get_attempt(usage, slot)
        attempt.state = "todo"
        attempt.steps = [{}]

    async def start_based_on(self, usage: QuestionUsage, slot: int, prior: QuestionAttempt) -> None:
        self._check("start")
        attempt = await self.get_attempt(usage, slot)
        attempt.state = "todo"
        attempt.steps = [dict(prior.last_qt_data)]

    async def process_actions(self, usage: QuestionUsage, action_data: Dict[str, Any]) -> None:
        self._check("process_actions")
        attempt = usage.attempts[0]
        attempt.steps.append(dict(action_data))
        attempt.state = "complete" if action_data else "todo"

    async def finish_all(self, usage: QuestionUsage) -> None:
        for attempt in usage.attempts:
            attempt.state = "gradedright" if attempt.last_qt_data else "gaveup"

    async def save(self, usage: QuestionUsage) -> int:
        self._check("save")
        if usage.id is None:
            usage.id = self._next_id
            self._next_id += 1
        self.usages[usage.id] = usage.model_copy(deep=True)
        return usage.id

    async def load(self, usage_id: int) -> QuestionUsage:
        if usage_id not in self.usages:
            raise QuestionEngineError(f"Usage {usage_id} does not exist")
        return self.usages[usage_id].model_copy(deep=True)

    async def delete(self, usage_id: int) -> None:
        self._check("delete")
        self.usages.pop(usage_id, None)
        self.deleted.append(usage_id)

    async def delete_usages(self, usage_ids: Iterable[int]) -> None:
        for usage_id in usage_ids:
            self.usages.pop(usage_id, None)
            self.deleted.append(usage_id)

    async def render(self, usage: QuestionUsage, slot: int, options: DisplayOptions) -> str:
        self.rendered.append(options)
        return f'<div class="que" data-usage="{usage.id}" data-slot="{slot}"></div>'

    async def is_gradable_response(self, usage: QuestionUsage, slot: int) -> bool:
        attempt = await self.get_attempt(usage, slot)
        return bool(attempt.last_qt_data)

    async def backup_usage(self, usage_id: int) -> ET.Element:
        element = ET.Element("question_usage", id=str(usage_id))
        ET.SubElement(element, "data").text = self.usages[usage_id].model_dump_json()
        return element

    async def restore_usage(self, element: ET.Element, owning_component: str, context_id: int) -> int:
        self._check("restore_usage")
        usage = QuestionUsage.model_validate_json(element.find("data").text)
        usage.id = None
        usage.owning_component = owning_component
        usage.context_id = context_id
        return await self.save(usage)


async def seed_question_bank(db: AsyncSession) -> None:
    """Category chain top(1) -> Default(2) -> Assignments(3) holding entry 7 with two versions."""
    db.add_all([
        QuestionCategory(id=1, name="top", contextid=CONTEXT_ID, parent=0),
        QuestionCategory(id=2, name="Default", contextid=CONTEXT_ID, parent=1),
        QuestionCategory(id=3, name="Assignments", contextid=CONTEXT_ID, parent=2),
        QuestionBankEntry(id=BANK_ENTRY_ID, questioncategoryid=3),
        QuestionVersion(questionbankentryid=BANK_ENTRY_ID, version=1, questionid=QUESTION_V1),
        QuestionVersion(questionbankentryid=BANK_ENTRY_ID, version=2, questionid=QUESTION_V2),
    ])
    await db.commit()
