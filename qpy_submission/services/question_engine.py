"""
Question engine adapter.

The engine renders, stores and grades question attempts. This service only
sequences calls into it, so the engine is described by a Protocol and talked
to over HTTP in production.
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

import httpx
from pydantic import BaseModel

from qpy_submission.config import settings
from qpy_submission.core.exceptions import QuestionEngineError
from qpy_submission.core.logging import get_logger

logger = get_logger(__name__)

HIDDEN = 0
VISIBLE = 1


class QuestionAttempt(BaseModel):
    """One question in a usage together with its answer history"""
    slot: int
    question_id: int
    state: str = "notstarted"
    steps: List[Dict[str, Any]] = []

    @property
    def last_qt_data(self) -> Dict[str, Any]:
        return self.steps[-1] if self.steps else {}

    @property
    def is_finished(self) -> bool:
        return self.state not in ("notstarted", "todo", "invalid", "complete")


class QuestionUsage(BaseModel):
    """Handle of a question usage; id stays None until the engine saved it"""
    id: Optional[int] = None
    owning_component: str
    context_id: int
    preferred_behaviour: Optional[str] = None
    attempts: List[QuestionAttempt] = []

    @property
    def first_slot(self) -> int:
        if not self.attempts:
            raise QuestionEngineError("Question usage has no questions")
        return self.attempts[0].slot


class DisplayOptions(BaseModel):
    readonly: bool = False
    flags: int = HIDDEN
    history: int = HIDDEN
    # user id whose steps are named, True for everybody, None for nobody
    userinfoinhistory: Optional[Union[int, bool]] = None


class QuestionEngine(Protocol):
    async def create_usage(self, owning_component: str, context_id: int) -> QuestionUsage: ...

    async def set_preferred_behaviour(self, usage: QuestionUsage, behaviour: str) -> None: ...

    async def add_question(self, usage: QuestionUsage, question_id: int) -> int: ...

    async def start(self, usage: QuestionUsage, slot: int) -> None: ...

    async def start_based_on(self, usage: QuestionUsage, slot: int, prior: QuestionAttempt) -> None: ...

    async def get_attempt(self, usage: QuestionUsage, slot: int) -> QuestionAttempt: ...

    async def process_actions(self, usage: QuestionUsage, action_data: Dict[str, Any]) -> None: ...

    async def finish_all(self, usage: QuestionUsage) -> None: ...

    async def save(self, usage: QuestionUsage) -> int: ...

    async def load(self, usage_id: int) -> QuestionUsage: ...

    async def delete(self, usage_id: int) -> None: ...

    async def delete_usages(self, usage_ids: Iterable[int]) -> None: ...

    async def render(self, usage: QuestionUsage, slot: int, options: DisplayOptions) -> str: ...

    async def is_gradable_response(self, usage: QuestionUsage, slot: int) -> bool: ...

    async def backup_usage(self, usage_id: int) -> ET.Element: ...

    async def restore_usage(self, element: ET.Element, owning_component: str, context_id: int) -> int: ...


class HttpQuestionEngine:
    """
    QuestionEngine backed by a remote engine service.

    Building a usage (create, behaviour, add question) happens on the handle;
    the remote side sees the usage first when it is saved.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.QUESTION_ENGINE_URL,
            timeout=timeout or settings.QUESTION_ENGINE_TIMEOUT,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Question engine rejected request",
                extra={"method": method, "url": url, "status_code": e.response.status_code},
            )
            raise QuestionEngineError(
                f"Question engine returned {e.response.status_code} for {method} {url}"
            ) from e
        except httpx.RequestError as e:
            raise QuestionEngineError(f"Question engine unreachable: {e}") from e
        return response

    async def create_usage(self, owning_component: str, context_id: int) -> QuestionUsage:
        return QuestionUsage(owning_component=owning_component, context_id=context_id)

    async def set_preferred_behaviour(self, usage: QuestionUsage, behaviour: str) -> None:
        usage.preferred_behaviour = behaviour

    async def add_question(self, usage: QuestionUsage, question_id: int) -> int:
        slot = len(usage.attempts) + 1
        usage.attempts.append(QuestionAttempt(slot=slot, question_id=question_id))
        return slot

    async def get_attempt(self, usage: QuestionUsage, slot: int) -> QuestionAttempt:
        for attempt in usage.attempts:
            if attempt.slot == slot:
                return attempt
        raise QuestionEngineError(f"Usage {usage.id} has no slot {slot}")

    async def _start(self, usage: QuestionUsage, slot: int, prior: Optional[QuestionAttempt]) -> None:
        attempt = await self.get_attempt(usage, slot)
        payload = {
            "question_id": attempt.question_id,
            "behaviour": usage.preferred_behaviour,
            "based_on": prior.model_dump() if prior is not None else None,
        }
        response = await self._request("POST", "/attempts/start", json=payload)
        started = QuestionAttempt.model_validate(response.json())
        attempt.state = started.state
        attempt.steps = started.steps

    async def start(self, usage: QuestionUsage, slot: int) -> None:
        await self._start(usage, slot, None)

    async def start_based_on(self, usage: QuestionUsage, slot: int, prior: QuestionAttempt) -> None:
        await self._start(usage, slot, prior)

    async def _replace(self, usage: QuestionUsage, data: Dict[str, Any]) -> None:
        updated = QuestionUsage.model_validate(data)
        usage.attempts = updated.attempts
        usage.preferred_behaviour = updated.preferred_behaviour

    async def process_actions(self, usage: QuestionUsage, action_data: Dict[str, Any]) -> None:
        response = await self._request("POST", f"/usages/{usage.id}/actions", json=action_data)
        await self._replace(usage, response.json())

    async def finish_all(self, usage: QuestionUsage) -> None:
        response = await self._request("POST", f"/usages/{usage.id}/finish")
        await self._replace(usage, response.json())

    async def save(self, usage: QuestionUsage) -> int:
        if usage.id is None:
            response = await self._request("POST", "/usages", json=usage.model_dump(exclude={"id"}))
            usage.id = int(response.json()["id"])
        else:
            await self._request("PUT", f"/usages/{usage.id}", json=usage.model_dump())
        return usage.id

    async def load(self, usage_id: int) -> QuestionUsage:
        response = await self._request("GET", f"/usages/{usage_id}")
        return QuestionUsage.model_validate(response.json())

    async def delete(self, usage_id: int) -> None:
        try:
            response = await self._client.delete(f"/usages/{usage_id}")
        except httpx.RequestError as e:
            raise QuestionEngineError(f"Question engine unreachable: {e}") from e
        # Already gone is fine
        if response.status_code == 404:
            return
        if response.is_error:
            raise QuestionEngineError(
                f"Question engine returned {response.status_code} deleting usage {usage_id}"
            )

    async def delete_usages(self, usage_ids: Iterable[int]) -> None:
        ids = list(usage_ids)
        if ids:
            await self._request("POST", "/usages/delete", json={"ids": ids})

    async def render(self, usage: QuestionUsage, slot: int, options: DisplayOptions) -> str:
        response = await self._request(
            "POST", f"/usages/{usage.id}/render",
            json={"slot": slot, "options": options.model_dump()},
        )
        return response.json()["html"]

    async def is_gradable_response(self, usage: QuestionUsage, slot: int) -> bool:
        response = await self._request("GET", f"/usages/{usage.id}/slots/{slot}/gradable")
        return bool(response.json()["gradable"])

    async def backup_usage(self, usage_id: int) -> ET.Element:
        response = await self._request("GET", f"/usages/{usage_id}/export")
        return ET.fromstring(response.content)

    async def restore_usage(self, element: ET.Element, owning_component: str, context_id: int) -> int:
        response = await self._request(
            "POST", "/usages/import",
            params={"component": owning_component, "context_id": context_id},
            content=ET.tostring(element, encoding="utf-8"),
            headers={"Content-Type": "application/xml"},
        )
        return int(response.json()["id"])
