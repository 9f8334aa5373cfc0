"""Integration tests: hook rate limiting."""

import pytest
from httpx import ASGITransport, AsyncClient

from qpy_submission.config import settings
from qpy_submission.core.rate_limit import limiter
from qpy_submission.main import app

from tests.fakes import ASSIGNMENT_ID, CONTEXT_ID


@pytest.fixture
def tight_limit(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)
    limiter.reset()
    yield
    limiter.reset()


@pytest.mark.asyncio
async def test_hooks_are_rate_limited(async_client, host_headers, question_bank, tight_limit):
    url = f"/assignments/{ASSIGNMENT_ID}/settings"
    statuses = [
        (await async_client.get(url, params={"context_id": CONTEXT_ID}, headers=host_headers)).status_code
        for _ in range(3)
    ]

    assert statuses == [200, 200, 429]


@pytest.mark.asyncio
async def test_health_is_not_rate_limited(tight_limit):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        statuses = [(await client.get("/health")).status_code for _ in range(5)]

    assert statuses == [200] * 5
