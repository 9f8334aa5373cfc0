"""Integration tests: assignment settings hooks."""

import pytest

from tests.fakes import ASSIGNMENT_ID, CONTEXT_ID, QUESTION_V1, QUESTION_V2

URL = f"/assignments/{ASSIGNMENT_ID}/settings"
PARAMS = {"context_id": CONTEXT_ID}


@pytest.mark.asyncio
async def test_settings_require_host_token(async_client):
    resp = await async_client.get(URL, params=PARAMS)
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_settings_reject_foreign_token(async_client):
    resp = await async_client.get(URL, params=PARAMS, headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_settings_require_context(async_client, host_headers):
    resp = await async_client.get(URL, headers=host_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_settings_defaults(async_client, host_headers, question_bank):
    resp = await async_client.get(URL, params=PARAMS, headers=host_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["question_id"] is None
    assert data["preferred_behaviour"] == "deferredfeedback"


@pytest.mark.asyncio
async def test_save_settings_unknown_question(async_client, host_headers, question_bank):
    resp = await async_client.put(URL, params=PARAMS, headers=host_headers, json={"question_id": 999})

    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_SETTINGS"
    assert body["error"]["fields"] == {"question_id": "Question not found"}


@pytest.mark.asyncio
async def test_save_settings(async_client, host_headers, question_bank):
    resp = await async_client.put(
        URL,
        params=PARAMS,
        headers=host_headers,
        json={"question_id": QUESTION_V2, "preferred_behaviour": "adaptive"},
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"question_id": QUESTION_V2, "preferred_behaviour": "adaptive"}

    resp = await async_client.get(URL, params=PARAMS, headers=host_headers)
    assert resp.json()["data"]["question_id"] == QUESTION_V2


@pytest.mark.asyncio
async def test_saved_settings_start_interactive_attempts(async_client, host_headers, question_bank, question_engine):
    await async_client.put(URL, params=PARAMS, headers=host_headers, json={"question_id": QUESTION_V1})

    resp = await async_client.get(
        f"/assignments/{ASSIGNMENT_ID}/submissions/1/form", params=PARAMS, headers=host_headers
    )

    usage_id = resp.json()["data"]["usage_id"]
    assert question_engine.usages[usage_id].preferred_behaviour == "interactive"


@pytest.mark.asyncio
async def test_save_settings_unknown_behaviour(async_client, host_headers, question_bank):
    resp = await async_client.put(
        URL,
        params=PARAMS,
        headers=host_headers,
        json={"question_id": QUESTION_V2, "preferred_behaviour": "guesswork"},
    )

    assert resp.status_code == 422
    assert resp.json()["error"]["fields"] == {"preferred_behaviour": "Unknown question behaviour"}
