import pytest

USER = {"X-User-Id": "recruiter-1"}


@pytest.mark.asyncio
async def test_score_requires_a_user(api_client) -> None:
    resp = await api_client.post("/api/mod/v1/spam/score", json={"content": "hello"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_score_of_a_clean_job_post(api_client) -> None:
    resp = await api_client.post(
        "/api/mod/v1/spam/score",
        json={
            "content": "We are hiring a backend developer in Paris, see https://jobs.example.com/42",
            "author": "recruiter-1",
            "likes": 3,
        },
        headers=USER,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_spam"] is False
    assert body["score"] == 0
    assert body["action"] == "approve"
    assert body["action_reason"] == "Passed moderation"
    assert body["urls"] == ["https://jobs.example.com/42"]
    assert body["urls_valid"] is True
    assert body["valid"] is True
    assert body["validation_errors"] == []
    assert body["engagement"] == 6


@pytest.mark.asyncio
async def test_score_of_spam(api_client) -> None:
    resp = await api_client.post(
        "/api/mod/v1/spam/score",
        json={"content": "Click here to earn money, work from home! Guaranteed"},
        headers=USER,
    )
    body = resp.json()
    assert resp.status_code == 200
    assert body["score"] == 80
    assert body["is_spam"] is True
    assert body["action"] == "remove"
    assert body["hate_score"] == 0
    assert body["valid"] is None
    assert 'Contains spam keyword: "click here"' in body["reasons"]


@pytest.mark.asyncio
async def test_score_rejects_oversized_content(api_client) -> None:
    resp = await api_client.post("/api/mod/v1/spam/score", json={"content": "x" * 20001}, headers=USER)
    assert resp.status_code == 422
