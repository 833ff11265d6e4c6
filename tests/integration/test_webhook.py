# tests/integration/test_webhook.py
import hashlib
import hmac
import json
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import patch, AsyncMock
from pr_review_agent.main import app, verify_signature


SECRET = "test-secret"


def _event(action="opened", draft=False):
    return {
        "action": action,
        "number": 5,
        "pull_request": {"number": 5, "title": "Add feature", "draft": draft},
        "repository": {"name": "repo", "full_name": "octo/repo", "owner": {"login": "octo"}},
    }


def _signed(payload, secret=SECRET):
    body = json.dumps(payload).encode()
    signature = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return body, signature


async def _post(body, signature, event="pull_request"):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(
            "/webhook/github",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-GitHub-Event": event,
                "X-Hub-Signature-256": signature,
            },
        )


def test_verify_signature():
    body, signature = _signed({"a": 1})

    assert verify_signature(SECRET, body, signature)
    assert not verify_signature(SECRET, body + b" ", signature)
    assert not verify_signature(SECRET, body, None)
    assert not verify_signature(SECRET, body, signature.removeprefix("sha256="))


@pytest.mark.asyncio
async def test_webhook_rejects_invalid_signature():
    body, signature = _signed(_event(), secret="wrong-secret")

    with patch("pr_review_agent.main.get_settings") as mock_settings:
        mock_settings.return_value.github_webhook_secret = SECRET
        response = await _post(body, signature)

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_webhook_disabled_without_secret():
    body, signature = _signed(_event())

    with patch("pr_review_agent.main.get_settings") as mock_settings:
        mock_settings.return_value.github_webhook_secret = None
        response = await _post(body, signature)

    assert response.status_code == 503


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["opened", "synchronize", "reopened"])
async def test_webhook_schedules_review(action):
    body, signature = _signed(_event(action))

    with patch("pr_review_agent.main.get_settings") as mock_settings, \
         patch("pr_review_agent.main.run_review_task", new_callable=AsyncMock) as mock_task:
        mock_settings.return_value.github_webhook_secret = SECRET
        response = await _post(body, signature)

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    mock_task.assert_awaited_once_with(owner="octo", repo="repo", pr_number=5)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload,event", [
    (_event("closed"), "pull_request"),
    (_event("opened", draft=True), "pull_request"),
    ({"zen": "Keep it simple"}, "ping"),
])
async def test_webhook_ignores_irrelevant_events(payload, event):
    body, signature = _signed(payload)

    with patch("pr_review_agent.main.get_settings") as mock_settings, \
         patch("pr_review_agent.main.run_review_task", new_callable=AsyncMock) as mock_task:
        mock_settings.return_value.github_webhook_secret = SECRET
        response = await _post(body, signature, event)

    assert response.json()["status"] == "ignored"
    mock_task.assert_not_called()
