# tests/integration/test_api_review.py
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import patch, AsyncMock, MagicMock
from pr_review_agent.main import app, get_provider, parse_github_pr_url
from pr_review_agent.providers.gemini import GeminiProvider
from pr_review_agent.providers.openai import OpenAIProvider
from pr_review_agent.review.engine import EngineReviewResult


def test_parse_github_pr_url_valid():
    owner, repo, number = parse_github_pr_url("https://github.com/octo/repo/pull/123")
    assert (owner, repo, number) == ("octo", "repo", 123)


def test_parse_github_pr_url_with_suffix():
    owner, repo, number = parse_github_pr_url("https://github.com/octo/repo/pull/45/files")
    assert (owner, repo, number) == ("octo", "repo", 45)


def test_parse_github_pr_url_invalid():
    with pytest.raises(ValueError):
        parse_github_pr_url("https://gitlab.com/user/repo/-/merge_requests/123")


def test_get_provider_selection():
    settings = MagicMock(ai_provider="gemini", gemini_api_key="g", gemini_model=None)
    assert isinstance(get_provider(settings), GeminiProvider)

    settings = MagicMock(ai_provider="openai", openai_api_key="o", openai_model=None, openai_base_url=None)
    assert isinstance(get_provider(settings), OpenAIProvider)

    settings = MagicMock(ai_provider="openai", openai_api_key=None)
    assert get_provider(settings) is None


@pytest.mark.asyncio
async def test_health():
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_trigger_review_by_url():
    transport = ASGITransport(app=app)

    mock_engine = AsyncMock()
    mock_engine.review_pr.return_value = EngineReviewResult(
        comments_count=2,
        summary="# Code Review Summary",
        base_commit="abc",
        head_commit="def",
    )

    with patch("pr_review_agent.main.get_settings") as mock_settings, \
         patch("pr_review_agent.main.GitHubClient") as mock_github_cls, \
         patch("pr_review_agent.main.get_provider") as mock_get_provider, \
         patch("pr_review_agent.main.ReviewEngine") as mock_engine_cls:

        mock_settings.return_value.github_token = "test-token"
        mock_settings.return_value.github_api_url = "https://api.github.com"
        mock_get_provider.return_value = AsyncMock()
        mock_engine_cls.return_value = mock_engine

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/api/review",
                json={"url": "https://github.com/octo/repo/pull/7"},
            )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["owner"] == "octo"
    assert data["pr_number"] == 7
    assert data["comments_posted"] == 2
    assert data["head_commit"] == "def"
    mock_github_cls.assert_called_once_with(token="test-token", base_url="https://api.github.com")
    assert mock_engine.review_pr.await_args.args == ("octo", "repo", 7)


@pytest.mark.asyncio
async def test_trigger_review_by_owner_repo():
    transport = ASGITransport(app=app)

    with patch("pr_review_agent.main.run_review", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = EngineReviewResult(comments_count=0, summary="")

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/api/review",
                json={"owner": "octo", "repo": "repo", "pr_number": 9},
            )

    data = response.json()
    assert data["status"] == "completed"
    assert data["summary"] == "No issues found"
    mock_run.assert_awaited_once_with("octo", "repo", 9)


@pytest.mark.asyncio
async def test_trigger_review_without_provider():
    transport = ASGITransport(app=app)

    with patch("pr_review_agent.main.get_settings"), \
         patch("pr_review_agent.main.get_provider", return_value=None):

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/review", json={"owner": "octo", "repo": "repo", "pr_number": 9})

    assert response.json() == {
        "status": "error",
        "owner": None,
        "repo": None,
        "pr_number": None,
        "base_commit": None,
        "head_commit": None,
        "comments_posted": None,
        "summary": None,
        "error": "No LLM provider configured",
    }


@pytest.mark.asyncio
async def test_trigger_review_reports_failure():
    transport = ASGITransport(app=app)

    with patch("pr_review_agent.main.run_review", new_callable=AsyncMock) as mock_run:
        mock_run.side_effect = RuntimeError("404 Not Found")

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/review", json={"url": "https://github.com/octo/repo/pull/1"})

    assert response.json()["status"] == "error"
    assert response.json()["error"] == "404 Not Found"


@pytest.mark.asyncio
async def test_trigger_review_requires_target():
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/review", json={"owner": "octo"})

    assert response.status_code == 422
