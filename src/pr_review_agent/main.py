# src/pr_review_agent/main.py
import re
import sys
import hmac
import asyncio
import hashlib
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from fastapi import FastAPI, Header, HTTPException, BackgroundTasks, Request
from pydantic import BaseModel, ValidationError, model_validator

from pr_review_agent.config import Settings
from pr_review_agent.models.github import GitHubPullRequestEvent
from pr_review_agent.platforms.github import GitHubClient
from pr_review_agent.providers.base import LLMProvider
from pr_review_agent.providers.gemini import GeminiProvider
from pr_review_agent.providers.openai import OpenAIProvider
from pr_review_agent.review.engine import ReviewEngine, EngineReviewResult


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REVIEW_ACTIONS = ("opened", "synchronize", "reopened")


@lru_cache
def get_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.getLogger().setLevel(get_settings().log_level.upper())
    logger.info("PR Review Agent starting...")
    yield
    logger.info("PR Review Agent shutting down...")


app = FastAPI(title="PR Review Agent", lifespan=lifespan)


class WebhookResponse(BaseModel):
    status: str
    message: str | None = None


class ReviewRequest(BaseModel):
    url: str | None = None
    owner: str | None = None
    repo: str | None = None
    pr_number: int | None = None

    @model_validator(mode="after")
    def check_params(self):
        if not self.url and not (self.owner and self.repo and self.pr_number):
            raise ValueError("Either url or owner+repo+pr_number required")
        return self


class ReviewResponse(BaseModel):
    status: str
    owner: str | None = None
    repo: str | None = None
    pr_number: int | None = None
    base_commit: str | None = None
    head_commit: str | None = None
    comments_posted: int | None = None
    summary: str | None = None
    error: str | None = None


def parse_github_pr_url(url: str) -> tuple[str, str, int]:
    """Parse GitHub PR URL -> (owner, repo, pr_number)."""
    match = re.match(r"https?://[^/]+/([^/]+)/([^/]+)/pull/(\d+)", url)
    if not match:
        raise ValueError(f"Invalid GitHub PR URL: {url}")
    return match.group(1), match.group(2), int(match.group(3))


def get_provider(settings: Settings) -> LLMProvider | None:
    """Get LLM provider based on settings."""
    if settings.ai_provider == "gemini" and settings.gemini_api_key:
        return GeminiProvider(api_key=settings.gemini_api_key, model=settings.gemini_model)
    elif settings.ai_provider == "openai" and settings.openai_api_key:
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
        )
    return None


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


async def run_review(owner: str, repo: str, pr_number: int) -> EngineReviewResult:
    """Review one pull request with the configured GitHub client and provider."""
    settings = get_settings()
    provider = get_provider(settings)
    if not provider:
        raise ValueError("No LLM provider configured")

    github = GitHubClient(token=settings.github_token, base_url=settings.github_api_url)
    engine = ReviewEngine(platform=github, provider=provider)
    logger.info(f"Reviewing {owner}/{repo}#{pr_number} with {settings.ai_provider}")
    return await engine.review_pr(owner, repo, pr_number, filters=settings.filters())


async def run_review_task(owner: str, repo: str, pr_number: int):
    """Background task to run the review."""
    try:
        result = await run_review(owner, repo, pr_number)
        logger.info(f"Review completed for PR #{pr_number} with {result.comments_count} comments")
    except Exception as e:
        logger.exception(f"Review failed for PR #{pr_number}: {e}")


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


@app.post("/webhook/github", response_model=WebhookResponse)
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: str | None = Header(None),
    x_hub_signature_256: str | None = Header(None),
):
    settings = get_settings()
    if not settings.github_webhook_secret:
        raise HTTPException(status_code=503, detail="Webhook secret not configured")

    body = await request.body()
    if not verify_signature(settings.github_webhook_secret, body, x_hub_signature_256):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if x_github_event != "pull_request":
        return WebhookResponse(status="ignored", message="Event not relevant")

    try:
        event = GitHubPullRequestEvent.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid pull_request payload: {e}")

    if event.action not in REVIEW_ACTIONS:
        return WebhookResponse(status="ignored", message=f"Action {event.action} not reviewed")
    if event.pull_request.draft:
        return WebhookResponse(status="ignored", message="Draft pull request")

    background_tasks.add_task(
        run_review_task,
        owner=event.repository.owner.login,
        repo=event.repository.name,
        pr_number=event.number,
    )
    return WebhookResponse(status="accepted", message="Review scheduled")


@app.post("/api/review", response_model=ReviewResponse)
async def trigger_review(request: ReviewRequest):
    """Manually trigger a review for a pull request."""
    try:
        if request.url:
            owner, repo, pr_number = parse_github_pr_url(request.url)
        else:
            owner, repo, pr_number = request.owner, request.repo, request.pr_number

        result = await run_review(owner, repo, pr_number)

        return ReviewResponse(
            status="completed",
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            base_commit=result.base_commit,
            head_commit=result.head_commit,
            comments_posted=result.comments_count,
            summary=result.summary or "No issues found",
        )

    except ValueError as e:
        return ReviewResponse(status="error", error=str(e))
    except Exception as e:
        logger.exception(f"Review failed: {e}")
        return ReviewResponse(status="error", error=str(e))


def cli():
    """One-shot review of REPO_OWNER/REPO_NAME#PR_NUMBER."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    if not (settings.repo_owner and settings.repo_name and settings.pr_number):
        logger.error("REPO_OWNER, REPO_NAME and PR_NUMBER must be set")
        sys.exit(1)

    try:
        result = asyncio.run(run_review(settings.repo_owner, settings.repo_name, settings.pr_number))
    except Exception as e:
        if settings.fail_on_error:
            logger.exception(f"Review failed: {e}")
            sys.exit(1)
        logger.warning(f"Review failed, continuing because FAIL_ON_ERROR is not set: {e}")
        return

    logger.info(f"Review finished with {result.comments_count} comments")


if __name__ == "__main__":
    cli()
