"""GitHub webhook server for automatic PR reviews."""

import asyncio
import hashlib
import hmac
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Request

from cyclone_bot import __version__
from cyclone_bot.gating import should_review
from cyclone_bot.models.context import PullRequestInfo

logger = logging.getLogger(__name__)

ReviewHandler = Callable[[PullRequestInfo], Awaitable[Any]]


@dataclass
class PREvent:
    """Represents a PR webhook event."""

    action: str
    pull_request: PullRequestInfo

    @property
    def is_draft(self) -> bool:
        return self.pull_request.draft

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PREvent":
        """Parse a ``pull_request`` webhook payload.

        Raises:
            KeyError: If required fields are missing
        """
        return cls(
            action=payload["action"],
            pull_request=PullRequestInfo.from_webhook_payload(payload),
        )


async def handle_pr_event(event: PREvent, handler: ReviewHandler) -> None:
    """Run the review handler for an event, logging instead of raising.

    Args:
        event: PR event data
        handler: Review coroutine to run
    """
    info = event.pull_request
    try:
        await handler(info)
    except Exception as e:
        logger.exception(f"Error reviewing {info.full_name} PR #{info.number}: {e}")


def create_webhook_app(handler: ReviewHandler, webhook_secret: str | None = None) -> FastAPI:
    """Create the FastAPI webhook application.

    Args:
        handler: Coroutine that reviews one pull request
        webhook_secret: Optional GitHub webhook secret for signature verification

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Cyclone AI Code Review Bot",
        description="Webhook server for AI-powered pull request reviews",
        version=__version__,
    )
    # Strong references so dispatched reviews are not garbage collected mid-run
    app.state.review_tasks = set()

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "cyclone"}

    @app.post("/webhook")
    async def github_webhook(request: Request):
        """Handle GitHub webhook events."""
        body = await request.body()

        if webhook_secret:
            signature = request.headers.get("X-Hub-Signature-256", "")
            if not verify_signature(body, signature, webhook_secret):
                raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(f"Error decoding webhook payload: {e}")
            raise HTTPException(status_code=400, detail=f"Invalid JSON: {e}") from e

        event_type = request.headers.get("X-GitHub-Event", "pull_request")

        if event_type == "ping":
            logger.info("Received ping from GitHub")
            return {"status": "pong"}

        if event_type != "pull_request":
            logger.debug(f"Ignoring event type: {event_type}")
            return {"status": "ignored"}

        try:
            pr_event = PREvent.from_payload(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed pull_request payload: {e}")
            raise HTTPException(status_code=400, detail="Malformed pull_request payload") from e

        info = pr_event.pull_request
        if not should_review(pr_event.action, pr_event.is_draft):
            logger.info(f"Ignoring action: {pr_event.action} for PR #{info.number}")
            return {"status": "ignored"}

        logger.info(f"Processing PR #{info.number}: {pr_event.action}")

        # Process async to respond quickly
        task = asyncio.create_task(handle_pr_event(pr_event, handler))
        app.state.review_tasks.add(task)
        task.add_done_callback(app.state.review_tasks.discard)

        return {"status": "accepted"}

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": "Cyclone AI Code Review Bot",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "webhook": "/webhook",
            },
        }

    return app


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify GitHub webhook signature.

    Args:
        payload: Raw request body
        signature: X-Hub-Signature-256 header value
        secret: Webhook secret

    Returns:
        True if signature is valid
    """
    if not signature.startswith("sha256="):
        return False

    expected = (
        "sha256="
        + hmac.new(
            secret.encode(),
            payload,
            hashlib.sha256,
        ).hexdigest()
    )

    return hmac.compare_digest(expected, signature)
