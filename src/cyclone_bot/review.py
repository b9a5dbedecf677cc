"""Main review flow: gate, prompt, call the model, parse, post.

Each pull request is reviewed independently. Failures never propagate out of
``ReviewService.review_pull_request``: configuration gaps fall back to
defaults, model failures produce a placeholder reply that still goes through
parsing, and GitHub failures are logged and end the run without retry.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum

from github.GithubException import GithubException

from cyclone_bot.config import ReviewConfig
from cyclone_bot.gating import SizeThresholds, Skip, evaluate_size
from cyclone_bot.github.client import GitHubClient
from cyclone_bot.llm.client import ClaudeClient
from cyclone_bot.models.context import PullRequestInfo
from cyclone_bot.models.review import ReviewResult
from cyclone_bot.parser import parse_review_response
from cyclone_bot.prompt import PromptBuilder

logger = logging.getLogger(__name__)


class ReviewOutcome(Enum):
    """How a review run ended."""

    POSTED = "posted"
    DRY_RUN = "dry_run"
    SKIPPED_SIZE = "skipped_size"
    SKIPPED_UNCONFIGURED = "skipped_unconfigured"
    FAILED = "failed"


@dataclass
class ReviewRun:
    """Result of one review run, for logging and the CLI."""

    outcome: ReviewOutcome
    review: ReviewResult | None = None
    skip_message: str = ""


def finalize_review(parsed: ReviewResult, size_warning: str) -> ReviewResult:
    """Prepend the size warning, if any, to the review summary."""
    if not size_warning:
        return parsed
    return replace(parsed, summary=size_warning + parsed.summary)


class ReviewService:
    """Runs the review pipeline for one pull request at a time."""

    def __init__(
        self,
        github: GitHubClient,
        claude: ClaudeClient,
        prompt_builder: PromptBuilder,
        review_config: ReviewConfig,
        thresholds: SizeThresholds = SizeThresholds(),
        max_concurrent_reviews: int = 4,
    ) -> None:
        """Initialize the service.

        Args:
            github: GitHub client used to read diffs and post results
            claude: Model client
            prompt_builder: Prompt template holder
            review_config: Per-organization review settings
            thresholds: PR size limits
            max_concurrent_reviews: Upper bound on simultaneous model calls
        """
        self.github = github
        self.claude = claude
        self.prompt_builder = prompt_builder
        self.review_config = review_config
        self.thresholds = thresholds
        self._model_slots = asyncio.Semaphore(max_concurrent_reviews)

    async def review_pull_request(self, info: PullRequestInfo, dry_run: bool = False) -> ReviewRun:
        """Review a pull request and post the result.

        Args:
            info: Pull request identity, text and size
            dry_run: Build the review but don't post anything

        Returns:
            ReviewRun describing what happened
        """
        logger.info(f"Processing PR #{info.number} in {info.full_name}")

        repo_config = self.review_config.resolve(info.owner, info.repo)
        if repo_config is None:
            if not self.review_config.review_unlisted_repositories:
                logger.info(f"Repository {info.full_name} is not configured for review - skipping")
                return ReviewRun(ReviewOutcome.SKIPPED_UNCONFIGURED)
            logger.info(
                f"No dedicated review configuration found for repository {info.full_name} "
                "- using default settings"
            )
            repo_config = self.review_config.default_for(info.repo)

        verdict = evaluate_size(info.stats, self.thresholds)

        if isinstance(verdict, Skip) and dry_run:
            logger.info(f"PR #{info.number} is too large - dry run, not posting skip message")
            return ReviewRun(ReviewOutcome.DRY_RUN, skip_message=verdict.message)

        try:
            pr = await asyncio.to_thread(
                self.github.get_pull_request, info.owner, info.repo, info.number
            )
        except GithubException as e:
            logger.exception(f"Error fetching PR #{info.number} in {info.full_name}: {e}")
            return ReviewRun(ReviewOutcome.FAILED)

        if isinstance(verdict, Skip):
            logger.info(f"PR #{info.number} is too large - posting skip message instead of review")
            try:
                await asyncio.to_thread(self.github.post_comment, pr, verdict.message)
            except GithubException as e:
                logger.exception(f"Error posting skip message: {e}")
                return ReviewRun(ReviewOutcome.FAILED, skip_message=verdict.message)
            return ReviewRun(ReviewOutcome.SKIPPED_SIZE, skip_message=verdict.message)

        logger.info(f"Using precision: {repo_config.precision.value} for repository: {info.repo}")

        try:
            diff = await asyncio.to_thread(self.github.get_pr_diff, pr)
        except GithubException as e:
            logger.exception(f"Error getting PR diff: {e}")
            return ReviewRun(ReviewOutcome.FAILED)

        if not diff:
            logger.warning(f"PR #{info.number} has no reviewable text changes")

        prompt = self.prompt_builder.build(
            title=info.title,
            body=info.body,
            diff=diff,
            precision=repo_config.precision,
            custom_prompt=repo_config.custom_prompt,
        )

        async with self._model_slots:
            reply = await self.claude.generate_review_text(prompt)

        review = finalize_review(parse_review_response(reply), verdict.warning)

        if dry_run:
            return ReviewRun(ReviewOutcome.DRY_RUN, review=review)

        try:
            await asyncio.to_thread(self.github.post_review, pr, review)
        except GithubException as e:
            logger.exception(f"Error posting PR review: {e}")
            return ReviewRun(ReviewOutcome.FAILED, review=review)

        logger.info(f"Successfully posted AI review for PR #{info.number}")
        return ReviewRun(ReviewOutcome.POSTED, review=review)
