"""GitHub API client for PR operations."""

import logging
from collections.abc import Iterable
from typing import Any

from github import Github
from github.PullRequest import PullRequest

from cyclone_bot.models.context import ChangeSetStats, PullRequestInfo
from cyclone_bot.models.review import ReviewResult

logger = logging.getLogger(__name__)

# Files changing more lines than this are left out of the prompt
MAX_FILE_CHANGES = 500

BINARY_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg",
    ".pdf", ".zip", ".tar", ".gz", ".bz2", ".xz",
    ".exe", ".dll", ".so", ".dylib",
    ".woff", ".woff2", ".ttf", ".eot",
    ".mp3", ".mp4", ".avi", ".mov",
    ".class", ".jar", ".war",
)  # fmt: skip


def is_binary_file(filename: str) -> bool:
    """Check if a file is likely binary based on its extension."""
    return filename.lower().endswith(BINARY_EXTENSIONS)


def format_diff(files: Iterable[Any]) -> str:
    """Join the patches of reviewable files into one prompt-ready diff.

    A file is included only if it has a patch, changes at most
    MAX_FILE_CHANGES lines, and is not binary. Each patch is preceded by a
    ``=== filename ===`` line.

    Args:
        files: PyGithub ``File`` objects (anything with filename, patch, changes)

    Returns:
        Diff text, empty if no file qualified
    """
    parts = []
    for file in files:
        if not file.patch or file.changes > MAX_FILE_CHANGES:
            logger.debug(f"Skipping {file.filename}: no patch or too many changes")
            continue
        if is_binary_file(file.filename):
            logger.debug(f"Skipping binary file {file.filename}")
            continue

        parts.append(f"=== {file.filename} ===\n{file.patch}\n\n")

    return "".join(parts)


class GitHubClient:
    """Client for GitHub API operations."""

    def __init__(self, token: str, base_url: str | None = None) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token or app token
            base_url: Optional base URL for GitHub Enterprise
        """
        if base_url:
            self._gh = Github(token, base_url=base_url)
        else:
            self._gh = Github(token)

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PullRequest:
        """Get a pull request.

        Args:
            owner: Repository owner login
            repo: Repository name
            pr_number: Pull request number

        Returns:
            PullRequest object
        """
        return self._gh.get_repo(f"{owner}/{repo}").get_pull(pr_number)

    def get_pull_request_info(self, owner: str, repo: str, pr_number: int) -> PullRequestInfo:
        """Build review input for a PR fetched from the API rather than a webhook."""
        pr = self.get_pull_request(owner, repo, pr_number)
        return PullRequestInfo(
            owner=owner,
            repo=repo,
            number=pr.number,
            title=pr.title or "",
            body=pr.body or "",
            draft=bool(pr.draft),
            stats=ChangeSetStats(
                files_changed=pr.changed_files,
                additions=pr.additions,
                deletions=pr.deletions,
            ),
        )

    def get_pr_diff(self, pr: PullRequest) -> str:
        """Get the reviewable diff for a PR.

        Args:
            pr: Pull request object

        Returns:
            Diff string framed per file
        """
        return format_diff(pr.get_files())

    def post_review(self, pr: PullRequest, review: ReviewResult) -> None:
        """Post the summary and inline comments as one COMMENT review.

        Args:
            pr: Pull request to review
            review: Parsed and finalized review

        Raises:
            GithubException: If GitHub rejects the review
        """
        logger.info(
            f"Posting review to PR #{pr.number} with {review.comment_count} inline comments"
        )
        pr.create_review(
            body=review.summary,
            event="COMMENT",
            comments=[comment.to_github() for comment in review.comments],
        )

    def post_comment(self, pr: PullRequest, body: str) -> None:
        """Post a plain top-level comment on a PR.

        Raises:
            GithubException: If GitHub rejects the comment
        """
        pr.create_issue_comment(body)
        logger.info(f"Posted comment on PR #{pr.number}")
