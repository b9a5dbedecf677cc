"""Pull request context models."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChangeSetStats:
    """Size of a pull request's change set."""

    files_changed: int
    additions: int
    deletions: int

    @property
    def total_changes(self) -> int:
        """Additions plus deletions."""
        return self.additions + self.deletions


@dataclass(frozen=True)
class PullRequestInfo:
    """The parts of a pull request a review needs."""

    owner: str
    repo: str
    number: int
    title: str
    body: str
    draft: bool
    stats: ChangeSetStats

    @property
    def full_name(self) -> str:
        """Repository in "owner/name" format."""
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_webhook_payload(cls, payload: dict[str, Any]) -> "PullRequestInfo":
        """Build from a GitHub ``pull_request`` webhook payload.

        Raises:
            KeyError: If the payload lacks the repository or pull request sections
        """
        pr = payload["pull_request"]
        repository = payload["repository"]
        return cls(
            owner=repository["owner"]["login"],
            repo=repository["name"],
            number=int(pr["number"]),
            title=pr.get("title") or "",
            body=pr.get("body") or "",
            draft=bool(pr.get("draft", False)),
            stats=ChangeSetStats(
                files_changed=int(pr.get("changed_files", 0)),
                additions=int(pr.get("additions", 0)),
                deletions=int(pr.get("deletions", 0)),
            ),
        )
