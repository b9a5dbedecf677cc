"""Data models for Cyclone."""

from cyclone_bot.models.context import ChangeSetStats, PullRequestInfo
from cyclone_bot.models.review import ReviewComment, ReviewResult

__all__ = [
    "ChangeSetStats",
    "PullRequestInfo",
    "ReviewComment",
    "ReviewResult",
]
