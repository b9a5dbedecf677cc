"""GitHub integration for Cyclone."""

from cyclone_bot.github.client import GitHubClient, format_diff, is_binary_file
from cyclone_bot.github.webhook import PREvent, create_webhook_app

__all__ = [
    "GitHubClient",
    "PREvent",
    "create_webhook_app",
    "format_diff",
    "is_binary_file",
]
