"""Language model access for Cyclone."""

from cyclone_bot.llm.client import ERROR_PLACEHOLDER, ClaudeClient, ClaudeConfig

__all__ = [
    "ERROR_PLACEHOLDER",
    "ClaudeClient",
    "ClaudeConfig",
]
