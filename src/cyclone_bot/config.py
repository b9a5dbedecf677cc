"""Configuration loading and validation for Cyclone."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

WILDCARD_REPOSITORY_NAMES = ("*", "default")

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"
DEFAULT_CLAUDE_BASE_URL = "https://api.anthropic.com/v1"


class ConfigError(Exception):
    """Raised when configuration is missing or malformed."""

    pass


class Precision(Enum):
    """How strict a review should be."""

    MINOR = "minor"
    MEDIUM = "medium"
    STRICT = "strict"


@dataclass(frozen=True)
class RepositoryConfig:
    """Review settings for one repository (or a wildcard entry)."""

    name: str
    precision: Precision = Precision.MEDIUM
    custom_prompt: str = ""

    @property
    def is_wildcard(self) -> bool:
        """Whether this entry applies to every repository of its organization."""
        return self.name in WILDCARD_REPOSITORY_NAMES


@dataclass(frozen=True)
class OrganizationConfig:
    """Review settings for an organization's repositories."""

    name: str
    repositories: tuple[RepositoryConfig, ...] = ()


@dataclass(frozen=True)
class ReviewConfig:
    """Per-organization review settings, loaded once at startup."""

    organizations: tuple[OrganizationConfig, ...] = ()
    # When False, repositories with no matching entry are not reviewed at all
    review_unlisted_repositories: bool = True

    def resolve(self, owner: str, repo_name: str) -> RepositoryConfig | None:
        """Find the settings for a repository.

        An exact repository name match wins over a wildcard entry ("*" or
        "default") in the same organization.

        Args:
            owner: Organization or user login
            repo_name: Repository name without the owner

        Returns:
            The matching entry, or None if nothing applies
        """
        for org in self.organizations:
            if org.name != owner:
                continue

            for repo in org.repositories:
                if repo.name == repo_name:
                    return repo

            for repo in org.repositories:
                if repo.is_wildcard:
                    return repo

        return None

    def default_for(self, repo_name: str) -> RepositoryConfig:
        """Settings used when resolve() finds nothing."""
        return RepositoryConfig(name=repo_name, precision=Precision.MEDIUM, custom_prompt="")


@dataclass
class GitHubSettings:
    """GitHub integration configuration."""

    token: str
    webhook_secret: str | None = None


@dataclass
class ClaudeSettings:
    """Anthropic Messages API configuration."""

    api_key: str
    model: str = DEFAULT_CLAUDE_MODEL
    base_url: str = DEFAULT_CLAUDE_BASE_URL
    timeout_seconds: float = 60.0
    max_tokens: int = 8000


@dataclass
class ServerSettings:
    """Webhook server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    max_concurrent_reviews: int = 4


@dataclass
class AppConfig:
    """Complete application configuration."""

    github: GitHubSettings
    claude: ClaudeSettings
    server: ServerSettings = field(default_factory=ServerSettings)
    prompt_template_path: Path = Path("prompts/system-prompt.txt")
    review_config_path: Path = Path("review-config.json")


def load_config(
    environ: Mapping[str, str] | None = None,
    env_file: Path | None = Path(".env"),
) -> AppConfig:
    """Load application configuration from the environment.

    Args:
        environ: Variables to read (default: os.environ after loading env_file)
        env_file: Optional dotenv file; existing variables are not overridden

    Returns:
        Loaded configuration

    Raises:
        ConfigError: If a numeric setting cannot be parsed
    """
    if environ is None:
        if env_file is not None and env_file.exists():
            load_dotenv(dotenv_path=env_file)
        environ = os.environ

    github = GitHubSettings(
        token=environ.get("GITHUB_TOKEN", ""),
        webhook_secret=environ.get("WEBHOOK_SECRET") or None,
    )

    claude = ClaudeSettings(
        api_key=environ.get("ANTHROPIC_API_KEY", ""),
        model=environ.get("CLAUDE_MODEL") or DEFAULT_CLAUDE_MODEL,
        base_url=environ.get("ANTHROPIC_BASE_URL") or DEFAULT_CLAUDE_BASE_URL,
        timeout_seconds=_parse_number(environ, "CLAUDE_TIMEOUT", 60.0, float),
        max_tokens=_parse_number(environ, "CLAUDE_MAX_TOKENS", 8000, int),
    )

    server = ServerSettings(
        host=environ.get("HOST") or "0.0.0.0",
        port=_parse_number(environ, "PORT", 8080, int),
        max_concurrent_reviews=_parse_number(environ, "MAX_CONCURRENT_REVIEWS", 4, int),
    )

    return AppConfig(
        github=github,
        claude=claude,
        server=server,
        prompt_template_path=Path(
            environ.get("PROMPT_TEMPLATE_PATH") or "prompts/system-prompt.txt"
        ),
        review_config_path=Path(environ.get("REVIEW_CONFIG_PATH") or "review-config.json"),
    )


def _parse_number(environ: Mapping[str, str], key: str, default: Any, cast: type) -> Any:
    """Read a numeric environment variable."""
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def load_review_config(config_path: Path) -> ReviewConfig:
    """Load per-organization review settings.

    The file is read with a YAML parser, so both JSON and YAML files work.

    Args:
        config_path: Path to the review config file

    Returns:
        Parsed review configuration

    Raises:
        ConfigError: If the file is missing or malformed
    """
    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Review config file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse review config {config_path}: {e}") from e

    raw_config = _expand_env_vars(raw_config)
    review_config = _parse_review_config(raw_config)

    logger.info(f"Loaded configuration for {len(review_config.organizations)} organizations")
    return review_config


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _parse_review_config(raw: Any) -> ReviewConfig:
    """Parse raw config dict into a ReviewConfig."""
    if not isinstance(raw, dict):
        raise ConfigError("Review config must be a mapping with an 'organizations' list")

    orgs_raw = raw.get("organizations") or []
    if not isinstance(orgs_raw, list):
        raise ConfigError("'organizations' must be a list")

    organizations = []
    for org_raw in orgs_raw:
        if not isinstance(org_raw, dict) or "name" not in org_raw:
            raise ConfigError(f"Organization entry needs a name: {org_raw!r}")

        repositories = []
        for repo_raw in org_raw.get("repositories") or []:
            if not isinstance(repo_raw, dict) or "name" not in repo_raw:
                raise ConfigError(f"Repository entry in {org_raw['name']} needs a name: {repo_raw!r}")
            repositories.append(
                RepositoryConfig(
                    name=str(repo_raw["name"]),
                    precision=_parse_precision(repo_raw.get("precision")),
                    custom_prompt=repo_raw.get("custom_prompt") or "",
                )
            )

        organizations.append(
            OrganizationConfig(name=str(org_raw["name"]), repositories=tuple(repositories))
        )

    return ReviewConfig(
        organizations=tuple(organizations),
        review_unlisted_repositories=bool(raw.get("review_unlisted_repositories", True)),
    )


def _parse_precision(value: Any) -> Precision:
    """Parse a precision string, falling back to medium."""
    if value is None:
        return Precision.MEDIUM
    try:
        return Precision(str(value).lower())
    except ValueError:
        logger.warning(f"Unknown precision {value!r}, using medium")
        return Precision.MEDIUM


def validate_config(config: AppConfig) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not config.github.token:
        errors.append("Missing GitHub token (set GITHUB_TOKEN)")

    if not config.claude.api_key:
        errors.append("Missing Anthropic API key (set ANTHROPIC_API_KEY)")

    if config.claude.timeout_seconds <= 0:
        errors.append(f"CLAUDE_TIMEOUT must be positive, got {config.claude.timeout_seconds}")

    if config.server.max_concurrent_reviews < 1:
        errors.append(
            f"MAX_CONCURRENT_REVIEWS must be at least 1, got {config.server.max_concurrent_reviews}"
        )

    return errors
