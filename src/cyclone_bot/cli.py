"""Command-line interface for Cyclone."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cyclone_bot import __version__
from cyclone_bot.config import (
    AppConfig,
    ConfigError,
    ReviewConfig,
    load_config,
    load_review_config,
    validate_config,
)
from cyclone_bot.github.client import GitHubClient
from cyclone_bot.github.webhook import create_webhook_app
from cyclone_bot.llm.client import ClaudeClient, ClaudeConfig
from cyclone_bot.parser import parse_review_response
from cyclone_bot.prompt import PromptBuilder
from cyclone_bot.review import ReviewOutcome, ReviewService

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_or_exit(config_path: str | None) -> tuple[AppConfig, ReviewConfig]:
    """Load and validate both configurations, exiting on any error."""
    try:
        config = load_config()
        if config_path:
            config.review_config_path = Path(config_path)
        review_config = load_review_config(config.review_config_path)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)

    return config, review_config


def build_service(config: AppConfig, review_config: ReviewConfig) -> ReviewService:
    """Wire the review service from configuration."""
    claude = ClaudeClient(
        ClaudeConfig(
            api_key=config.claude.api_key,
            model=config.claude.model,
            base_url=config.claude.base_url,
            timeout=config.claude.timeout_seconds,
            max_tokens=config.claude.max_tokens,
        )
    )
    return ReviewService(
        github=GitHubClient(config.github.token),
        claude=claude,
        prompt_builder=PromptBuilder(config.prompt_template_path),
        review_config=review_config,
        max_concurrent_reviews=config.server.max_concurrent_reviews,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Cyclone - AI code review bot for GitHub pull requests."""
    setup_logging(verbose)


@cli.command("serve")
@click.option("--port", type=int, default=None, help="Port to listen on (default: $PORT or 8080)")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Review config file")
def serve(port: int | None, host: str | None, config_path: str | None) -> None:
    """Start the webhook server."""
    config, review_config = _load_or_exit(config_path)
    service = build_service(config, review_config)

    app = create_webhook_app(service.review_pull_request, config.github.webhook_secret)
    if not config.github.webhook_secret:
        console.print("[yellow]⚠️  WEBHOOK_SECRET not set - signatures will not be verified[/yellow]")

    host = host or config.server.host
    port = port or config.server.port
    console.print(f"🌪️ Starting webhook server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


@cli.command("review-pr")
@click.argument("repo")
@click.argument("pr_number", type=int)
@click.option("--dry-run", is_flag=True, help="Print the review instead of posting it")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Review config file")
def review_pr(repo: str, pr_number: int, dry_run: bool, config_path: str | None) -> None:
    """Review a single pull request, e.g. `cyclone-bot review-pr acme/api 42`."""
    if "/" not in repo:
        console.print("[red]Error:[/red] REPO must be in owner/name format")
        sys.exit(1)

    owner, name = repo.split("/", 1)
    config, review_config = _load_or_exit(config_path)
    asyncio.run(review_pr_async(config, review_config, owner, name, pr_number, dry_run))


async def review_pr_async(
    config: AppConfig,
    review_config: ReviewConfig,
    owner: str,
    repo: str,
    pr_number: int,
    dry_run: bool = False,
) -> None:
    """Async implementation of review-pr."""
    service = build_service(config, review_config)
    console.print(f"🔍 Reviewing PR #{pr_number} in [bold]{owner}/{repo}[/bold]...")

    try:
        info = await asyncio.to_thread(
            service.github.get_pull_request_info, owner, repo, pr_number
        )
        run = await service.review_pull_request(info, dry_run=dry_run)
    finally:
        await service.claude.close()

    if run.skip_message:
        console.print("[yellow]PR is too large for automated review[/yellow]")
        if dry_run:
            print(run.skip_message)
    if run.review is not None and dry_run:
        console.print("\n[yellow]Dry run - not posting to GitHub[/yellow]\n")
        print(run.review.summary)
        for comment in run.review.comments:
            print(f"\n--- {comment.path}:{comment.line} ({comment.side})\n{comment.body}")

    if run.outcome == ReviewOutcome.FAILED:
        console.print("[red]❌ Review failed, see log for details[/red]")
        sys.exit(1)
    if run.outcome == ReviewOutcome.POSTED:
        console.print(f"📝 Posted review with {run.review.comment_count} inline comments")
    elif run.outcome == ReviewOutcome.SKIPPED_UNCONFIGURED:
        console.print("[yellow]Repository is not configured for review[/yellow]")


@cli.command("parse")
@click.argument("reply_file", type=click.File("r"))
def parse(reply_file) -> None:
    """Parse a saved model reply and show the resulting review."""
    result = parse_review_response(reply_file.read())

    console.print(result.summary, markup=False)

    table = Table(title=f"Inline Comments ({result.comment_count})")
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Comment")
    for comment in result.comments:
        table.add_row(comment.path, str(comment.line), comment.body)
    console.print(table)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Review config file")
def config_validate(config_path: str | None) -> None:
    """Validate environment settings and the review config file."""
    try:
        config = load_config()
        if config_path:
            config.review_config_path = Path(config_path)
        load_review_config(config.review_config_path)
        errors = validate_config(config)

        if errors:
            console.print("[red]Configuration is invalid:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            sys.exit(1)
        else:
            console.print("[green]✓ Configuration is valid[/green]")
    except ConfigError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Review config file")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    try:
        config = load_config()
        if config_path:
            config.review_config_path = Path(config_path)
        review_config = load_review_config(config.review_config_path)
    except ConfigError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Configured Repositories")
    table.add_column("Organization")
    table.add_column("Repository")
    table.add_column("Precision")
    table.add_column("Custom Prompt")

    for org in review_config.organizations:
        for repo in org.repositories:
            custom = repo.custom_prompt[:40] + ("…" if len(repo.custom_prompt) > 40 else "")
            table.add_row(org.name, repo.name, repo.precision.value, custom)

    console.print(table)

    unlisted = "reviewed (medium)" if review_config.review_unlisted_repositories else "skipped"
    console.print(f"\n[bold]Unlisted repositories:[/bold] {unlisted}")
    console.print(f"[bold]Model:[/bold] {config.claude.model}")
    console.print(f"[bold]Timeout:[/bold] {config.claude.timeout_seconds}s")
    console.print(f"[bold]Prompt template:[/bold] {config.prompt_template_path}")


if __name__ == "__main__":
    cli()
