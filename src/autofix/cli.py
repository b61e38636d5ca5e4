"""Command line interface for the GitHub auto-fix service.

Commands:
- start: run the webhook server
- status: print the stored configuration and service state
- add-repo: add a repository to the allow-list
- configure: interactively edit the configuration
- test-issue: run the pipeline once against an existing issue
- webhook-setup: print GitHub webhook setup instructions
- logs: placeholder for log viewing
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, NoReturn, Optional

import click
from pydantic import ValidationError

from src.autofix.config import DEFAULT_CONFIG_PATH, AutoFixSettings, get_settings
from src.autofix.service import AutoFixService, build_service
from src.autofix.store import AutoFixConfig, ConfigStore, ConfigStoreError, ConfigUpdate

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

TEST_ISSUE_TITLE = "Test Issue for Auto-Fix"
TEST_ISSUE_BODY = (
    "This is a test issue to verify the auto-fix system is working correctly."
)
TEST_ISSUE_LABELS = ["bug", "auto-fix"]


ServiceFactory = Callable[[AutoFixSettings, ConfigStore, AutoFixConfig], AutoFixService]


@dataclass
class CliContext:
    """Dependencies shared by every command.

    Tests pass their own instance through `obj=` to swap the service
    factory or the settings loader.
    """

    store: ConfigStore
    service_factory: ServiceFactory = build_service
    settings_loader: Callable[..., AutoFixSettings] = get_settings


def fail(message: str) -> NoReturn:
    click.echo(click.style("Error: ", fg="red") + message, err=True)
    raise SystemExit(1)


def _load_config(ctx: CliContext) -> AutoFixConfig:
    try:
        return ctx.store.load()
    except ConfigStoreError as e:
        fail(f"Could not write configuration: {e}")


def _configure(ctx: CliContext, config: AutoFixConfig, update: ConfigUpdate) -> None:
    try:
        ctx.store.configure(config, update)
    except ConfigStoreError as e:
        fail(f"Could not save configuration: {e}")


def _load_settings(ctx: CliContext) -> AutoFixSettings:
    try:
        return ctx.settings_loader(config_path=str(ctx.store.path))
    except ValidationError as e:
        bad_token = any(
            str(loc).lower() == "github_token"
            for err in e.errors()
            for loc in err.get("loc", ())
        )
        if bad_token:
            fail("GITHUB_TOKEN environment variable is required")
        fail(f"Invalid settings: {e}")


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "config_path",
    envvar="AUTOFIX_CONFIG_PATH",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Path of the JSON configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """Automatically analyze and fix GitHub issues."""
    # Tests provide their own context
    if ctx.obj is None:
        ctx.obj = CliContext(store=ConfigStore(config_path))


@cli.command("start")
@click.option("--port", "-p", type=click.IntRange(1, 65535), default=None,
              help="Webhook server port (defaults to the configured port).")
@click.option("--sparc/--no-sparc", default=True, help="Enable SPARC analysis.")
@click.option("--swarm/--no-swarm", default=True, help="Enable swarm fixes.")
@click.pass_obj
def start_cmd(ctx: CliContext, port: Optional[int], sparc: bool, swarm: bool) -> None:
    """Start the webhook server."""
    settings = _load_settings(ctx)
    config = _load_config(ctx)
    _configure(ctx, config, ConfigUpdate(webhook_port=port, sparc=sparc, swarm=swarm))

    service = ctx.service_factory(settings, ctx.store, config)

    click.echo("Starting GitHub auto-fix system...")

    async def run() -> None:
        from src.autofix.main import serve

        await service.initialize()
        await serve(service, settings, config.webhook_port)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Shutting down...")


@cli.command("status")
@click.pass_obj
def status_cmd(ctx: CliContext) -> None:
    """Show configuration and service status."""
    config = _load_config(ctx)

    click.echo("GitHub Auto-Fix Status")
    click.echo("")
    click.echo(f"Enabled: {'yes' if config.enabled else 'no'}")
    click.echo(f"Webhook port: {config.webhook_port}")
    click.echo("Webhook server: not running in this process")
    click.echo(f"Max concurrent issues: {config.max_concurrent_issues}")
    click.echo("Active issues: 0")
    click.echo("Queued issues: 0")
    click.echo(f"SPARC: {'enabled' if config.sparc.enabled else 'disabled'}")
    click.echo(f"Swarm: {'enabled' if config.swarm.enabled else 'disabled'}")
    click.echo(f"Auto-fix labels: {', '.join(config.auto_fix_labels)}")
    click.echo(f"Ignored labels: {', '.join(config.ignored_labels)}")

    if config.repositories:
        click.echo("Repositories:")
        for repository in config.repositories:
            click.echo(f"  - {repository}")
    else:
        click.echo("Repositories: all")


@cli.command("add-repo")
@click.argument("repository")
@click.pass_obj
def add_repo_cmd(ctx: CliContext, repository: str) -> None:
    """Add REPOSITORY (owner/repo) to the monitored repositories."""
    owner, sep, name = repository.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        fail(f"Invalid repository '{repository}', expected owner/repo")

    config = _load_config(ctx)
    _configure(ctx, config, ConfigUpdate(repository=f"{owner}/{name}"))
    click.echo(f"Added repository {owner}/{name}")


@cli.command("configure")
@click.pass_obj
def configure_cmd(ctx: CliContext) -> None:
    """Interactively edit the configuration."""
    config = _load_config(ctx)

    enabled = click.confirm("Enable auto-fix system?", default=config.enabled)
    max_concurrent = click.prompt(
        "Max concurrent issues",
        type=click.IntRange(min=1),
        default=config.max_concurrent_issues,
    )
    webhook_port = click.prompt(
        "Webhook port",
        type=click.IntRange(1, 65535),
        default=config.webhook_port,
    )
    sparc = click.confirm("Enable SPARC analysis?", default=config.sparc.enabled)
    swarm = click.confirm("Enable swarm fixes?", default=config.swarm.enabled)
    labels = click.prompt(
        "Auto-fix labels (comma-separated)",
        default=", ".join(config.auto_fix_labels),
    )
    repositories = click.prompt(
        "Repositories (comma-separated, empty for all)",
        default=", ".join(config.repositories),
        show_default=bool(config.repositories),
    )

    _configure(
        ctx,
        config,
        ConfigUpdate(
            enabled=enabled,
            max_concurrent_issues=max_concurrent,
            webhook_port=webhook_port,
            sparc=sparc,
            swarm=swarm,
            auto_fix_labels=_split_csv(labels),
            repositories=_split_csv(repositories),
        ),
    )
    click.echo("Configuration saved")


@cli.command("test-issue")
@click.argument("owner")
@click.argument("repo")
@click.argument("issue_number", type=click.IntRange(min=1))
@click.pass_obj
def test_issue_cmd(ctx: CliContext, owner: str, repo: str, issue_number: int) -> None:
    """Run the pipeline once for OWNER/REPO issue ISSUE_NUMBER."""
    settings = _load_settings(ctx)
    config = _load_config(ctx)
    service = ctx.service_factory(settings, ctx.store, config)

    payload = {
        "action": "opened",
        "issue": {
            "number": issue_number,
            "title": TEST_ISSUE_TITLE,
            "body": TEST_ISSUE_BODY,
            "labels": [{"name": label} for label in TEST_ISSUE_LABELS],
        },
        "repository": {
            "name": repo,
            "full_name": f"{owner}/{repo}",
            "owner": {"login": owner},
        },
    }

    async def run():
        await service.initialize()
        await service.start()
        try:
            result = await service.handle_issue_event(payload)
            await service.queue.wait_until_idle()
            return result
        finally:
            await service.shutdown()

    click.echo(f"Testing auto-fix on {owner}/{repo}#{issue_number}...")
    try:
        result = asyncio.run(run())
    except Exception as e:
        logger.exception("Test issue run failed")
        fail(str(e))

    if result is None:
        fail(
            f"Issue {owner}/{repo}#{issue_number} was not processed; "
            "check the repository allow-list and label configuration"
        )
    click.echo("Test issue processed")


@cli.command("webhook-setup")
@click.argument("owner")
@click.argument("repo")
@click.option("--url", default=None, help="Public URL of the webhook endpoint.")
@click.pass_obj
def webhook_setup_cmd(ctx: CliContext, owner: str, repo: str, url: Optional[str]) -> None:
    """Print instructions for adding the webhook to OWNER/REPO."""
    config = _load_config(ctx)
    webhook_url = url or f"http://localhost:{config.webhook_port}/github-webhook"

    click.echo(f"Webhook setup for {owner}/{repo}")
    click.echo("")
    click.echo(f"1. Open https://github.com/{owner}/{repo}/settings/hooks")
    click.echo("2. Click 'Add webhook'")
    click.echo(f"3. Payload URL: {webhook_url}")
    click.echo("4. Content type: application/json")
    click.echo("5. Secret: the value of GITHUB_WEBHOOK_SECRET")
    click.echo("6. Events: Issues, Issue comments, Pushes")
    click.echo("7. Click 'Add webhook'")


@cli.command("logs")
@click.option("--lines", "-n", type=click.IntRange(min=1), default=50, show_default=True)
def logs_cmd(lines: int) -> None:
    """Show recent log output."""
    click.echo(f"Log viewing is not available; showing 0 of {lines} requested lines.")
    click.echo("Logs are written to standard error by the 'start' command.")


def main() -> None:
    """CLI entry point used by the `github-auto-fix` console script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    cli()
