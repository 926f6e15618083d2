"""CLI entry point for pluginlens.

Commands:
  review        — review one plugin submission issue on demand
  handle-event  — handle the issue event of the current GitHub Actions run
  init          — write a starter config and GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from pluginlens_cli.commands.handle_event import handle_event_cmd
from pluginlens_cli.commands.init import init_cmd
from pluginlens_cli.commands.review import review_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def build_engine(config_path: str, cli_overrides: dict | None = None):
    """Load configuration and the GitHub client shared by every command.

    Raises click.UsageError when required configuration or credentials are
    missing, so the process fails before any event is handled.
    """
    from pluginlens_core.config import ConfigError, build_review_config, load_config
    from pluginlens_core.gh.issues import get_client
    from pluginlens_cli.auth import resolve_github_token

    try:
        review_config = build_review_config(load_config(config_path, cli_overrides))
    except (ConfigError, FileNotFoundError) as e:
        raise click.UsageError(str(e))

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return review_config, get_client(token)


@click.group()
@click.version_option(
    version=importlib.metadata.version("pluginlens"),
    prog_name="pluginlens",
)
@click.option(
    "--config",
    "config_path",
    default=".pluginlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PLUGINLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-assisted review of plugin submissions filed as GitHub issues."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(handle_event_cmd)
main.add_command(init_cmd)
