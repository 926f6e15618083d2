"""handle-event command — entry point for the GitHub Actions workflow.

The workflow runs on `issues: [opened, edited]`; Actions writes the webhook
payload to the file named by GITHUB_EVENT_PATH.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import click
from rich.console import Console

from pluginlens_cli.commands.review import print_outcome
from pluginlens_core.reviewer import HANDLED_ACTIONS, run_issue_review

console = Console()


def read_issue_event(event_path: str) -> tuple[str, int, str] | None:
    """Return (repository, issue number, action) from an issues event payload.

    Returns None for payloads that are not issue events (for example a
    comment on a pull request).
    """
    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    issue = payload.get("issue")
    if not issue or "pull_request" in issue:
        return None

    repo = (payload.get("repository") or {}).get("full_name") or os.environ.get("GITHUB_REPOSITORY")
    if not repo:
        raise click.UsageError("Could not determine the repository from the event payload or GITHUB_REPOSITORY.")
    return repo, int(issue["number"]), payload.get("action", "")


@click.command("handle-event")
@click.option(
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the webhook event payload. Defaults to $GITHUB_EVENT_PATH.",
)
@click.option("--shadow", "-s", is_flag=True, help="Print writes instead of sending them to GitHub.")
@click.pass_context
def handle_event_cmd(ctx, event_path: str, shadow: bool):
    """Handle the issue event that triggered this workflow run."""
    from pluginlens_cli.cli import build_engine

    event = read_issue_event(event_path)
    if event is None:
        console.print("[dim]Event is not an issue event. Nothing to do.[/dim]")
        return
    repo, issue_number, action = event
    if action not in HANDLED_ACTIONS:
        console.print(f"[dim]Issue action '{action}' is not handled. Nothing to do.[/dim]")
        return

    config_path = ctx.obj.get("config_path", ".pluginlens.yml") if ctx.obj else ".pluginlens.yml"
    review_config, gh_client = build_engine(config_path)

    outcome = run_issue_review(
        repo=repo,
        issue_number=issue_number,
        config=review_config,
        gh_client=gh_client,
        action=action,
        shadow=shadow,
    )
    print_outcome(outcome)
