"""review command — run one review cycle on a plugin submission issue."""

from __future__ import annotations

import click
from rich.console import Console

from pluginlens_core.reviewer import HANDLED_ACTIONS, run_issue_review
from pluginlens_core.status import ReviewOutcome

console = Console()


def print_outcome(outcome: ReviewOutcome | None) -> None:
    if outcome is None:
        console.print("[dim]No review cycle was completed.[/dim]")
        return
    console.print(f"[bold]Outcome:[/bold] {outcome.kind}")


@click.command("review")
@click.option("--repo", required=True, help="Repository holding the submission issues, in owner/name format.")
@click.option("--issue", "issue_number", type=int, required=True, help="Submission issue number.")
@click.option(
    "--action",
    type=click.Choice(HANDLED_ACTIONS),
    default="opened",
    show_default=True,
    help="Treat the run as this issue event. 'edited' only reviews when a re-review was requested.",
)
@click.option(
    "--model",
    default=None,
    help="Completion model identifier. Overrides config file and OPENAI_MODEL.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print status comments and issue edits instead of writing them to GitHub.",
)
@click.pass_context
def review_cmd(ctx, repo: str, issue_number: int, action: str, model: str | None, shadow: bool):
    """Review a plugin submission issue.

    Validates the submission, reviews a prioritized subset of the linked
    repository's source files in one completion call, and reports the result
    in a single status comment on the issue.

    \b
    Required environment variables:
      GITHUB_TOKEN              GitHub token (or use gh CLI)
      OPENAI_API_KEY            Completion service key (ANTHROPIC_API_KEY for anthropic)
      OPENAI_MODEL              Model identifier
      OPENAI_MAX_INPUT_TOKENS   Model input window, in tokens
      OPENAI_MAX_OUTPUT_TOKENS  Maximum tokens generated per review
    """
    from pluginlens_cli.cli import build_engine

    config_path = ctx.obj.get("config_path", ".pluginlens.yml") if ctx.obj else ".pluginlens.yml"
    review_config, gh_client = build_engine(config_path, cli_overrides={"model": model})

    outcome = run_issue_review(
        repo=repo,
        issue_number=issue_number,
        config=review_config,
        gh_client=gh_client,
        action=action,
        shadow=shadow,
    )
    print_outcome(outcome)
