"""init command — write a starter .pluginlens.yml and the GitHub Actions workflow."""

from __future__ import annotations

import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()

_WORKFLOW_TEMPLATE = """\
name: Plugin submission review

on:
  issues:
    types: [opened, edited]

concurrency:
  group: pluginlens-issue-${{{{ github.event.issue.number }}}}

jobs:
  review:
    if: contains(github.event.issue.labels.*.name, '{trigger_label}')
    runs-on: ubuntu-latest
    permissions:
      contents: read
      issues: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install pluginlens
        run: pip install "pluginlens[{provider}]=={version}"

      - name: Review submission
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
          OPENAI_MODEL: ${{{{ vars.OPENAI_MODEL }}}}
          OPENAI_MAX_INPUT_TOKENS: ${{{{ vars.OPENAI_MAX_INPUT_TOKENS }}}}
          OPENAI_MAX_OUTPUT_TOKENS: ${{{{ vars.OPENAI_MAX_OUTPUT_TOKENS }}}}
        run: pluginlens handle-event
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up pluginlens for a plugin registry repository.

    Creates .pluginlens.yml and .github/workflows/pluginlens.yml.
    """
    console.print("\n[bold cyan]pluginlens init[/bold cyan]\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    provider = click.prompt(
        "Completion provider",
        type=click.Choice(["openai", "anthropic"]),
        default="openai",
    )
    api_key_env = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"
    trigger_label = click.prompt("Label that marks submission issues", default="plugin-publish")
    entry_point = click.prompt("Entry-point file reviewed with extra rules", default="main.py")

    _write_config({"provider": provider, "trigger_label": trigger_label, "entry_point": entry_point})
    console.print("[green]Created .pluginlens.yml[/green]")

    if click.confirm("\nGenerate .github/workflows/pluginlens.yml for GitHub Actions?", default=True):
        _write_workflow(provider, api_key_env, trigger_label)
        console.print("[green]Created .github/workflows/pluginlens.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to the repository secrets and "
            "OPENAI_MODEL, OPENAI_MAX_INPUT_TOKENS, OPENAI_MAX_OUTPUT_TOKENS to the repository "
            "variables (Settings → Secrets and variables → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Review an issue manually with: [bold]pluginlens review --repo {repo} --issue <number>[/bold]")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    # https://github.com/owner/repo.git and git@github.com:owner/repo.git
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def _write_config(config: dict) -> None:
    """Write or update .pluginlens.yml, preserving any existing keys."""
    path = Path(".pluginlens.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("pluginlens")
    except PackageNotFoundError:
        return "0.1.0"


def _write_workflow(provider: str, api_key_env: str, trigger_label: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "pluginlens.yml").write_text(
        _WORKFLOW_TEMPLATE.format(
            provider=provider,
            api_key_env=api_key_env,
            trigger_label=trigger_label,
            version=_get_version(),
        )
    )
