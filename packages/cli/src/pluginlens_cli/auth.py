"""GitHub token resolution.

Resolution order (stops at the first non-empty value):
  1. PLUGINLENS_GITHUB_TOKEN — a dedicated bot/app token, so status comments
     are authored by a Bot account and can be found again on the next event
  2. GITHUB_TOKEN — injected automatically in GitHub Actions
  3. `gh auth token` — the local GitHub CLI session
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("PLUGINLENS_GITHUB_TOKEN", "GITHUB_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None if no source provides one. Never raises."""
    for env_var in _TOKEN_ENV_VARS:
        token = os.environ.get(env_var)
        if token:
            logger.debug("Using GitHub token from %s.", env_var)
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    if result.returncode == 0 and result.stdout.strip():
        logger.debug("Resolved GitHub token via gh CLI session.")
        return result.stdout.strip()
    return None
