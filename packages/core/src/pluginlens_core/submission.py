"""Parsing and validation of plugin submission issues.

A submission issue carries:
  - a title of the form ``[Plugin] <name>``
  - three acknowledgement checkboxes, matched by their literal text
  - a ```json fenced block with ``name``, ``desc`` and ``repo``
  - optionally, a ``## Review Options`` section with a re-trigger checkbox,
    which is added and removed by the bot, never by the submitter
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from urllib.parse import urlparse

REPOSITORY_HOST = "github.com"

TITLE_RE = re.compile(r"^\[Plugin\]\s+.+$", re.IGNORECASE)
PLACEHOLDER_TITLE_RE = re.compile(r"^\[Plugin\]\s+Plugin name$", re.IGNORECASE)
_JSON_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)

PLACEHOLDER_NAME = "Plugin name"
PLACEHOLDER_DESCRIPTION = "Plugin description"

REQUIRED_CHECKS = (
    "My plugin has been fully tested",
    "My plugin does not contain malicious code",
    "I have read and agree to abide by the project's "
    "[Code of Conduct](https://docs.github.com/en/site-policy/github-terms/github-community-code-of-conduct).",
)

# Accepted spellings for each submission field, canonical key first.
_FIELD_KEYS = {
    "name": ("name",),
    "description": ("desc", "description"),
    "repository_url": ("repo", "repositoryURL", "repository"),
}

REVIEW_OPTIONS_HEADING = "## Review Options"
RETRIGGER_TEXT = "Re-submit for review"

_RETRIGGER_CHECKED_RE = re.compile(r"[-*]\s*\[[xX]\]\s*" + re.escape(RETRIGGER_TEXT))
_RETRIGGER_UNCHECK_RE = re.compile(r"([-*]\s*\[)[xX](\]\s*" + re.escape(RETRIGGER_TEXT) + r")")
# Anchored to a line start so deeper headings such as "### Review Options" are left alone.
_REVIEW_OPTIONS_RE = re.compile(
    r"(?m)\n*^##[ \t]*Review Options[ \t\r]*$(\s*[-*]\s*\[[ xX]\]\s*" + re.escape(RETRIGGER_TEXT) + r"[ \t]*)?"
)


@dataclass(frozen=True)
class SubmissionRecord:
    name: str
    description: str
    repository_url: str
    owner: str
    repo: str
    raw_block: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class ValidationResult:
    success: bool
    errors: list[str]
    submission: SubmissionRecord | None = None


def parse_repository_url(url: str) -> tuple[str, str] | None:
    """Return (owner, repo) from a repository URL path, or None if either part is missing."""
    parts = [p for p in urlparse(url).path.split("/") if p]
    if len(parts) < 2:
        return None
    owner, repo = parts[0], parts[1].removesuffix(".git")
    if not owner or not repo:
        return None
    return owner, repo


def _field(data: dict, name: str):
    for key in _FIELD_KEYS[name]:
        if data.get(key):
            return data[key]
    return None


def _check_required_boxes(body: str) -> list[str]:
    errors = []
    for check in REQUIRED_CHECKS:
        if not re.search(r"-\s*\[[xX]\]\s+" + re.escape(check), body):
            label = check.split("](")[0]
            errors.append(f'Required declaration not checked: "{label}"')
    return errors


def _check_repository_url(url) -> list[str]:
    if not isinstance(url, str):
        return [f"The repository URL `{url}` is not valid."]
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return [f"The repository URL `{url}` is not valid."]
    if parsed.hostname != REPOSITORY_HOST:
        return [f"Only repositories hosted on `{REPOSITORY_HOST}` are supported at the moment."]
    if parse_repository_url(url) is None:
        return ["Invalid repository URL. Could not parse owner and repo."]
    return []


def validate_submission(title: str | None, body: str | None) -> ValidationResult:
    """Validate a submission issue and parse its JSON block.

    All title, checkbox and field problems are collected so the submitter can
    fix them in one pass. A missing or unparsable JSON block stops validation
    early because the field checks depend on it.
    """
    errors: list[str] = []
    title = title or ""
    body = body or ""

    if not TITLE_RE.match(title) or PLACEHOLDER_TITLE_RE.match(title):
        errors.append("The issue title is malformed. It should be: `[Plugin] Your plugin name`")

    errors.extend(_check_required_boxes(body))

    match = _JSON_BLOCK_RE.search(body)
    if not match or not match.group(1):
        errors.append("No JSON code block was found in the issue. Wrap the plugin information in ```json ... ```.")
        return ValidationResult(success=False, errors=errors)

    raw_block = match.group(1)
    try:
        data = json.loads(raw_block)
    except json.JSONDecodeError as e:
        errors.append(f"Malformed JSON: {e}. Check the syntax, such as commas and quotes.")
        return ValidationResult(success=False, errors=errors)
    if not isinstance(data, dict):
        errors.append("The JSON block must be an object with `name`, `desc` and `repo` keys.")
        return ValidationResult(success=False, errors=errors)

    name = _field(data, "name")
    description = _field(data, "description")
    repository_url = _field(data, "repository_url")

    if not name or name == PLACEHOLDER_NAME:
        errors.append("Please provide a valid `name` in the JSON.")
    if not description or description == PLACEHOLDER_DESCRIPTION:
        errors.append("Please provide a valid `desc` in the JSON.")
    if not repository_url:
        errors.append("Please provide the `repo` repository URL in the JSON.")
    else:
        errors.extend(_check_repository_url(repository_url))

    if errors:
        return ValidationResult(success=False, errors=errors)

    owner, repo = parse_repository_url(repository_url)
    return ValidationResult(
        success=True,
        errors=[],
        submission=SubmissionRecord(
            name=str(name),
            description=str(description),
            repository_url=repository_url,
            owner=owner,
            repo=repo,
            raw_block=raw_block,
        ),
    )


# --------------------------------------------------------------------------- #
# Re-trigger checkbox                                                          #
# --------------------------------------------------------------------------- #


def is_retrigger_checked(body: str | None) -> bool:
    return bool(_RETRIGGER_CHECKED_RE.search(body or ""))


def uncheck_retrigger(body: str) -> str:
    return _RETRIGGER_UNCHECK_RE.sub(r"\1 \2", body)


def has_review_options(body: str | None) -> bool:
    return bool(_REVIEW_OPTIONS_RE.search(body or ""))


def without_review_options(body: str | None) -> str:
    """Return ``body`` with every ``## Review Options`` section removed."""
    return _REVIEW_OPTIONS_RE.sub("", body or "").strip()


def with_review_options(body: str | None) -> str:
    """Return ``body`` carrying exactly one Review Options section with an unchecked box.

    Idempotent: a body that already ends in a single unchecked section comes
    back unchanged.
    """
    return f"{without_review_options(body)}\n\n{REVIEW_OPTIONS_HEADING}\n\n- [ ] {RETRIGGER_TEXT}"
