"""Review outcomes and the status comment that reflects them on the issue.

Each review cycle owns one status comment. Its state is tagged with a hidden
HTML marker so the next event can read it back explicitly; the visible title
is only used as a fallback for comments that predate the marker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar, Literal

StatusKind = Literal["review_started", "format_error", "review_failure", "review_success"]

# Outcomes after which the submitter may ask for another review.
RETRIGGERABLE_KINDS: frozenset[str] = frozenset({"format_error", "review_failure"})

# Only the trailing marker counts; review text and file paths above it are not trusted.
_STATUS_MARKER_RE = re.compile(
    r"<!-- pluginlens-status: (review_started|format_error|review_failure|review_success) -->\s*\Z"
)

_FOOTER_GENERATED = "*This message was generated automatically.*"
_FOOTER_RETRIGGER = (
    "*Please fix the issues above. When you are done, tick the "
    '"Re-submit for review" checkbox in the **issue body** to trigger another review.*'
)

STATUS_TITLES: dict[str, str] = {
    "review_started": "## ⏳ Review in progress...",
    "format_error": "## ⚠️ Plugin submission format error",
    "review_failure": "## ❌ Plugin review failed",
    "review_success": "## 🤖 AI code review report",
}


@dataclass(frozen=True)
class ReviewOutcome:
    kind: ClassVar[StatusKind]


@dataclass(frozen=True)
class Started(ReviewOutcome):
    kind: ClassVar[StatusKind] = "review_started"


@dataclass(frozen=True)
class FormatError(ReviewOutcome):
    kind: ClassVar[StatusKind] = "format_error"
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Failure(ReviewOutcome):
    kind: ClassVar[StatusKind] = "review_failure"
    reason: str = ""


@dataclass(frozen=True)
class Success(ReviewOutcome):
    kind: ClassVar[StatusKind] = "review_success"
    review_text: str = ""
    total_files: int = 0
    selected_files: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StatusComment:
    """The most recent status comment found on an issue."""

    id: int
    kind: StatusKind


def status_marker(kind: StatusKind) -> str:
    return f"<!-- pluginlens-status: {kind} -->"


def render_status_comment(outcome: ReviewOutcome, plugin_name: str | None = None) -> str:
    """Render the Markdown body of the status comment for ``outcome``."""
    title = STATUS_TITLES[outcome.kind]

    if isinstance(outcome, Started):
        body = "The bot is reviewing your plugin code. This may take a few minutes, please wait..."
        footer = _FOOTER_GENERATED
    elif isinstance(outcome, FormatError):
        errors = "\n".join(f"- {e}" for e in outcome.errors)
        body = (
            "Hello! Your plugin submission has formatting problems, so it could not be reviewed "
            f"automatically. Please fix the following:\n\n{errors}"
        )
        footer = f"{_FOOTER_RETRIGGER}\n\n{_FOOTER_GENERATED}"
    elif isinstance(outcome, Failure):
        body = (
            "Hello! A technical problem occurred while reviewing your plugin:\n\n"
            f"```\n{outcome.reason or 'Unknown error'}\n```"
        )
        footer = f"{_FOOTER_RETRIGGER}\n\n{_FOOTER_GENERATED}"
    elif isinstance(outcome, Success):
        title = f"{title} for {plugin_name or 'Unknown Plugin'}"
        body = (
            "Hello! I have run a preliminary automated review of your plugin code:\n\n"
            f"{outcome.review_text or 'No review content.'}"
        )
        footer = (
            "*This report was generated by AI to give early feedback and suggestions. It does not "
            "replace human review; the final decision rests with the community maintainers.*"
        )
    else:
        raise TypeError(f"Unknown review outcome: {outcome!r}")

    return f"{title}\n\n{body}\n\n---\n\n{footer}\n{status_marker(outcome.kind)}"


def render_system_error_comment(error: BaseException) -> str:
    """Render the untracked comment posted when a cycle fails unexpectedly."""
    message = str(error) or error.__class__.__name__
    return (
        "## 🛑 System error\n\n"
        "An unexpected system error occurred while processing your plugin submission:\n\n"
        f"```\n{message}\n```\n\n"
        "Please try again later or contact a maintainer for help.\n\n"
        f"{_FOOTER_GENERATED}"
    )


def parse_status_kind(body: str) -> StatusKind | None:
    """Return the status kind encoded in a comment body, or None if it is not a status comment."""
    match = _STATUS_MARKER_RE.search(body)
    if match:
        return match.group(1)  # type: ignore[return-value]
    # Comments written before markers existed: match on the visible title.
    stripped = body.lstrip()
    for kind, title in STATUS_TITLES.items():
        if stripped.startswith(title):
            return kind  # type: ignore[return-value]
    return None


def find_last_status_comment(comments) -> StatusComment | None:
    """Return the newest bot comment that carries a review status, or None.

    ``comments`` is the issue's comment thread in chronological order.
    """
    for comment in reversed(list(comments)):
        if not comment.author_is_bot:
            continue
        kind = parse_status_kind(comment.body or "")
        if kind is not None:
            return StatusComment(id=comment.id, kind=kind)
    return None
