"""File prioritization and token-budget planning for a single review batch.

The whole selection is sent to the completion service in one call, so the
planner is what guarantees that call fits. Files are considered strictly in
priority order and the scan stops at the first file that does not fit: the
selection is always a priority-ordered prefix of the descriptors (minus files
whose fetch failed), which makes it reproducible from the descriptor order
alone.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable

from pluginlens_core.utils.code import COMMENT_PREFIX, normalize_source

logger = logging.getLogger(__name__)

# Rough characters-to-tokens conversion. Deliberately an estimate: the exact
# tokenizer depends on the model and is not available for every provider.
TOKEN_ESTIMATION_RATIO = 0.25

# Share of the model's input window given to file content and templates. The
# rest is headroom for the model's own overhead and estimation error.
DEFAULT_BUDGET_RATIO = 0.7

DEFAULT_MAX_FILES = 15


@dataclass(frozen=True)
class FileDescriptor:
    """A source file listed in the repository tree. Identity is the path."""

    path: str
    sha: str


@dataclass(frozen=True)
class FetchedFile:
    """A selected file with normalized (comment-stripped) content."""

    path: str
    content: str


@dataclass
class SelectionBudget:
    limit: float
    max_count: int
    consumed: int = 0

    def fits(self, cost: int) -> bool:
        return self.consumed + cost <= self.limit

    def consume(self, cost: int) -> None:
        if cost < 0:
            raise ValueError(f"Token cost must be non-negative, got {cost}")
        self.consumed += cost


def is_entry_point(path: str, entry_point: str) -> bool:
    """Return True if ``path`` names the entry-point file (basename, case-insensitive)."""
    return PurePosixPath(path).name.lower() == entry_point.lower()


def sort_files_by_priority(files: list[FileDescriptor], entry_point: str) -> list[FileDescriptor]:
    """Order files: entry point first, then shallower paths, then by path."""
    return sorted(
        files,
        key=lambda f: (not is_entry_point(f.path, entry_point), f.path.count("/"), f.path),
    )


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) * TOKEN_ESTIMATION_RATIO)


def estimate_file_cost(path: str, content: str, template_tokens: int) -> int:
    """Estimated prompt cost of one file: its path, content and template."""
    return math.ceil((len(content) + len(path)) * TOKEN_ESTIMATION_RATIO + template_tokens)


def select_files_for_review(
    files: list[FileDescriptor],
    fetch: Callable[[FileDescriptor], str],
    max_input_tokens: int,
    entry_point_template: str,
    regular_template: str,
    entry_point: str,
    max_files: int = DEFAULT_MAX_FILES,
    budget_ratio: float = DEFAULT_BUDGET_RATIO,
    comment_prefix: str = COMMENT_PREFIX,
) -> list[FetchedFile]:
    """Fetch and accept files in the given order until the budget or count cap is hit.

    ``files`` must already be in priority order. A fetch failure skips only
    that file. The first file whose estimated cost does not fit ends the scan;
    later files are never considered, even if they would fit.
    """
    budget = SelectionBudget(limit=max_input_tokens * budget_ratio, max_count=max_files)
    entry_tokens = estimate_tokens(entry_point_template)
    regular_tokens = estimate_tokens(regular_template)

    selected: list[FetchedFile] = []
    for descriptor in files:
        if len(selected) >= budget.max_count:
            break

        try:
            raw = fetch(descriptor)
        except Exception as e:
            logger.warning("Failed to fetch content for %s: %s", descriptor.path, e)
            continue

        content = normalize_source(raw, comment_prefix)
        template_tokens = entry_tokens if is_entry_point(descriptor.path, entry_point) else regular_tokens
        cost = estimate_file_cost(descriptor.path, content, template_tokens)

        if not budget.fits(cost):
            logger.info(
                "Token budget reached at %s (%d + %d > %.0f); stopping selection.",
                descriptor.path,
                budget.consumed,
                cost,
                budget.limit,
            )
            break

        budget.consume(cost)
        selected.append(FetchedFile(path=descriptor.path, content=content))

    logger.debug("Selected %d of %d file(s), ~%d tokens.", len(selected), len(files), budget.consumed)
    return selected
