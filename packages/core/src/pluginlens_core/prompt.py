"""Batch prompt assembly and combination of the model's answer with a summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pluginlens_core.config import PromptTemplates
from pluginlens_core.planner import FetchedFile, is_entry_point
from pluginlens_core.status import Failure, ReviewOutcome, Success

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n---\n\n"


@dataclass
class BatchResult:
    success: bool
    review: str = ""
    error: str = ""


def build_file_section(file: FetchedFile, template: str, language: str) -> str:
    return f"### {file.path}\n\n```{language}\n{file.content}\n```\n\n{template}"


def build_batch_prompt(
    files: list[FetchedFile],
    templates: PromptTemplates,
    entry_point: str,
    language: str = "python",
) -> str:
    """Render every selected file with its instructions into one prompt."""
    sections = []
    for file in files:
        template = templates.entry_point if is_entry_point(file.path, entry_point) else templates.regular
        sections.append(build_file_section(file, template, language))
    return SECTION_SEPARATOR.join(sections)


def review_file_batch(
    client,
    files: list[FetchedFile],
    templates: PromptTemplates,
    entry_point: str,
    language: str = "python",
) -> BatchResult:
    """Review all selected files with a single completion call."""
    if not files:
        return BatchResult(success=False, error="No files were selected for review.")

    prompt = build_batch_prompt(files, templates, entry_point, language)
    logger.debug("Sending %d file(s) for review in one batch (%d chars).", len(files), len(prompt))
    response = client.complete(prompt)
    if response is None:
        return BatchResult(success=False, error="An internal error occurred while calling the AI review service.")
    if not response.strip():
        return BatchResult(success=False, error="AI returned an empty response.")
    return BatchResult(success=True, review=response)


def build_review_summary(total_file_count: int, selected_paths: list[str], language: str = "python") -> str:
    selected_count = len(selected_paths)
    file_list = "\n".join(selected_paths)
    lines = [
        "",
        "",
        "---",
        "",
        "### 🔍 Review summary",
        "",
        "**Statistics**",
        f"* **Files in repository**: {total_file_count} {language.title()} file(s)",
        f"* **Files selected for review**: {selected_count} / {total_file_count}",
        "",
        "**Files sent for AI review**",
        f"```\n{file_list}\n```",
    ]
    if total_file_count > selected_count:
        lines.append(
            "\n*Note: because of the project size or token limits, only a prioritized subset of files "
            "was reviewed. The report above was generated directly by AI.*"
        )
    return "\n".join(lines)


def combine_review_results(
    batch: BatchResult,
    total_file_count: int,
    selected_files: list[FetchedFile],
    language: str = "python",
) -> ReviewOutcome:
    """Append the selection summary to a successful review, or turn the batch error into a failure."""
    if not batch.success:
        return Failure(reason=batch.error or "Code review failed and no specific error was provided.")

    selected_paths = [f.path for f in selected_files]
    summary = build_review_summary(total_file_count, selected_paths, language)
    return Success(
        review_text=batch.review + summary,
        total_files=total_file_count,
        selected_files=selected_paths,
    )
