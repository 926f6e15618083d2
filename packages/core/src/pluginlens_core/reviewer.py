"""Review orchestration: the issue state machine and the review pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from github import GithubException
from rich.console import Console

from pluginlens_core.config import ReviewConfig
from pluginlens_core.gh.issues import (
    create_comment,
    get_issue,
    has_label,
    list_issue_comments,
    update_comment,
    update_issue_body,
)
from pluginlens_core.gh.repository import fetch_blob_text, fetch_source_tree, get_repo
from pluginlens_core.planner import select_files_for_review, sort_files_by_priority
from pluginlens_core.prompt import combine_review_results, review_file_batch
from pluginlens_core.providers.anthropic import AnthropicCompletionClient
from pluginlens_core.providers.openai import OpenAICompletionClient
from pluginlens_core.status import (
    RETRIGGERABLE_KINDS,
    Failure,
    FormatError,
    ReviewOutcome,
    Started,
    StatusComment,
    find_last_status_comment,
    render_status_comment,
    render_system_error_comment,
)
from pluginlens_core.submission import (
    SubmissionRecord,
    has_review_options,
    is_retrigger_checked,
    uncheck_retrigger,
    validate_submission,
    with_review_options,
    without_review_options,
)

console = Console()
logger = logging.getLogger(__name__)

HANDLED_ACTIONS = ("opened", "edited")


def _get_completion_client(config: ReviewConfig):
    kwargs = dict(
        api_key=config.api_key,
        model=config.model,
        max_output_tokens=config.max_output_tokens,
        temperature=config.temperature,
        base_url=config.base_url,
    )
    if config.provider == "openai":
        return OpenAICompletionClient(**kwargs)
    if config.provider == "anthropic":
        return AnthropicCompletionClient(**kwargs)
    raise ValueError(f"Unknown model provider: {config.provider!r}. Choose 'openai' or 'anthropic'.")


@dataclass
class TicketSession:
    """Write side of one review cycle on one issue.

    Tracks the live issue body and the id of the single status comment so every
    transition after ``Started`` edits the same comment. In shadow mode nothing
    is written to GitHub; writes are printed instead.
    """

    issue: object
    body: str
    comment_id: int | None = None
    shadow: bool = False

    def write_body(self, body: str) -> None:
        if self.shadow:
            console.print(f"[dim]Shadow: issue body would become:[/dim]\n{body}")
        else:
            update_issue_body(self.issue, body)
        self.body = body

    def post_status(self, outcome: ReviewOutcome, plugin_name: str | None = None) -> None:
        """Create or update the status comment, then sync the Review Options section."""
        comment_body = render_status_comment(outcome, plugin_name)
        if self.shadow:
            console.print(f"\n[bold]Shadow: status comment ({outcome.kind})[/bold]\n{comment_body}")
        else:
            try:
                if self.comment_id is not None:
                    update_comment(self.issue, self.comment_id, comment_body)
                else:
                    self.comment_id = create_comment(self.issue, comment_body)
            except GithubException as e:
                logger.error("Failed to post or update %s comment: %s", outcome.kind, e)

        self._sync_review_options(outcome)

    def post_system_error(self, error: BaseException) -> None:
        comment_body = render_system_error_comment(error)
        if self.shadow:
            console.print(f"\n[bold red]Shadow: system error comment[/bold red]\n{comment_body}")
            return
        try:
            create_comment(self.issue, comment_body)
        except GithubException as e:
            logger.error("Failed to post system error comment: %s", e)

    def _sync_review_options(self, outcome: ReviewOutcome) -> None:
        if outcome.kind in RETRIGGERABLE_KINDS:
            new_body = with_review_options(self.body)
        elif outcome.kind == "review_success" and has_review_options(self.body):
            new_body = without_review_options(self.body)
        else:
            return
        if new_body == self.body:
            return
        try:
            self.write_body(new_body)
        except GithubException as e:
            logger.error("Failed to update the Review Options section: %s", e)


def should_rereview(last_status: StatusComment | None, body: str | None) -> bool:
    """An edit re-triggers a review only after a retriggerable outcome and with the box ticked.

    A review that succeeded or is still in progress is never silently redone.
    """
    return last_status is not None and last_status.kind in RETRIGGERABLE_KINDS and is_retrigger_checked(body)


def _find_last_status_comment(issue) -> StatusComment | None:
    try:
        return find_last_status_comment(list_issue_comments(issue))
    except GithubException as e:
        logger.error("Failed to list comments for issue #%s: %s", issue.number, e)
        return None


def review_submission(
    gh_client,
    submission: SubmissionRecord,
    config: ReviewConfig,
    completion_client=None,
) -> ReviewOutcome:
    """Run selection and batch review against the submitted repository.

    Every error is turned into a Failure outcome; nothing propagates.
    """
    try:
        repo = get_repo(gh_client, submission.full_name)
        console.print(f"Fetching {config.file_extension} file tree for {submission.full_name}...")
        all_files = fetch_source_tree(repo, config.file_extension)
        if not all_files:
            return Failure(
                reason=f"No {config.language.title()} ({config.file_extension}) files found in the repository."
            )

        ordered = sort_files_by_priority(all_files, config.entry_point)
        selected = select_files_for_review(
            ordered,
            fetch=lambda f: fetch_blob_text(repo, f.sha),
            max_input_tokens=config.max_input_tokens,
            entry_point_template=config.templates.entry_point,
            regular_template=config.templates.regular,
            entry_point=config.entry_point,
            max_files=config.max_files,
            budget_ratio=config.budget_ratio,
            comment_prefix=config.comment_prefix,
        )
        if not selected:
            return Failure(reason="No files were selected for review due to token limits or an empty repository.")
        console.print(f"Selected {len(selected)} / {len(all_files)} file(s) for review.")

        client = completion_client if completion_client is not None else _get_completion_client(config)
        batch = review_file_batch(client, selected, config.templates, config.entry_point, config.language)
        return combine_review_results(batch, len(all_files), selected, config.language)
    except Exception as e:
        logger.warning("Review of %s failed: %s", submission.full_name, e)
        return Failure(reason=f"An error occurred while fetching or analyzing code: {e}")


def run_review_cycle(
    session: TicketSession,
    title: str | None,
    gh_client,
    config: ReviewConfig,
    completion_client=None,
) -> ReviewOutcome:
    """Drive one cycle: Started → FormatError | Failure | Success."""
    session.post_status(Started())

    validation = validate_submission(title, session.body)
    if not validation.success:
        outcome = FormatError(errors=validation.errors)
        session.post_status(outcome)
        console.print(f"[yellow]Submission has {len(validation.errors)} format error(s).[/yellow]")
        return outcome

    submission = validation.submission
    outcome = review_submission(gh_client, submission, config, completion_client)
    session.post_status(outcome, plugin_name=submission.name)
    if isinstance(outcome, Failure):
        console.print(f"[red]Review failed: {outcome.reason}[/red]")
    else:
        console.print(f"[green]Review posted for {submission.name}.[/green]")
    return outcome


def run_issue_review(
    repo: str,
    issue_number: int,
    config: ReviewConfig,
    gh_client,
    action: str = "opened",
    shadow: bool = False,
    completion_client=None,
) -> ReviewOutcome | None:
    """Handle one issue event and return the cycle's final outcome.

    Returns None when the issue cannot be loaded, when the event does not
    start a cycle (no trigger label, unhandled action, or an edit that does
    not request a re-review) and when
    the cycle ended in an unexpected error, which is reported on the issue as
    a separate system-error comment.
    """
    try:
        issue = get_issue(get_repo(gh_client, repo), issue_number)
        labelled = has_label(issue, config.trigger_label)
    except GithubException:
        # Nothing to comment on yet; the failure is only logged.
        logger.exception("Could not load issue %s#%d", repo, issue_number)
        return None

    if not labelled:
        console.print(f"[dim]Issue #{issue_number} is not labelled '{config.trigger_label}'. Nothing to do.[/dim]")
        return None
    if action not in HANDLED_ACTIONS:
        console.print(f"[dim]Ignoring issue action '{action}'.[/dim]")
        return None

    session = TicketSession(issue=issue, body=issue.body or "", shadow=shadow)

    try:
        if action == "edited":
            last_status = _find_last_status_comment(issue)
            if not should_rereview(last_status, session.body):
                console.print(f"[dim]Edit on #{issue_number} does not request a re-review. Nothing to do.[/dim]")
                return None
            session.comment_id = last_status.id
            # Untick before doing any work so a crash mid-review cannot replay
            # the same trigger.
            session.write_body(uncheck_retrigger(session.body))

        console.print(f"Reviewing plugin submission {repo}#{issue_number} ({action})...")
        return run_review_cycle(session, issue.title, gh_client, config, completion_client)
    except Exception as e:
        logger.exception("Unexpected error while handling %s#%d", repo, issue_number)
        session.post_system_error(e)
        return None
