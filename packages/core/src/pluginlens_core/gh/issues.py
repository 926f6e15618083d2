from __future__ import annotations

from dataclasses import dataclass

from github import Github


@dataclass(frozen=True)
class IssueComment:
    id: int
    author_is_bot: bool
    body: str


def get_client(token: str | None) -> Github:
    return Github(token) if token else Github()


def get_issue(repo, issue_number: int):
    return repo.get_issue(issue_number)


def has_label(issue, label: str) -> bool:
    return any(lbl.name == label for lbl in issue.labels or [])


def list_issue_comments(issue) -> list[IssueComment]:
    """Return the issue's comments oldest-first."""
    return [
        IssueComment(
            id=c.id,
            author_is_bot=getattr(c.user, "type", None) == "Bot",
            body=c.body or "",
        )
        for c in issue.get_comments()
    ]


def create_comment(issue, body: str) -> int:
    return issue.create_comment(body).id


def update_comment(issue, comment_id: int, body: str) -> None:
    issue.get_comment(comment_id).edit(body)


def update_issue_body(issue, body: str) -> None:
    issue.edit(body=body)
