from __future__ import annotations

import base64
import logging

from pluginlens_core.planner import FileDescriptor
from pluginlens_core.utils.code import is_source_file

logger = logging.getLogger(__name__)


def get_repo(client, full_name: str):
    return client.get_repo(full_name)


def fetch_source_tree(repo, extension: str) -> list[FileDescriptor]:
    """Return every blob with ``extension`` on the repository's default branch.

    One recursive tree call lists the whole repository; content is fetched
    later, per file, only for files the planner actually considers.
    """
    tree = repo.get_git_tree(repo.default_branch, recursive=True)
    entries = tree.tree or []
    if not entries:
        logger.warning("Repository tree for %s is empty.", repo.full_name)
        return []
    return [
        FileDescriptor(path=entry.path, sha=entry.sha)
        for entry in entries
        if entry.type == "blob" and entry.path and entry.sha and is_source_file(entry.path, extension)
    ]


def fetch_blob_text(repo, sha: str) -> str:
    """Fetch a blob by SHA and decode it as UTF-8 (invalid bytes are replaced)."""
    blob = repo.get_git_blob(sha)
    if blob.encoding == "base64":
        raw = base64.b64decode(blob.content)
    else:
        raw = blob.content.encode("utf-8")
    return raw.decode("utf-8", errors="replace")
