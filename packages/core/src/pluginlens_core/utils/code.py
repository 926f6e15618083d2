"""Lexical helpers for source files sent to the reviewer.

The comment stripper is a best-effort line scanner, not a tokenizer. It tracks
single- and double-quoted strings on one physical line only, so triple-quoted
and multi-line literals are not modeled: a comment character inside such a
literal can truncate the line.
"""

from __future__ import annotations

COMMENT_PREFIX = "#"


def remove_comment_from_line(line: str, comment_prefix: str = COMMENT_PREFIX) -> str:
    """Return ``line`` truncated at the first comment character outside a string.

    A quote toggles its own flag only when the other quote kind is not open and
    the previous character is not a backslash. Escape runs longer than one
    character are not modeled.
    """
    in_single_quote = False
    in_double_quote = False

    for i, char in enumerate(line):
        if char == "'" and not in_double_quote:
            if i == 0 or line[i - 1] != "\\":
                in_single_quote = not in_single_quote
        elif char == '"' and not in_single_quote:
            if i == 0 or line[i - 1] != "\\":
                in_double_quote = not in_double_quote

        if not in_single_quote and not in_double_quote and line.startswith(comment_prefix, i):
            return line[:i].rstrip()

    return line


def normalize_source(text: str, comment_prefix: str = COMMENT_PREFIX) -> str:
    """Strip trailing comments from every line and drop lines left blank."""
    lines = (remove_comment_from_line(line, comment_prefix) for line in text.split("\n"))
    return "\n".join(line for line in lines if line.strip() != "")


def is_source_file(path: str, extension: str) -> bool:
    return path.lower().endswith(extension.lower())
