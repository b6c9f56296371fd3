"""Splitting a shell command line into arguments."""

from __future__ import annotations


def _skip_spaces(buf: str, pos: int) -> int:
    while pos < len(buf) and buf[pos] == " ":
        pos += 1
    return pos


def _next_delimiter(buf: str, pos: int) -> tuple[int, int]:
    """Start of the next argument and the position of the character ending it."""
    if buf.startswith("'", pos):
        pos += 1
        return pos, buf.find("'", pos)
    return pos, buf.find(" ", pos)


def parse_line(cmdline: str) -> tuple[list[str], bool]:
    """Split ``cmdline`` into arguments and say whether it asks for a background job.

    The last character (normally the newline) is dropped.  Arguments are
    separated by spaces; text between single quotes is one argument.  A
    blank line counts as a background request, as does a last argument
    starting with ``&``, which is then removed.
    """
    buf = cmdline[:-1] + " " if cmdline else ""
    pos, delim = _next_delimiter(buf, _skip_spaces(buf, 0))
    argv: list[str] = []
    while delim != -1:
        argv.append(buf[pos:delim])
        pos, delim = _next_delimiter(buf, _skip_spaces(buf, delim + 1))

    if not argv:
        return argv, True
    background = argv[-1].startswith("&")
    if background:
        argv.pop()
    return argv, background