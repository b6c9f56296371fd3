"""Small programs for exercising a job-control shell."""

from __future__ import annotations

import os
import re
import signal
import sys
import time
from typing import Optional, Sequence


def _atoi(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    return int(match.group()) if match else 0


def _seconds(name: str, argv: Optional[Sequence[str]]) -> Optional[int]:
    """The single seconds argument, or None after printing usage."""
    if argv is None:
        progname = sys.argv[0] if sys.argv and sys.argv[0] else name
        args = sys.argv[1:]
    else:
        progname = name
        args = list(argv)
    if len(args) != 1:
        print(f"Usage: {progname} <n>", file=sys.stderr)
        return None
    return _atoi(args[0])


def _spin(secs: int) -> None:
    for _ in range(secs):
        time.sleep(1)


def myspin_main(argv: Optional[Sequence[str]] = None) -> int:
    """Sleep for n seconds in one-second chunks."""
    secs = _seconds("myspin", argv)
    if secs is not None:
        _spin(secs)
    return 0


def myint_main(argv: Optional[Sequence[str]] = None) -> int:
    """Sleep for n seconds, then send SIGINT to this process."""
    secs = _seconds("myint", argv)
    if secs is None:
        return 0
    _spin(secs)
    try:
        os.kill(os.getpid(), signal.SIGINT)
    except OSError:
        print("kill (int) error", end="", file=sys.stderr)
    return 0


def mysplit_main(argv: Optional[Sequence[str]] = None) -> int:
    """Fork a child that sleeps for n seconds and wait for it."""
    secs = _seconds("mysplit", argv)
    if secs is None:
        return 0
    pid = os.fork()
    if pid == 0:
        try:
            _spin(secs)
        finally:
            os._exit(0)
    os.waitpid(pid, 0)
    return 0


def mystop_main(argv: Optional[Sequence[str]] = None) -> int:
    """Sleep for n seconds, then send SIGTSTP to the process group led by this process."""
    secs = _seconds("mystop", argv)
    if secs is None:
        return 0
    _spin(secs)
    try:
        os.killpg(os.getpid(), signal.SIGTSTP)
    except OSError:
        print("kill (tstp) error", end="", file=sys.stderr)
    return 0