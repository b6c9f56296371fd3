"""The shell's job list: a fixed number of slots holding jobs by PID and job ID."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, TextIO

MAX_JOBS = 16


class JobState(IntEnum):
    """Where a job is running, if at all."""

    UNDEF = 0
    FG = 1
    BG = 2
    ST = 3


_STATE_LABELS = {
    JobState.BG: "Running ",
    JobState.FG: "Foreground ",
    JobState.ST: "Stopped ",
}


@dataclass
class Job:
    """One job: a process group started from a single command line."""

    pid: int
    jid: int
    state: JobState
    cmdline: str


class JobTableFullError(Exception):
    """Raised when a job is added to a table with no free slot."""


class JobTable:
    """Jobs kept in a fixed number of slots, with job IDs handed out in turn."""

    def __init__(
        self,
        max_jobs: int = MAX_JOBS,
        *,
        verbose: bool = False,
        out: Optional[TextIO] = None,
    ) -> None:
        if max_jobs < 1:
            raise ValueError(f"a job table needs at least one slot, got {max_jobs}")
        self.max_jobs = max_jobs
        self.verbose = verbose
        self.out = out
        self.next_jid = 1
        self._slots: list[Optional[Job]] = [None] * max_jobs

    def __iter__(self) -> Iterator[Job]:
        return (job for job in self._slots if job is not None)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def add(self, pid: int, state: JobState, cmdline: str) -> Job:
        """Put a new job in the first free slot and return it."""
        if pid < 1:
            raise ValueError(f"invalid process ID {pid}")
        try:
            slot = self._slots.index(None)
        except ValueError:
            raise JobTableFullError("Tried to create too many jobs") from None
        job = Job(pid=pid, jid=self.next_jid, state=JobState(state), cmdline=cmdline)
        self._slots[slot] = job
        self.next_jid += 1
        if self.next_jid > self.max_jobs:
            self.next_jid = 1
        if self.verbose:
            print(
                f"Added job [{job.jid}] {job.pid} {job.cmdline}",
                file=self.out if self.out is not None else sys.stdout,
            )
        return job

    def delete(self, pid: int) -> bool:
        """Remove the job with this PID; whether there was one."""
        if pid < 1:
            return False
        for slot, job in enumerate(self._slots):
            if job is not None and job.pid == pid:
                self._slots[slot] = None
                self.next_jid = self.max_jid() + 1
                return True
        return False

    def max_jid(self) -> int:
        """The largest job ID in use, or 0 if the table is empty."""
        return max((job.jid for job in self), default=0)

    def foreground_pid(self) -> int:
        """PID of the foreground job, or 0 if there is none."""
        return next((job.pid for job in self if job.state is JobState.FG), 0)

    def by_pid(self, pid: int) -> Optional[Job]:
        """The job with this PID, if any."""
        if pid < 1:
            return None
        return next((job for job in self if job.pid == pid), None)

    def by_jid(self, jid: int) -> Optional[Job]:
        """The job with this job ID, if any."""
        if jid < 1:
            return None
        return next((job for job in self if job.jid == jid), None)

    def pid_to_jid(self, pid: int) -> int:
        """Job ID of the job with this PID, or 0 if there is none."""
        job = self.by_pid(pid)
        return job.jid if job is not None else 0

    def listing(self) -> str:
        """The job list as the ``jobs`` command prints it."""
        parts = []
        for slot, job in enumerate(self._slots):
            if job is None:
                continue
            label = _STATE_LABELS.get(
                job.state,
                f"listjobs: Internal error: job[{slot}].state={int(job.state)} ",
            )
            parts.append(f"[{job.jid}] ({job.pid}) {label}{job.cmdline}")
        return "".join(parts)