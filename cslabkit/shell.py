"""A small shell with job control: foreground and background jobs, bg, fg and jobs."""

from __future__ import annotations

import getopt
import os
import re
import signal
import sys
import time
from contextlib import suppress
from types import FrameType
from typing import Callable, NoReturn, Optional, Sequence, TextIO

from cslabkit.cmdline import parse_line
from cslabkit.jobs import JobState, JobTable, JobTableFullError

PROMPT = "tsh> "
_POLL_INTERVAL = 0.001


def _atoi(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    return int(match.group()) if match else 0


class Shell:
    """Reads command lines, runs built-ins and starts programs as jobs."""

    def __init__(
        self,
        *,
        emit_prompt: bool = True,
        verbose: bool = False,
        out: Optional[TextIO] = None,
        kill: Callable[[int, int], None] = os.kill,
    ) -> None:
        self.emit_prompt = emit_prompt
        self.verbose = verbose
        self.out = out
        self._kill = kill
        self.jobs = JobTable(verbose=verbose, out=out)

    def _emit(self, text: str) -> None:
        stream = self.out if self.out is not None else sys.stdout
        stream.write(text)
        stream.flush()

    def _signal_group(self, pid: int, signum: int) -> None:
        with suppress(OSError):
            self._kill(-pid, signum)

    @staticmethod
    def _exec_child(argv: list[str], mask: set) -> NoReturn:
        try:
            os.setpgid(0, 0)
            signal.pthread_sigmask(signal.SIG_SETMASK, mask)
            try:
                os.execve(argv[0], argv, os.environ)
            except OSError:
                os.write(1, f"tsh: command not found: {argv[0]}\n".encode())
        finally:
            os._exit(0)

    def eval(self, cmdline: str) -> None:
        """Run a built-in at once, or start the command as a job in its own process group."""
        argv, background = parse_line(cmdline)
        if not argv or self.builtin(argv):
            return

        previous = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGCHLD})
        try:
            pid = os.fork()
        except OSError as err:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)
            self._emit(f"Fork error: {err.strerror}\n")
            raise SystemExit(1) from err
        if pid == 0:
            self._exec_child(argv, previous)

        signal.pthread_sigmask(signal.SIG_BLOCK, signal.valid_signals())
        try:
            self.jobs.add(pid, JobState.BG if background else JobState.FG, cmdline)
        except JobTableFullError as err:
            self._emit(f"{err}\n")
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)

        if background:
            self._emit(f"[{self.jobs.pid_to_jid(pid)}] ({pid}) {cmdline}")
        else:
            self.wait_foreground(pid)

    def builtin(self, argv: Sequence[str]) -> bool:
        """Run ``argv`` if it is a built-in command; whether it was one."""
        name = argv[0]
        if name == "quit":
            raise SystemExit(0)
        if name == "jobs":
            self._emit(self.jobs.listing())
            return True
        if name in ("bg", "fg"):
            self.do_bgfg(argv)
            return True
        return name == "&"

    def do_bgfg(self, argv: Sequence[str]) -> None:
        """Continue a job in the background (``bg``) or the foreground (``fg``)."""
        cmd = "bg" if argv[0] == "bg" else "fg"
        if len(argv) < 2:
            self._emit(f"{cmd} command requires PID or %jobid argument\n")
            return
        target = argv[1]
        if target.startswith("%"):
            job = self.jobs.by_jid(_atoi(target[1:]))
            if job is None:
                self._emit(f"{target}: No such job\n")
                return
        elif target[:1] in "123456789" and target:
            pid = _atoi(target)
            job = self.jobs.by_pid(pid)
            if job is None:
                self._emit(f"({pid}) No such job\n")
                return
        else:
            self._emit(f"{cmd}: argument must be a PID or %jobid\n")
            return

        if cmd == "bg":
            job.state = JobState.BG
            self._signal_group(job.pid, signal.SIGCONT)
            self._emit(f"[{job.jid}] ({job.pid}) {job.cmdline}")
        else:
            job.state = JobState.FG
            self._signal_group(job.pid, signal.SIGCONT)
            self.wait_foreground(job.pid)

    def wait_foreground(self, pid: int) -> None:
        """Block until ``pid`` is no longer the foreground job."""
        while pid == self.jobs.foreground_pid():
            time.sleep(_POLL_INTERVAL)

    def handle_sigchld(self, signum: int, frame: Optional[FrameType]) -> None:
        """Reap every child that has exited or stopped, updating the job list."""
        while True:
            try:
                pid, status = os.waitpid(-1, os.WNOHANG | os.WUNTRACED)
            except ChildProcessError:
                return
            if pid <= 0:
                return
            jid = self.jobs.pid_to_jid(pid)
            if os.WIFSTOPPED(status):
                job = self.jobs.by_jid(jid)
                if job is not None and job.state is not JobState.ST:
                    self._emit(f"job [{jid}] ({pid}) stopped by signal {os.WSTOPSIG(status)}\n")
                    job.state = JobState.ST
            elif os.WIFSIGNALED(status):
                if jid:
                    self._emit(f"job [{jid}] ({pid}) terminated by signal {os.WTERMSIG(status)}\n")
                    self.jobs.delete(pid)
                    self._signal_group(pid, os.WSTOPSIG(status))
            elif os.WIFEXITED(status):
                self.jobs.delete(pid)

    def handle_sigint(self, signum: int, frame: Optional[FrameType]) -> None:
        """Pass ctrl-c on to the foreground job and forget it."""
        pid = self.jobs.foreground_pid()
        jid = self.jobs.pid_to_jid(pid)
        if jid:
            self._emit(f"job [{jid}] ({pid}) terminated by signal {int(signum)}\n")
            self.jobs.delete(pid)
            self._signal_group(pid, signum)

    def handle_sigtstp(self, signum: int, frame: Optional[FrameType]) -> None:
        """Pass ctrl-z on to the foreground job and mark it stopped."""
        pid = self.jobs.foreground_pid()
        job = self.jobs.by_jid(self.jobs.pid_to_jid(pid))
        if job is not None and job.state is not JobState.ST:
            self._emit(f"job [{job.jid}] ({pid}) stopped by signal {int(signum)}\n")
            job.state = JobState.ST
            self._signal_group(pid, signum)

    def handle_sigquit(self, signum: int, frame: Optional[FrameType]) -> None:
        """Terminate the shell."""
        self._emit("Terminating after receipt of SIGQUIT signal\n")
        raise SystemExit(1)

    def install_handlers(self) -> dict:
        """Install the shell's signal handlers; returns the handlers they replace."""
        handlers = {
            signal.SIGINT: self.handle_sigint,
            signal.SIGTSTP: self.handle_sigtstp,
            signal.SIGCHLD: self.handle_sigchld,
            signal.SIGQUIT: self.handle_sigquit,
        }
        previous = {}
        for signum, handler in handlers.items():
            previous[signum] = signal.signal(signum, handler)
            signal.siginterrupt(signum, False)
        return previous

    def run(self, stream: Optional[TextIO] = None) -> int:
        """Read and evaluate lines until end of input or ``quit``; the exit status."""
        stream = stream if stream is not None else sys.stdin
        try:
            while True:
                if self.emit_prompt:
                    self._emit(PROMPT)
                try:
                    line = stream.readline()
                except OSError:
                    self._emit("fgets error\n")
                    return 1
                if not line.endswith("\n"):
                    return 0
                self.eval(line)
        except SystemExit as exc:
            return exc.code if isinstance(exc.code, int) else 0


def _usage() -> int:
    print("Usage: shell [-hvp]")
    print("   -h   print this message")
    print("   -v   print additional diagnostic information")
    print("   -p   do not emit a command prompt")
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point; returns the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        opts, _ = getopt.getopt(args, "hvp")
    except getopt.GetoptError:
        return _usage()

    verbose = False
    emit_prompt = True
    for opt, _value in opts:
        if opt == "-h":
            return _usage()
        if opt == "-v":
            verbose = True
        elif opt == "-p":
            emit_prompt = False

    sys.stdout.flush()
    sys.stderr.flush()
    os.dup2(1, 2)

    shell = Shell(emit_prompt=emit_prompt, verbose=verbose)
    shell.install_handlers()
    return shell.run(sys.stdin)


if __name__ == "__main__":
    sys.exit(main())