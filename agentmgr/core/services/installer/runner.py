"""
Command runner — the single place where installer subprocesses start.

Every provider call that touches an external tool goes through
``CommandRunner.run``.  The call blocks until the child exits, the
``CancelToken`` is cancelled, or its deadline passes.  On cancellation
the child is terminated (then killed if it lingers); the wait is never
just abandoned.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass

from agentmgr.core.services.installer.errors import CommandCancelled, CommandFailed

logger = logging.getLogger(__name__)

# How often a blocked run re-checks its token
_POLL_INTERVAL = 0.1

# Time a terminated child gets before it is killed
_TERMINATE_GRACE = 5.0

# Children lead their own process group so a cancel reaches whatever they spawn
_POSIX = os.name == "posix"


class CancelToken:
    """Cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from now until the token expires on its own.
        parent: Another token; cancelling the parent cancels this one.

    Thread-safe: ``cancel()`` may be called from any thread while a run
    is blocked on the token.
    """

    def __init__(self, timeout: float | None = None, parent: CancelToken | None = None):
        self._event = threading.Event()
        self._parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if self._deadline is None or parent.deadline < self._deadline:
                self._deadline = parent.deadline

    @classmethod
    def background(cls) -> CancelToken:
        """A token that never fires unless cancelled."""
        return cls()

    def child(self, timeout: float | None = None) -> CancelToken:
        """A token that fires when this one does or after ``timeout``."""
        return CancelToken(timeout=timeout, parent=self)

    @property
    def deadline(self) -> float | None:
        """``time.monotonic()`` value at which the token expires."""
        return self._deadline

    def cancel(self) -> None:
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        if self._event.is_set() or self.expired:
            return True
        return self._parent is not None and self._parent.cancelled

    def reason(self) -> str:
        if self._event.is_set():
            return "cancelled"
        if self.expired:
            return "timed out"
        if self._parent is not None:
            return self._parent.reason()
        return "cancelled"

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())


@dataclass
class CommandOutput:
    """What a finished command left behind."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def combined(self) -> str:
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr

    def check(self, operation: str = "") -> CommandOutput:
        """Return self on success, raise ``CommandFailed`` otherwise."""
        if self.returncode != 0:
            raise CommandFailed(
                self.command,
                self.returncode,
                stdout=self.stdout,
                stderr=self.stderr,
                operation=operation,
            )
        return self


class CommandRunner:
    """Runs argv lists with cancellation support.

    Args:
        poll_interval: Seconds between cancellation checks.
        terminate_grace: Seconds between terminate and kill.
    """

    def __init__(self, poll_interval: float = _POLL_INTERVAL, terminate_grace: float = _TERMINATE_GRACE):
        self._poll_interval = poll_interval
        self._terminate_grace = terminate_grace

    def run(
        self,
        cmd: Sequence[str],
        *,
        ctx: CancelToken | None = None,
        merge_stderr: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> CommandOutput:
        """Run ``cmd`` to completion.

        Args:
            cmd: argv list.
            ctx: Cancellation token; ``None`` waits indefinitely.
            merge_stderr: Interleave stderr into stdout (like a terminal).
            env_overrides: Extra environment variables.

        Returns:
            ``CommandOutput`` regardless of exit status.

        Raises:
            CommandCancelled: The token fired before the child exited.
            CommandFailed: The executable could not be started.
        """
        argv = list(cmd)
        if ctx is not None and ctx.cancelled:
            raise CommandCancelled(argv, reason=ctx.reason())

        env = None
        if env_overrides:
            env = os.environ.copy()
            env.update(env_overrides)

        logger.debug("Executing: %s", argv)
        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                env=env,
                start_new_session=_POSIX,
            )
        except OSError as e:
            logger.info("Cannot start %s: %s", argv[0] if argv else "<empty>", e)
            raise CommandFailed(
                argv,
                127,
                stderr=f"{argv[0] if argv else ''}: command not found ({e})",
            ) from e

        while True:
            try:
                stdout, stderr = proc.communicate(timeout=self._wait_slice(ctx))
                break
            except subprocess.TimeoutExpired:
                if ctx is not None and ctx.cancelled:
                    reason = ctx.reason()
                    logger.warning("Stopping %s (%s)", argv[0], reason)
                    stdout, stderr = self._stop(proc)
                    raise CommandCancelled(argv, stdout=stdout or "", stderr=stderr or "", reason=reason)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        out = CommandOutput(
            command=argv,
            returncode=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            elapsed_ms=elapsed_ms,
        )
        if out.ok:
            logger.debug("Finished %s in %dms", argv[0], elapsed_ms)
        else:
            logger.info("%s exited %d after %dms", argv[0], out.returncode, elapsed_ms)
        return out

    def _wait_slice(self, ctx: CancelToken | None) -> float | None:
        if ctx is None:
            return None
        remaining = ctx.remaining()
        if remaining is None:
            return self._poll_interval
        return max(0.0, min(self._poll_interval, remaining))

    def _stop(self, proc: subprocess.Popen) -> tuple[str, str]:
        self._signal(proc, kill=False)
        try:
            return proc.communicate(timeout=self._terminate_grace)
        except subprocess.TimeoutExpired:
            self._signal(proc, kill=True)
            return proc.communicate()

    @staticmethod
    def _signal(proc: subprocess.Popen, kill: bool) -> None:
        """Terminate or kill the child's whole process group (just the child on Windows)."""
        if not _POSIX:
            if kill:
                proc.kill()
            else:
                proc.terminate()
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL if kill else signal.SIGTERM)
        except ProcessLookupError:
            logger.debug("Process group %d already gone", proc.pid)
