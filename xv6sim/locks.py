"""Spin locks with per-CPU interrupt nesting, and sleeping locks."""

from __future__ import annotations

import threading
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

MAX_PCS = 10
"""Most call-stack frames recorded when a spin lock is acquired."""


class LockError(RuntimeError):
    """Raised when a lock or the interrupt nesting is misused."""


@dataclass(eq=False)
class Cpu:
    """One processor's interrupt state.

    interrupts is the interrupt-enable flag; ncli counts nested push_cli
    calls and intena remembers whether interrupts were on before the first.
    """

    id: int = 0
    interrupts: bool = True
    ncli: int = 0
    intena: bool = False

    def push_cli(self) -> None:
        """Disable interrupts, counting the nesting."""
        enabled = self.interrupts
        self.interrupts = False
        if self.ncli == 0:
            self.intena = enabled
        self.ncli += 1

    def pop_cli(self) -> None:
        """Undo one push_cli; re-enable interrupts when the last one is undone."""
        if self.interrupts:
            raise LockError("popcli - interruptible")
        if self.ncli <= 0:
            raise LockError("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.interrupts = True


def _caller_frames() -> tuple[tuple[str, int, str], ...]:
    stack = traceback.extract_stack()[:-2]
    return tuple((f.filename, f.lineno or 0, f.name) for f in reversed(stack[-MAX_PCS:]))


class SpinLock:
    """A mutual exclusion lock held by one CPU at a time.

    Acquiring disables interrupts on the acquiring CPU until release.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cpu: Optional[Cpu] = None
        self.pcs: tuple[tuple[str, int, str], ...] = ()
        self._word = threading.Lock()

    @property
    def locked(self) -> bool:
        """Whether any CPU holds the lock."""
        return self._word.locked()

    def acquire(self, cpu: Cpu) -> None:
        """Take the lock for cpu, waiting while another CPU holds it."""
        cpu.push_cli()
        if self.holding(cpu):
            cpu.pop_cli()
            raise LockError("acquire")
        self._word.acquire()
        self.cpu = cpu
        self.pcs = _caller_frames()

    def release(self, cpu: Cpu) -> None:
        """Give up the lock, which cpu must hold."""
        if not self.holding(cpu):
            raise LockError("release")
        self.pcs = ()
        self.cpu = None
        self._word.release()
        cpu.pop_cli()

    def holding(self, cpu: Cpu) -> bool:
        """Whether cpu holds this lock."""
        cpu.push_cli()
        try:
            return self.locked and self.cpu is cpu
        finally:
            cpu.pop_cli()

    @contextmanager
    def held(self, cpu: Cpu) -> Iterator["SpinLock"]:
        """Hold the lock for the duration of a with block."""
        self.acquire(cpu)
        try:
            yield self
        finally:
            self.release(cpu)


class SleepLock:
    """A long-term lock; waiters sleep instead of spinning."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Take the lock for process pid, sleeping until it is free."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake every waiter."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid