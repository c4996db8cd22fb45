"""System call numbers, argument fetching from user memory, and dispatch."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, TextIO

_MASK32 = 0xFFFFFFFF
_INT = struct.Struct("<i")


class SyscallError(Exception):
    """Raised when a system call argument is invalid or the call fails."""


class SyscallNumber(IntEnum):
    """Numbers by which user code names system calls."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    DATE = 22


@dataclass
class Process:
    """A process as seen by system call code.

    memory is the user address space starting at address 0; its length is
    the process size. esp is the saved user stack pointer, which points at
    a return address followed by the call's arguments.
    """

    pid: int
    name: str = ""
    memory: bytearray = field(default_factory=bytearray)
    esp: int = 0
    killed: bool = False

    @property
    def sz(self) -> int:
        """Size of the user address space in bytes."""
        return len(self.memory)

    def fetch_int(self, addr: int) -> int:
        """The 32-bit signed integer at user address addr."""
        addr &= _MASK32
        if addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"address {addr:#x} outside process memory")
        return _INT.unpack_from(self.memory, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at user address addr, without the NUL."""
        addr &= _MASK32
        if addr >= self.sz:
            raise SyscallError(f"address {addr:#x} outside process memory")
        end = self.memory.find(0, addr)
        if end < 0:
            raise SyscallError(f"string at {addr:#x} is not terminated")
        return bytes(self.memory[addr:end])

    def arg_int(self, n: int) -> int:
        """The nth 32-bit system call argument."""
        return self.fetch_int((self.esp + 4 + 4 * n) & _MASK32)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of size bytes inside the process."""
        addr = self.arg_int(n) & _MASK32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise SyscallError(f"block of {size} bytes at {addr:#x} outside process memory")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(n))


Handler = Callable[[Process], int]


class SyscallTable:
    """Maps system call numbers to handlers and runs them."""

    def __init__(self, console: Optional[TextIO] = None) -> None:
        self._handlers: dict[int, Handler] = {}
        self._console = console

    def register(self, number: int, handler: Handler) -> None:
        """Install handler for the system call with the given number."""
        if number <= 0:
            raise ValueError(f"system call number must be positive, not {number}")
        self._handlers[int(number)] = handler

    def dispatch(self, proc: Process, number: int) -> int:
        """Run call number for proc; the result, or -1 if it fails or is unknown."""
        handler = self._handlers.get(number) if number > 0 else None
        if handler is None:
            console = self._console if self._console is not None else sys.stderr
            console.write(f"{proc.pid} {proc.name}: unknown sys call {number}\n")
            return -1
        try:
            return handler(proc)
        except SyscallError:
            return -1