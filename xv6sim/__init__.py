"""Models of a small Unix-like teaching kernel: paging, locks, ELF headers, system call dispatch, a user heap, a shell parser and wc."""

__version__ = "0.1.0"