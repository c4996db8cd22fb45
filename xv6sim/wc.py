"""Count lines, words and bytes, as the wc command does."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterable, Union

WHITESPACE = frozenset(b" \r\t\n\v\0")
CHUNK = 512

Data = Union[bytes, bytearray, memoryview, Iterable[bytes]]


@dataclass(frozen=True)
class WordCount:
    """Counts of newlines, words and bytes."""

    lines: int = 0
    words: int = 0
    chars: int = 0

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


def count(data: Data) -> WordCount:
    """Count bytes given whole or as a sequence of chunks."""
    chunks = [bytes(data)] if isinstance(data, (bytes, bytearray, memoryview)) else data
    lines = words = chars = 0
    inword = False
    for chunk in chunks:
        chars += len(chunk)
        for byte in chunk:
            if byte == 0x0A:
                lines += 1
            if byte in WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def _chunks(stream) -> Iterable[bytes]:
    return iter(lambda: stream.read(CHUNK), b"")


def main(argv=None) -> int:
    """Print counts for each named file, or for standard input."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print(count(_chunks(sys.stdin.buffer)).format(""))
        return 0
    for name in args:
        try:
            stream = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with stream:
            try:
                result = count(_chunks(stream))
            except OSError:
                print("wc: read error")
                return 1
        print(result.format(name))
    return 0


if __name__ == "__main__":
    sys.exit(main())