import io

import pytest

from xv6sim import cstring


def test_memcmp():
    assert cstring.memcmp(b"abcd", b"abcd", 4) == 0
    assert cstring.memcmp(b"abcd", b"abzz", 2) == 0
    assert cstring.memcmp(b"a\x00", b"a\xff", 2) < 0
    assert cstring.memcmp(b"\xff", b"\x01", 1) == 0xFF - 0x01


def test_memcmp_too_long():
    with pytest.raises(ValueError):
        cstring.memcmp(b"ab", b"abc", 3)


def test_strcmp_orders():
    assert cstring.strcmp(b"abc", b"abc") == 0
    assert cstring.strcmp(b"abc", b"abd") < 0
    assert cstring.strcmp(b"abd", b"abc") > 0
    assert cstring.strcmp(b"ab", b"abc") < 0
    assert cstring.strcmp("hello", b"hello") == 0


def test_strcmp_stops_at_nul():
    assert cstring.strcmp(b"ab\0xyz", b"ab") == 0


def test_strcmp_is_antisymmetric():
    pairs = [(b"x", b"y"), (b"", b"a"), (b"zz", b"z")]
    for a, b in pairs:
        assert cstring.strcmp(a, b) == -cstring.strcmp(b, a)


def test_strncmp():
    assert cstring.strncmp(b"abcd", b"abce", 3) == 0
    assert cstring.strncmp(b"abcd", b"abce", 4) < 0
    assert cstring.strncmp(b"abc", b"xyz", 0) == 0
    assert cstring.strncmp(b"ab", b"ab", 10) == 0


def test_strncpy_pads_and_truncates():
    assert cstring.strncpy(b"hi", 5) == b"hi\0\0\0"
    assert cstring.strncpy(b"hello", 3) == b"hel"
    assert cstring.strncpy(b"hello", 0) == b""


def test_safestrcpy_always_terminates():
    assert cstring.safestrcpy(b"hello", 3) == b"he\0"
    assert cstring.safestrcpy(b"hi", 10) == b"hi\0"
    assert cstring.safestrcpy(b"hi", 0) == b""
    for n in range(1, 8):
        out = cstring.safestrcpy(b"abcdef", n)
        assert out.endswith(b"\0") and len(out) <= n


def test_atoi():
    assert cstring.atoi(b"123abc") == 123
    assert cstring.atoi("42") == 42
    assert cstring.atoi(b"-5") == 0
    assert cstring.atoi(b" 7") == 0
    assert cstring.atoi(b"") == 0


def test_gets_reads_one_line():
    stream = io.BytesIO(b"echo hi\nrest")
    assert cstring.gets(stream, 100) == b"echo hi\n"
    assert cstring.gets(stream, 100) == b"rest"
    assert cstring.gets(stream, 100) == b""


def test_gets_respects_limit():
    stream = io.BytesIO(b"abcdef")
    assert cstring.gets(stream, 4) == b"abc"
    assert cstring.gets(stream, 1) == b""


def test_gets_stops_at_carriage_return():
    assert cstring.gets(io.BytesIO(b"ab\rcd"), 100) == b"ab\r"