from xv6sim.wc import WordCount, count, main


def test_empty():
    assert count(b"") == WordCount(0, 0, 0)


def test_chars_and_lines_invariants():
    data = b"one two\nthree\n\nfour"
    result = count(data)
    assert result.chars == len(data)
    assert result.lines == data.count(b"\n")


def test_words_separated_by_each_whitespace():
    words = [b"w"] * 7
    data = b" \r\t\n\v\0".join(words)
    assert count(data).words == len(words)


def test_form_feed_is_not_a_separator():
    assert count(b"a\fb").words == 1


def test_chunk_boundaries_do_not_split_words():
    assert count([b"hel", b"lo wor", b"ld"]) == count(b"hello world")


def test_repeated_whitespace():
    assert count(b"   a    b   ").words == 2


def test_main_with_file(tmp_path, capsys):
    path = tmp_path / "f.txt"
    data = b"alpha beta\ngamma\n"
    path.write_bytes(data)
    assert main([str(path)]) == 0
    expected = count(data).format(str(path))
    assert capsys.readouterr().out == expected + "\n"


def test_main_missing_file_stops(tmp_path, capsys):
    good = tmp_path / "good"
    good.write_bytes(b"x\n")
    missing = tmp_path / "missing"
    assert main([str(missing), str(good)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_format_keeps_empty_name():
    assert WordCount(1, 2, 3).format("") == "1 2 3 "