import os

from core.models import SearchMode, SearchOptions
from core.scanner import scan_file


def test_simple_match_returns_line_numbers_and_content(make_file):
    path = make_file("a.txt", "first line\nhello world\nthird\nHello again\n")

    records = scan_file(str(path), "hello", SearchOptions())

    assert [(r.line_no, r.line) for r in records] == [(2, "hello world"), (4, "Hello again")]
    assert all(r.path == str(path) for r in records)
    assert all(r.mtime == os.path.getmtime(path) for r in records)


def test_case_sensitive(make_file):
    path = make_file("a.txt", "Hello\nhello\n")

    records = scan_file(str(path), "Hello", SearchOptions(case_sensitive=True))

    assert [r.line_no for r in records] == [1]


def test_whole_word(make_file):
    path = make_file("a.txt", "say hello\nhelloworld\n(hello)\n")

    records = scan_file(str(path), "hello", SearchOptions(whole_word=True))

    assert [r.line_no for r in records] == [1, 3]


def test_regex(make_file):
    path = make_file("a.txt", "id=42\nid=x\nid=7\n")

    records = scan_file(str(path), r"id=\d+", SearchOptions(mode=SearchMode.REGEX))

    assert [r.line for r in records] == ["id=42", "id=7"]


def test_extended(make_file):
    path = make_file("a.txt", "key\tvalue\nkey value\n")

    records = scan_file(str(path), "key\\tvalue", SearchOptions(mode=SearchMode.EXTENDED))

    assert [r.line_no for r in records] == [1]


def test_no_match_returns_empty_list(make_file):
    path = make_file("a.txt", "nothing here\n")

    assert scan_file(str(path), "missing", SearchOptions()) == []


def test_invalid_regex_falls_back_and_finds(make_file):
    path = make_file("a.txt", "call f(x\nother\n")

    records = scan_file(str(path), "f(x", SearchOptions(mode=SearchMode.REGEX))

    assert [r.line_no for r in records] == [1]


def test_invalid_regex_falls_back_and_does_not_find(make_file):
    path = make_file("a.txt", "call f x\n")

    assert scan_file(str(path), "f(x", SearchOptions(mode=SearchMode.REGEX)) == []


def test_line_content_is_untrimmed_without_terminators(make_file):
    path = make_file("a.txt", "  padded match  \r\nplain match\r\nlast match")

    records = scan_file(str(path), "match", SearchOptions())

    assert [r.line for r in records] == ["  padded match  ", "plain match", "last match"]


def test_trailing_newline_adds_no_extra_line(make_file):
    path = make_file("a.txt", "one\ntwo\n")

    records = scan_file(str(path), "", SearchOptions())

    assert [r.line_no for r in records] == [1, 2]


def test_bom_is_not_part_of_first_line(make_file):
    path = make_file("a.txt", "start here\n", encoding="utf-8-sig")

    records = scan_file(str(path), "start", SearchOptions(whole_word=True))

    assert records[0].line == "start here"


def test_undecodable_bytes_do_not_raise(tmp_path):
    path = tmp_path / "image.bin"
    path.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\xfa match")

    records = scan_file(str(path), "match", SearchOptions())

    assert [r.line_no for r in records] == [3]
    assert records[0].line == "\ufffd\ufffd\ufffd match"


def test_late_bad_byte_keeps_earlier_matches(tmp_path):
    path = tmp_path / "mixed.txt"
    path.write_bytes(b"needle here\n" + b"plain text\n" * 20 + b"caf\xe9 needle\n")

    records = scan_file(str(path), "needle", SearchOptions())

    assert [r.line_no for r in records] == [1, 22]
    assert records[1].line == "caf\ufffd needle"


def test_missing_file_does_not_raise(tmp_path):
    assert scan_file(str(tmp_path / "gone.txt"), "x", SearchOptions()) == []


def test_scanning_does_not_modify_file(make_file):
    path = make_file("a.txt", "alpha\r\nbeta\n")
    before = path.read_bytes()

    scan_file(str(path), "a", SearchOptions())

    assert path.read_bytes() == before
