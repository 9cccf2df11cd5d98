import io

import pytest

from xvkit.grep import grep, main, match


@pytest.mark.parametrize(
    "re, text, expected",
    [
        ("abc", "xxabcxx", True),
        ("^abc", "xxabc", False),
        ("^abc", "abcxx", True),
        ("abc$", "xxabc", True),
        ("abc$", "abcxx", False),
        ("a.c", "abc", True),
        ("a.c", "ac", False),
        ("ab*c", "ac", True),
        ("ab*c", "abbbc", True),
        ("^a.*z$", "a-middle-z", True),
        ("", "", True),
        ("x", "", False),
        ("^$", "", True),
        ("^$", "a", False),
    ],
)
def test_match(re, text, expected):
    assert match(re, text) is expected


def test_grep_selects_lines():
    out = io.StringIO()
    grep("o", io.StringIO("one\ntwo\nthree\nfour\n"), out)
    assert out.getvalue() == "one\ntwo\nfour\n"


def test_grep_ignores_unterminated_last_line():
    out = io.StringIO()
    grep("a", io.StringIO("a1\na2"), out)
    assert out.getvalue() == "a1\n"


def test_grep_handles_lines_across_reads():
    lines = [f"line{i}{'x' * 100}" for i in range(50)]
    text = "\n".join(lines) + "\n"
    out = io.StringIO()
    grep("line1", io.StringIO(text), out)
    expected = [line for line in lines if "line1" in line]
    assert out.getvalue().splitlines() == expected


def test_main_with_file(tmp_path, capsys):
    path = tmp_path / "f.txt"
    path.write_text("hello\nworld\nhelp\n")
    assert main(["^hel", str(path)]) == 0
    assert capsys.readouterr().out == "hello\nhelp\n"


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope"
    assert main(["x", str(missing)]) == 1
    assert f"grep: cannot open {missing}" in capsys.readouterr().out


def test_main_usage(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().err