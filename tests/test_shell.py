import pytest

from xvkit.shell import (
    BackCmd,
    ExecCmd,
    ListCmd,
    OpenMode,
    PipeCmd,
    RedirCmd,
    ShellSyntaxError,
    parse_command,
)

TRUNC_MODE = OpenMode.WRONLY | OpenMode.CREATE | OpenMode.TRUNC


def test_simple_command_with_newline():
    assert parse_command("echo hi\n") == ExecCmd(["echo", "hi"])


def test_empty_line_gives_empty_exec():
    assert parse_command("\n") == ExecCmd([])


def test_output_redirection():
    assert parse_command("ls > out") == RedirCmd(ExecCmd(["ls"]), "out", TRUNC_MODE, 1)


def test_append_redirection():
    cmd = parse_command("echo x >> log")
    assert cmd == RedirCmd(
        ExecCmd(["echo", "x"]), "log", OpenMode.WRONLY | OpenMode.CREATE, 1
    )


def test_input_redirection_before_arguments():
    cmd = parse_command("< in cat x")
    assert cmd == RedirCmd(ExecCmd(["cat", "x"]), "in", OpenMode.RDONLY, 0)


def test_two_redirections_nest_in_order():
    cmd = parse_command("cat < a > b")
    assert cmd == RedirCmd(
        RedirCmd(ExecCmd(["cat"]), "a", OpenMode.RDONLY, 0), "b", TRUNC_MODE, 1
    )


def test_pipeline_is_right_associative():
    cmd = parse_command("a | b | c")
    assert cmd == PipeCmd(ExecCmd(["a"]), PipeCmd(ExecCmd(["b"]), ExecCmd(["c"])))


def test_list():
    assert parse_command("a ; b") == ListCmd(ExecCmd(["a"]), ExecCmd(["b"]))


def test_background():
    assert parse_command("sleep &") == BackCmd(ExecCmd(["sleep"]))


def test_background_then_list():
    cmd = parse_command("a & ; b")
    assert cmd == ListCmd(BackCmd(ExecCmd(["a"])), ExecCmd(["b"]))


def test_background_followed_by_word_is_leftover():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("a & b")


def test_block_with_redirection():
    cmd = parse_command("(a ; b) > f")
    assert cmd == RedirCmd(ListCmd(ExecCmd(["a"]), ExecCmd(["b"])), "f", TRUNC_MODE, 1)


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parse_command("(a")


def test_missing_redirection_file():
    with pytest.raises(ShellSyntaxError, match="missing file"):
        parse_command("a >")


def test_stray_close_paren():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("echo )")


def test_open_paren_inside_arguments():
    with pytest.raises(ShellSyntaxError, match="syntax"):
        parse_command("echo (")


def test_argument_limit():
    words = [f"w{i}" for i in range(9)]
    assert parse_command(" ".join(words)) == ExecCmd(words)
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parse_command(" ".join(words + ["w9"]))


def test_symbols_split_words_without_spaces():
    cmd = parse_command("a|b")
    assert cmd == PipeCmd(ExecCmd(["a"]), ExecCmd(["b"]))