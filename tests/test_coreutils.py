import io
import os
import signal
from unittest import mock

from xvkit.coreutils import (
    TICK_SECONDS,
    cat,
    cat_main,
    echo_main,
    fmtname,
    kill_main,
    ln_main,
    ls,
    ls_main,
    mkdir_main,
    parent_main,
    rm_main,
    wc,
    wc_main,
    zombie_main,
)
from xvkit.mkfs import DIRSIZ


def test_cat_copies_everything():
    data = bytes(range(256)) * 9
    out = io.BytesIO()
    cat(io.BytesIO(data), out)
    assert out.getvalue() == data


def test_cat_main_files(tmp_path, capsysbinary):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"first\n")
    b.write_bytes(b"second\n")
    assert cat_main([str(a), str(b)]) == 0
    assert capsysbinary.readouterr().out == b"first\nsecond\n"


def test_cat_main_missing(tmp_path, capsys):
    missing = str(tmp_path / "nope")
    assert cat_main([missing]) == 1
    assert capsys.readouterr().err == f"cat: cannot open {missing}\n"


def test_echo_main(capsys):
    assert echo_main(["hello", "world"]) == 0
    assert capsys.readouterr().out == "hello world\n"


def test_echo_main_no_args(capsys):
    assert echo_main([]) == 0
    assert capsys.readouterr().out == ""


def test_wc_known_line():
    out = io.StringIO()
    assert wc(io.BytesIO(b"hello world\n"), "f", out) == (1, 2, 12)
    assert out.getvalue() == "1 2 12 f\n"


def test_wc_invariants():
    data = b"one two\tthree\r\nfour  five\vsix\n" * 40
    counts = wc(io.BytesIO(data), "x", io.StringIO())
    assert counts == (data.count(b"\n"), len(data.split()), len(data))


def test_wc_nul_separates_words():
    lines, words, chars = wc(io.BytesIO(b"ab\0cd"), "", io.StringIO())
    assert words == 2


def test_wc_main(tmp_path, capsys):
    f = tmp_path / "t"
    f.write_bytes(b"a b\n")
    assert wc_main([str(f)]) == 0
    assert capsys.readouterr().out == f"1 2 4 {f}\n"


def test_wc_main_missing(tmp_path, capsys):
    missing = str(tmp_path / "gone")
    assert wc_main([missing]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_fmtname_pads_short_names():
    name = fmtname("a/b/ls")
    assert len(name) == DIRSIZ
    assert name.rstrip() == "ls"


def test_fmtname_keeps_long_names():
    long = "x" * (DIRSIZ + 3)
    assert fmtname("dir/" + long) == long


def test_ls_file(tmp_path):
    f = tmp_path / "data"
    f.write_bytes(b"12345")
    out = io.StringIO()
    ls(str(f), out)
    fields = out.getvalue().split()
    assert fields[0] == "data"
    assert fields[1] == "2"
    assert fields[3] == "5"


def test_ls_directory(tmp_path):
    (tmp_path / "file").write_bytes(b"abc")
    (tmp_path / "sub").mkdir()
    out = io.StringIO()
    ls(str(tmp_path), out)
    rows = {line.split()[0]: line.split() for line in out.getvalue().splitlines()}
    assert set(rows) == {".", "..", "file", "sub"}
    assert rows["file"][1] == "2"
    assert rows["sub"][1] == "1"
    assert rows["."][1] == "1"


def test_ls_missing(tmp_path, capsys):
    missing = str(tmp_path / "nothing")
    ls_main([missing])
    assert capsys.readouterr().err == f"ls: cannot open {missing}\n"


def test_ln_main(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"x")
    dst = tmp_path / "dst"
    assert ln_main([str(src), str(dst)]) == 0
    assert os.stat(dst).st_ino == os.stat(src).st_ino


def test_ln_main_failure(tmp_path, capsys):
    src = str(tmp_path / "none")
    dst = str(tmp_path / "dst")
    assert ln_main([src, dst]) == 0
    assert capsys.readouterr().err == f"link {src} {dst}: failed\n"


def test_ln_main_usage():
    assert ln_main(["one"]) == 1


def test_rm_main_stops_at_failure(tmp_path, capsys):
    a = tmp_path / "a"
    c = tmp_path / "c"
    a.write_bytes(b"")
    c.write_bytes(b"")
    missing = str(tmp_path / "b")
    assert rm_main([str(a), missing, str(c)]) == 0
    assert not a.exists()
    assert c.exists()
    assert capsys.readouterr().err == f"rm: {missing} failed to delete\n"


def test_rm_main_removes_empty_directory(tmp_path):
    d = tmp_path / "d"
    d.mkdir()
    assert rm_main([str(d)]) == 0
    assert not d.exists()


def test_rm_main_usage():
    assert rm_main([]) == 1


def test_mkdir_main(tmp_path, capsys):
    d = tmp_path / "new"
    assert mkdir_main([str(d), str(d)]) == 0
    assert d.is_dir()
    assert capsys.readouterr().err == f"mkdir: {d} failed to create\n"


def test_mkdir_main_usage():
    assert mkdir_main([]) == 1


def test_kill_main_usage():
    assert kill_main([]) == 1


def test_kill_main_ignores_nonpositive_pids():
    with mock.patch("os.kill") as killer:
        assert kill_main(["0", "abc"]) == 0
    assert killer.call_count == 0


def test_kill_main_sends_sigkill_to_each_pid():
    with mock.patch("os.kill") as killer:
        assert kill_main(["12345", "678"]) == 0
    assert killer.call_args_list == [
        mock.call(12345, signal.SIGKILL),
        mock.call(678, signal.SIGKILL),
    ]


def test_kill_main_ignores_failures():
    with mock.patch("os.kill", side_effect=ProcessLookupError) as killer:
        assert kill_main(["4242", "4243"]) == 0
    assert killer.call_count == 2


def test_zombie_main_sleeps_in_parent():
    with mock.patch("time.sleep") as sleeper:
        assert zombie_main([]) == 0
    assert sleeper.call_count == 1
    assert sleeper.call_args == mock.call(5 * TICK_SECONDS)


def test_parent_main(capsys):
    assert parent_main([]) == 0
    assert capsys.readouterr().out == f"Yo soy tu padre - dijo el proceso {os.getppid()}\n"