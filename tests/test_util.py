from __future__ import annotations

import pytest

from puppetvm.util import CmdError, shell_join, stream_cmd
from puppetvm.util import run_cmd as _run_cmd


def test_shell_join_quotes() -> None:
    cmd = ["echo", "a b", "c'd"]
    s = shell_join(cmd)
    assert "'a b'" in s
    assert s.startswith("echo ")


def test_run_cmd_success_and_failure() -> None:
    ok = _run_cmd(["bash", "-c", "printf ok"], check=True, capture=True)
    assert ok.code == 0
    assert ok.stdout == "ok"
    bad = _run_cmd(["bash", "-c", "exit 7"], check=False, capture=True)
    assert bad.code == 7
    with pytest.raises(CmdError):
        _run_cmd(["bash", "-c", "exit 9"], check=True, capture=True)


def test_stream_cmd_delivers_lines_in_order() -> None:
    lines = []
    code = stream_cmd(
        ["bash", "-c", "echo one; echo two >&2; printf three; exit 2"],
        lines.append,
    )
    assert code == 2
    assert lines == ["one", "two", "three"]


def test_stream_cmd_propagates_handler_errors() -> None:
    def handler(line):
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        stream_cmd(["bash", "-c", "echo one; sleep 5"], handler)
