"""Shared utility helpers for subprocess execution, paths, and command formatting."""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from loguru import logger

log = logger


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str
    stderr: str


class CmdError(RuntimeError):
    def __init__(self, cmd: Sequence[str] | str, result: CmdResult):
        self.cmd = cmd
        self.result = result
        super().__init__(
            f'Command failed (code={result.code}): {cmd}\n{result.stderr}'.strip()
        )


def shell_join(cmd: Sequence[str]) -> str:
    return ' '.join(shlex.quote(c) for c in cmd)


def run_cmd(
    cmd: Sequence[str],
    *,
    check: bool = True,
    capture: bool = True,
    text: bool = True,
    input_text: Optional[str] = None,
    env: Optional[dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> CmdResult:
    log.opt(depth=1).debug('RUN: {}', shell_join(cmd))
    p = subprocess.run(
        cmd,
        input=input_text if input_text is not None else None,
        capture_output=capture,
        text=text,
        env=env,
        timeout=timeout,
    )
    res = CmdResult(p.returncode, p.stdout or '', p.stderr or '')
    if check and p.returncode != 0:
        log.opt(depth=1).error(
            'Command failed code={} cmd={} stderr={} stdout={}',
            p.returncode,
            shell_join(cmd),
            res.stderr.strip(),
            res.stdout.strip(),
        )
        raise CmdError(cmd, res)
    if p.returncode == 0:
        log.opt(depth=1).debug('Command ok code=0 cmd={}', shell_join(cmd))
    return res


def stream_cmd(
    cmd: Sequence[str],
    on_line: Callable[[str], None],
    *,
    env: Optional[dict[str, str]] = None,
) -> int:
    """Run ``cmd`` and hand each output line to ``on_line`` as it arrives.

    stderr is merged into stdout so lines keep their arrival order. Returns
    the process exit code; the caller decides which codes are acceptable.
    """
    log.opt(depth=1).debug('STREAM: {}', shell_join(cmd))
    p = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        env=env,
    )
    assert p.stdout is not None
    try:
        for line in p.stdout:
            on_line(line.rstrip('\r\n'))
    except BaseException:
        p.kill()
        raise
    finally:
        p.stdout.close()
        code = p.wait()
    log.opt(depth=1).debug('Stream finished code={} cmd={}', code, shell_join(cmd))
    return code


def which(cmd: str) -> Optional[str]:
    from shutil import which as _which

    return _which(cmd)


def expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))
