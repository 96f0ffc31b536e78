from __future__ import annotations

import pytest

from puppetvm.machine import Guest, Machine
from puppetvm.ui import RecordingUI
from puppetvm.util import CmdResult


class FakeCommunicator:
    """Records guest calls and answers from canned state."""

    def __init__(
        self,
        *,
        missing_dirs=(),
        binaries=('puppet',),
        exit_code=0,
        output=(),
        execute_codes=None,
    ):
        self.missing_dirs = set(missing_dirs)
        self.binaries = set(binaries)
        self.exit_code = exit_code
        self.output = list(output)
        self.execute_codes = dict(execute_codes or {})
        self.calls = []
        self.ready_answers = []

    def execute(self, command, *, sudo=False):
        self.calls.append(('execute', command, sudo))
        code = self.execute_codes.get(command, 0)
        return CmdResult(code, '', 'boom' if code else '')

    def test_dir(self, path, *, sudo=True):
        self.calls.append(('test_dir', path, sudo))
        return path not in self.missing_dirs

    def which(self, binary):
        self.calls.append(('which', binary))
        return binary in self.binaries

    def sudo(self, command, *, good_exit=(0,), on_line=None):
        self.calls.append(('sudo', command, tuple(good_exit)))
        for line in self.output:
            if on_line is not None:
                on_line(line)
        return self.exit_code

    def upload(self, local_path, remote_path, *, recursive=False):
        self.calls.append(('upload', local_path, remote_path, recursive))

    def ready(self):
        self.calls.append(('ready',))
        if self.ready_answers:
            return self.ready_answers.pop(0)
        return True

    def kinds(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def make_machine():
    def _make(communicator='ssh', colored=False, **comm_kwargs):
        comm = FakeCommunicator(**comm_kwargs)
        return Machine(
            name='default',
            communicator_name=communicator,
            communicate=comm,
            ui=RecordingUI(colored=colored),
            guest=Guest(),
        )

    return _make
