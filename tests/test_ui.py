"""Tests for output sinks and message templates."""

from __future__ import annotations

import io

import pytest

from puppetvm.errors import (
    BinaryNotDetectedError,
    MissingSharedFoldersError,
    RemoteExecutionFailedError,
)
from puppetvm.messages import t
from puppetvm.ui import BasicUI, ColoredUI, RecordingUI, console_ui


def test_basic_ui_prints_lines(capsys) -> None:
    ui = BasicUI()
    assert ui.colored is False
    ui.info('hello')
    assert capsys.readouterr().out == 'hello\n'


def test_colored_ui_marks_colored() -> None:
    stream = io.StringIO()
    ui = ColoredUI(stream)
    ui.info('hello')
    assert ui.colored is True
    assert 'hello' in stream.getvalue()


def test_recording_ui() -> None:
    ui = RecordingUI(colored=True)
    ui.info('a')
    ui.info('b')
    assert ui.lines == ['a', 'b']
    assert ui.colored is True


def test_console_ui_plain_when_not_a_tty() -> None:
    assert type(console_ui(io.StringIO())) is BasicUI


def test_console_ui_honors_no_color(monkeypatch) -> None:
    class TTY(io.StringIO):
        def isatty(self):
            return True

    monkeypatch.delenv('NO_COLOR', raising=False)
    assert isinstance(console_ui(TTY()), ColoredUI)
    monkeypatch.setenv('NO_COLOR', '1')
    assert type(console_ui(TTY())) is BasicUI


def test_messages() -> None:
    assert t('running_puppet', manifest='site.pp') == 'Running Puppet with site.pp...'
    assert 'facter' in t('not_detected', binary='facter')
    with pytest.raises(KeyError):
        t('no_such_message')


def test_errors_use_message_catalog() -> None:
    err = MissingSharedFoldersError('/tmp/vagrant-puppet/modules-x')
    assert str(err) == t('missing_shared_folders', folder='/tmp/vagrant-puppet/modules-x')
    assert str(BinaryNotDetectedError('puppet')) == t('not_detected', binary='puppet')
    failed = RemoteExecutionFailedError(4, ['Error: bad'])
    assert str(failed) == t('bad_exit_status', exit_code=4) + '\nError: bad'
