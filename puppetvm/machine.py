"""Machine handle, guest capabilities, and the SSH remote transport."""

from __future__ import annotations

import base64
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from loguru import logger

from .config import MachineConfig
from .errors import ConfigError, PuppetVMError, TransportError
from .messages import t
from .runtime import Platform, require_ssh_identity, ssh_base_args
from .ui import UI, BasicUI
from .util import CmdResult, run_cmd, stream_cmd

log = logger

SSH_TRANSPORT_FAILURE = 255


class Communicator(Protocol):
    def execute(self, command: str, *, sudo: bool = False) -> CmdResult: ...

    def test_dir(self, path: str, *, sudo: bool = True) -> bool: ...

    def which(self, binary: str) -> bool: ...

    def sudo(
        self,
        command: str,
        *,
        good_exit: Iterable[int] = (0,),
        on_line: Callable[[str], None] | None = None,
    ) -> int: ...

    def upload(
        self, local_path: str, remote_path: str, *, recursive: bool = False
    ) -> None: ...

    def ready(self) -> bool: ...


def _ps_quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


class SSHCommunicator:
    """Runs guest commands through the system ``ssh`` and ``scp`` clients.

    POSIX guests get privileged commands through ``sudo -H sh -c``. Windows
    guests (OpenSSH server) get every command as an encoded PowerShell
    script that evaluates it from a double-quoted string; the login session
    is expected to be an administrator already.
    """

    def __init__(self, cfg: MachineConfig, platform: Platform) -> None:
        self.cfg = cfg
        self.platform = platform
        self.ident = require_ssh_identity(cfg.ssh_identity_file)

    @property
    def target(self) -> str:
        return f'{self.cfg.user}@{self.cfg.host}'

    def _ssh_args(self, *, connect_timeout: int | None = None) -> list[str]:
        timeout = self.cfg.connect_timeout if connect_timeout is None else connect_timeout
        return [
            *ssh_base_args(
                self.ident,
                batch_mode=True,
                connect_timeout=timeout,
                strict_host_key_checking='accept-new',
            ),
            '-p',
            str(self.cfg.port),
        ]

    def remote_command(self, command: str, *, sudo: bool = False) -> str:
        if self.platform.is_windows:
            # Evaluated from a double-quoted string, so `$ yields a literal $.
            # Errors stop the script with status 1; otherwise the native exit
            # code is passed through instead of being collapsed to 0 or 1.
            script = (
                "$ErrorActionPreference='Stop'; "
                'Invoke-Expression "{}"; exit $LASTEXITCODE'.format(
                    command.replace('"', '`"')
                )
            )
            encoded = base64.b64encode(script.encode('utf-16-le')).decode('ascii')
            return f'powershell -NoProfile -NonInteractive -EncodedCommand {encoded}'
        if sudo:
            return f'sudo -H sh -c {shlex.quote(command)}'
        return command

    def ssh_command(
        self, command: str, *, sudo: bool = False, connect_timeout: int | None = None
    ) -> list[str]:
        return [
            'ssh',
            *self._ssh_args(connect_timeout=connect_timeout),
            self.target,
            self.remote_command(command, sudo=sudo),
        ]

    def execute(self, command: str, *, sudo: bool = False) -> CmdResult:
        log.debug('Guest command (sudo={}): {}', sudo, command)
        cmd = self.ssh_command(command, sudo=sudo)
        try:
            res = run_cmd(cmd, check=False, capture=True)
        except FileNotFoundError as ex:
            raise TransportError('ssh client not found on the host') from ex
        except subprocess.TimeoutExpired as ex:
            raise TransportError(f'Timed out talking to {self.target}') from ex
        if res.code == SSH_TRANSPORT_FAILURE:
            raise TransportError(
                f'SSH connection to {self.target} failed: {res.stderr.strip()}',
                exit_code=res.code,
            )
        return res

    def test(self, command: str, *, sudo: bool = False) -> bool:
        return self.execute(command, sudo=sudo).code == 0

    def test_dir(self, path: str, *, sudo: bool = True) -> bool:
        if self.platform.is_windows:
            script = (
                f'if (Test-Path -PathType Container {_ps_quote(path)}) '
                '{ exit 0 } else { exit 1 }'
            )
            return self.test(script, sudo=sudo)
        return self.test(f'test -d {shlex.quote(path)}', sudo=sudo)

    def which(self, binary: str) -> bool:
        if self.platform.is_windows:
            script = (
                f'if (Get-Command {_ps_quote(binary)} -ErrorAction SilentlyContinue) '
                '{ exit 0 } else { exit 1 }'
            )
            return self.test(script, sudo=True)
        return self.test(f'which {shlex.quote(binary)}', sudo=True)

    def sudo(
        self,
        command: str,
        *,
        good_exit: Iterable[int] = (0,),
        on_line: Callable[[str], None] | None = None,
    ) -> int:
        good = set(good_exit)
        cmd = self.ssh_command(command, sudo=True)
        handler = on_line or (lambda line: None)
        try:
            code = stream_cmd(cmd, handler)
        except FileNotFoundError as ex:
            raise TransportError('ssh client not found on the host') from ex
        if code == SSH_TRANSPORT_FAILURE and code not in good:
            raise TransportError(
                f'SSH connection to {self.target} failed', exit_code=code
            )
        log.debug('Privileged command exit={} good={}', code, sorted(good))
        return code

    def upload(
        self, local_path: str, remote_path: str, *, recursive: bool = False
    ) -> None:
        cmd = [
            'scp',
            '-q',
            *(['-r'] if recursive else []),
            '-o',
            'BatchMode=yes',
            '-o',
            'StrictHostKeyChecking=accept-new',
            '-i',
            self.ident,
            '-P',
            str(self.cfg.port),
            local_path,
            f'{self.target}:{remote_path}',
        ]
        try:
            res = run_cmd(cmd, check=False, capture=True)
        except FileNotFoundError as ex:
            raise TransportError('scp client not found on the host') from ex
        if res.code != 0:
            raise TransportError(
                f'Upload of {local_path} to {remote_path} failed: {res.stderr.strip()}',
                exit_code=res.code,
            )

    def ready(self) -> bool:
        probe = 'exit 0' if self.platform.is_windows else 'true'
        cmd = self.ssh_command(probe, connect_timeout=3)
        try:
            return run_cmd(cmd, check=False, capture=True).code == 0
        except FileNotFoundError as ex:
            raise TransportError('ssh client not found on the host') from ex


class Guest:
    """Named guest capabilities (e.g. ``wait_for_reboot``)."""

    def __init__(self, capabilities: dict[str, Callable[[], object]] | None = None):
        self._caps = dict(capabilities or {})

    def register(self, name: str, func: Callable[[], object]) -> None:
        self._caps[name] = func

    def has_capability(self, name: str) -> bool:
        return name in self._caps

    def capability(self, name: str) -> object:
        try:
            func = self._caps[name]
        except KeyError:
            raise PuppetVMError(f'Guest does not support capability {name!r}') from None
        log.debug('Invoking guest capability {}', name)
        return func()


@dataclass
class Machine:
    name: str
    communicator_name: str
    communicate: Communicator
    ui: UI = field(default_factory=BasicUI)
    guest: Guest = field(default_factory=Guest)
    platform: Platform = field(init=False)

    def __post_init__(self) -> None:
        self.platform = Platform.from_communicator(self.communicator_name)


def wait_for_reboot(
    machine: Machine, *, timeout_s: float = 300, interval_s: float = 2
) -> None:
    machine.ui.info(t('waiting_for_reboot'))
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if machine.communicate.ready():
            log.info('Guest {} is reachable', machine.name)
            return
        time.sleep(interval_s)
    raise TimeoutError(f'Timed out waiting for {machine.name} to come back')


def build_machine(cfg: MachineConfig, ui: UI | None = None) -> Machine:
    platform = Platform.from_communicator(cfg.communicator)
    if cfg.communicator == 'winrm':
        raise ConfigError(
            'The winrm transport is not available; set machine.communicator '
            'to "winssh" for Windows guests running OpenSSH.'
        )
    machine = Machine(
        name=cfg.name,
        communicator_name=cfg.communicator,
        communicate=SSHCommunicator(cfg, platform),
        ui=ui or BasicUI(),
    )
    if platform.is_windows:
        machine.guest.register('wait_for_reboot', lambda: wait_for_reboot(machine))
    return machine
