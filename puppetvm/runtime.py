"""Guest platform classification and SSH command argument helpers."""

from __future__ import annotations

import enum

from .errors import ConfigError, MissingSSHIdentityError

WINDOWS_COMMUNICATORS = frozenset({'winrm', 'winssh'})
KNOWN_COMMUNICATORS = frozenset({'ssh'}) | WINDOWS_COMMUNICATORS


class Platform(enum.Enum):
    """Guest class, resolved once per machine and passed down explicitly."""

    POSIX = 'posix'
    WINDOWS = 'windows'

    @classmethod
    def from_communicator(cls, communicator: str) -> 'Platform':
        name = (communicator or '').strip().lower()
        if name not in KNOWN_COMMUNICATORS:
            raise ConfigError(
                f'Unknown communicator {communicator!r}; expected one of: '
                f'{", ".join(sorted(KNOWN_COMMUNICATORS))}'
            )
        return cls.WINDOWS if name in WINDOWS_COMMUNICATORS else cls.POSIX

    @property
    def is_windows(self) -> bool:
        return self is Platform.WINDOWS

    @property
    def default_module_path(self) -> str:
        if self.is_windows:
            return '/ProgramData/PuppetLabs/puppet/etc/modules'
        return '/etc/puppet/modules'

    @property
    def path_separator(self) -> str:
        return ';' if self.is_windows else ':'


def require_ssh_identity(identity: str) -> str:
    ident = (identity or '').strip()
    if not ident:
        raise MissingSSHIdentityError(
            'machine.ssh_identity_file is empty; run puppetvm config init or set it in config.'
        )
    return ident


def ssh_base_args(
    ident: str,
    *,
    strict_host_key_checking: str = 'accept-new',
    connect_timeout: int | None = None,
    batch_mode: bool = False,
) -> list[str]:
    args: list[str] = []
    if batch_mode:
        args.extend(['-o', 'BatchMode=yes'])
    if connect_timeout is not None:
        args.extend(['-o', f'ConnectTimeout={connect_timeout}'])
    args.extend(['-o', f'StrictHostKeyChecking={strict_host_key_checking}'])
    args.extend(['-i', ident])
    return args
