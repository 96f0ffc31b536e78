"""Provisioner configuration records and their TOML load/save/validate helpers."""

from __future__ import annotations

import os
import posixpath
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import ubelt as ub

from .errors import ConfigError
from .runtime import KNOWN_COMMUNICATORS
from .util import expand

DEFAULT_CONFIG_NAME = '.puppetvm.toml'
DEFAULT_TEMP_DIR = '/tmp/vagrant-puppet'

HOST = 'host'
GUEST = 'guest'
_LOCATION_ALIASES = {'host': HOST, 'guest': GUEST, 'vm': GUEST}


@dataclass(frozen=True)
class ManifestsLocation:
    kind: str = HOST
    path: str = 'manifests'

    @classmethod
    def host(cls, path: str) -> 'ManifestsLocation':
        return cls(HOST, path)

    @classmethod
    def guest(cls, path: str) -> 'ManifestsLocation':
        return cls(GUEST, path)

    @property
    def on_host(self) -> bool:
        return self.kind == HOST


@dataclass(frozen=True)
class PuppetConfig:
    manifests_path: ManifestsLocation = field(default_factory=ManifestsLocation)
    manifest_file: str = 'default.pp'
    module_path: tuple[str, ...] = ()
    facter: Mapping[str, str] = field(default_factory=dict)
    hiera_config_path: str | None = None
    temp_dir: str = DEFAULT_TEMP_DIR
    synced_folder_type: str | None = None
    options: tuple[str, ...] = ()
    working_directory: str | None = None
    binary: str = 'puppet'

    def __post_init__(self) -> None:
        object.__setattr__(self, 'facter', MappingProxyType(dict(self.facter)))


@dataclass(frozen=True)
class MachineConfig:
    name: str = 'default'
    host: str = '127.0.0.1'
    port: int = 22
    user: str = 'vagrant'
    communicator: str = 'ssh'
    ssh_identity_file: str = ''
    connect_timeout: int = 10


@dataclass
class ProvisionerSettings:
    machine: MachineConfig = field(default_factory=MachineConfig)
    puppet: PuppetConfig = field(default_factory=PuppetConfig)
    root_path: str = '.'
    verbosity: int = 1


def coerce_str_list(value: Any, *, key: str = 'value') -> tuple[str, ...]:
    """Normalize a scalar-or-list config value into a tuple of strings."""
    if value is None or value == '':
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ConfigError(f'{key} must be a string or a list of strings, got {value!r}')


def parse_manifests_path(value: Any) -> ManifestsLocation:
    if isinstance(value, str):
        return ManifestsLocation.host(value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        kind = _LOCATION_ALIASES.get(str(value[0]).strip().lower())
        if kind is None:
            raise ConfigError(
                f'puppet.manifests_path location must be host or guest, got {value[0]!r}'
            )
        return ManifestsLocation(kind, str(value[1]))
    raise ConfigError(
        'puppet.manifests_path must be a path or a [location, path] pair, '
        f'got {value!r}'
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def puppet_config_from_dict(raw: Mapping[str, Any]) -> PuppetConfig:
    kwargs: dict[str, Any] = {}
    if 'manifests_path' in raw:
        kwargs['manifests_path'] = parse_manifests_path(raw['manifests_path'])
    if 'manifest_file' in raw:
        kwargs['manifest_file'] = str(raw['manifest_file'])
    if 'module_path' in raw:
        kwargs['module_path'] = coerce_str_list(
            raw['module_path'], key='puppet.module_path'
        )
    if 'options' in raw:
        kwargs['options'] = coerce_str_list(raw['options'], key='puppet.options')
    facter = raw.get('facter', {})
    if not isinstance(facter, Mapping):
        raise ConfigError(f'puppet.facter must be a table, got {facter!r}')
    kwargs['facter'] = {str(k): str(v) for k, v in facter.items()}
    for key in ('hiera_config_path', 'synced_folder_type', 'working_directory'):
        if key in raw:
            kwargs[key] = _optional_str(raw[key])
    if 'temp_dir' in raw:
        kwargs['temp_dir'] = str(raw['temp_dir'])
    if 'binary' in raw:
        kwargs['binary'] = str(raw['binary'])
    return PuppetConfig(**kwargs)


def machine_config_from_dict(raw: Mapping[str, Any]) -> MachineConfig:
    kwargs: dict[str, Any] = {}
    for key in ('name', 'host', 'user', 'communicator', 'ssh_identity_file'):
        if key in raw:
            kwargs[key] = str(raw[key])
    for key in ('port', 'connect_timeout'):
        if key in raw:
            kwargs[key] = int(raw[key])
    return MachineConfig(**kwargs)


def user_config_path() -> Path:
    return Path(ub.Path.appdir('puppetvm', type='config')) / 'config.toml'


def default_config_path() -> Path:
    local = Path(DEFAULT_CONFIG_NAME).resolve()
    if local.exists():
        return local
    user = user_config_path()
    if user.exists():
        return user
    return local


def load(path: Path) -> ProvisionerSettings:
    try:
        raw = tomllib.loads(path.read_text(encoding='utf-8'))
    except tomllib.TOMLDecodeError as ex:
        raise ConfigError(f'Invalid TOML in {path}: {ex}') from ex
    settings = ProvisionerSettings()
    if isinstance(raw.get('machine'), dict):
        settings.machine = machine_config_from_dict(raw['machine'])
    if isinstance(raw.get('puppet'), dict):
        settings.puppet = puppet_config_from_dict(raw['puppet'])
    root = str(raw.get('root_path', '') or '').strip()
    base = path.resolve().parent
    settings.root_path = str((base / expand(root)).resolve()) if root else str(base)
    if 'verbosity' in raw:
        settings.verbosity = int(raw['verbosity'])
    return settings


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def _emit_toml_kv(lines: list[str], key: str, val: object) -> None:
    if isinstance(val, bool):
        lines.append(f'{key} = {"true" if val else "false"}')
    elif isinstance(val, int):
        lines.append(f'{key} = {val}')
    elif isinstance(val, (list, tuple)):
        parts = [f'"{_toml_escape(str(item))}"' for item in val]
        lines.append(f'{key} = [{", ".join(parts)}]')
    else:
        lines.append(f'{key} = "{_toml_escape(str(val))}"')


def dump_toml(settings: ProvisionerSettings) -> str:
    lines: list[str] = []
    if settings.verbosity != 1:
        _emit_toml_kv(lines, 'verbosity', settings.verbosity)
        lines.append('')
    m = settings.machine
    lines.append('[machine]')
    _emit_toml_kv(lines, 'name', m.name)
    _emit_toml_kv(lines, 'host', m.host)
    _emit_toml_kv(lines, 'port', m.port)
    _emit_toml_kv(lines, 'user', m.user)
    _emit_toml_kv(lines, 'communicator', m.communicator)
    _emit_toml_kv(lines, 'ssh_identity_file', m.ssh_identity_file)
    _emit_toml_kv(lines, 'connect_timeout', m.connect_timeout)
    lines.append('')
    p = settings.puppet
    lines.append('[puppet]')
    _emit_toml_kv(
        lines, 'manifests_path', [p.manifests_path.kind, p.manifests_path.path]
    )
    _emit_toml_kv(lines, 'manifest_file', p.manifest_file)
    _emit_toml_kv(lines, 'module_path', list(p.module_path))
    _emit_toml_kv(lines, 'hiera_config_path', p.hiera_config_path or '')
    _emit_toml_kv(lines, 'temp_dir', p.temp_dir)
    _emit_toml_kv(lines, 'synced_folder_type', p.synced_folder_type or '')
    _emit_toml_kv(lines, 'options', list(p.options))
    _emit_toml_kv(lines, 'working_directory', p.working_directory or '')
    _emit_toml_kv(lines, 'binary', p.binary)
    if p.facter:
        lines.append('')
        lines.append('[puppet.facter]')
        for key in sorted(p.facter):
            _emit_toml_kv(lines, f'"{_toml_escape(key)}"', p.facter[key])
    return '\n'.join(lines).rstrip() + '\n'


def save(path: Path, settings: ProvisionerSettings) -> None:
    path.write_text(dump_toml(settings), encoding='utf-8')


def validate(settings: ProvisionerSettings) -> list[str]:
    """Return human readable problems with ``settings``; empty means valid."""
    errors: list[str] = []
    root = settings.root_path
    p = settings.puppet

    if settings.machine.communicator not in KNOWN_COMMUNICATORS:
        errors.append(
            f'machine.communicator must be one of {sorted(KNOWN_COMMUNICATORS)}, '
            f'got {settings.machine.communicator!r}'
        )
    if not p.manifest_file:
        errors.append('puppet.manifest_file must not be empty')
    if not posixpath.isabs(p.temp_dir):
        errors.append(f'puppet.temp_dir must be an absolute guest path: {p.temp_dir}')

    if p.manifests_path.on_host:
        manifests_dir = _host_path(p.manifests_path.path, root)
        if not manifests_dir.is_dir():
            errors.append(f'Manifests directory not found: {manifests_dir}')
        elif p.manifest_file and not (manifests_dir / p.manifest_file).is_file():
            errors.append(
                f'Manifest file not found: {manifests_dir / p.manifest_file}'
            )
    for entry in p.module_path:
        mod_dir = _host_path(entry, root)
        if not mod_dir.is_dir():
            errors.append(f'Module path not found: {mod_dir}')
    if p.hiera_config_path:
        hiera = _host_path(p.hiera_config_path, root)
        if not hiera.is_file():
            errors.append(f'Hiera config not found: {hiera}')
    return errors


def _host_path(raw: str, root: str) -> Path:
    return Path(os.path.abspath(os.path.join(root, expand(raw))))
