from __future__ import annotations

from pathlib import Path

import scriptconfig as scfg
from loguru import logger

from ..config import ProvisionerSettings, default_config_path, load, validate
from ..errors import ConfigError

log = logger


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None, help='Path to config TOML (default: .puppetvm.toml).'
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )


def _cfg_path(p: str | None) -> Path:
    if p:
        return Path(p).expanduser().resolve()
    return default_config_path()


def _load_settings(config_path: str | None) -> ProvisionerSettings:
    settings, _ = _load_settings_with_path(config_path)
    return settings


def _load_settings_with_path(
    config_path: str | None,
) -> tuple[ProvisionerSettings, Path]:
    path = _cfg_path(config_path)
    if not path.exists():
        raise ConfigError(
            f'Config not found: {path}. '
            f'Run: puppetvm config init --config {path}'
        )
    log.debug('Loading config from {}', path)
    return load(path), path


def _require_valid(settings: ProvisionerSettings) -> None:
    problems = validate(settings)
    if problems:
        raise ConfigError(
            'Invalid configuration:\n' + '\n'.join(f'  - {p}' for p in problems)
        )
