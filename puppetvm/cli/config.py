from __future__ import annotations

import sys
from dataclasses import replace

import scriptconfig as scfg

from ..config import DEFAULT_CONFIG_NAME, ProvisionerSettings, dump_toml, save, validate
from ..detect import detect_ssh_identity
from ._common import _BaseCommand, _cfg_path, _load_settings_with_path


class InitCLI(_BaseCommand):
    """Write a starter provisioner config."""

    force = scfg.Value(
        False,
        isflag=True,
        help='Overwrite the config file if it already exists.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = _cfg_path(args.config or DEFAULT_CONFIG_NAME)
        if path.exists() and not args.force:
            print(f'Config already exists: {path}', file=sys.stderr)
            print('Use --force to overwrite it.', file=sys.stderr)
            return 2
        settings = ProvisionerSettings()
        ident = detect_ssh_identity()
        if ident:
            settings.machine = replace(settings.machine, ssh_identity_file=ident)
        save(path, settings)
        print(f'Wrote config: {path}')
        return 0


class ConfigShowCLI(_BaseCommand):
    """Show the resolved provisioner config."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        settings, path = _load_settings_with_path(args.config)
        print(f'# Config: {path}')
        print(f'# Root path: {settings.root_path}')
        print(dump_toml(settings), end='')
        return 0


class ConfigLintCLI(_BaseCommand):
    """Check that configured host paths exist and values are sane."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        settings, path = _load_settings_with_path(args.config)
        problems = validate(settings)
        if not problems:
            print(f'OK: {path}')
            return 0
        print(f'Problems in {path}:')
        for prob in problems:
            print(f'  - {prob}')
        return 1


class ConfigModalCLI(scfg.ModalCLI):
    """Config management subcommands."""

    init = InitCLI
    show = ConfigShowCLI
    lint = ConfigLintCLI
