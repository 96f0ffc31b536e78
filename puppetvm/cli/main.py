"""Top-level modal CLI wiring and logging setup."""

from __future__ import annotations

import os
import sys

import scriptconfig as scfg
from loguru import logger

from ..command import build_command
from ..errors import PuppetVMError
from ..folders import SyncedFolderRegistry, plan_bindings
from ..machine import build_machine
from ..paths import resolve_paths
from ..provisioner import PuppetProvisioner
from ..runtime import Platform
from ..sync import sync_folders, wants_copy
from ..ui import console_ui
from ._common import (
    _BaseCommand,
    _cfg_path,
    _load_settings,
    _load_settings_with_path,
    _require_valid,
    log,
)
from .config import ConfigModalCLI


class PlanCLI(_BaseCommand):
    """Show guest paths and the folder bindings that will be registered."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        settings, path = _load_settings_with_path(args.config)
        puppet = settings.puppet
        paths = resolve_paths(puppet, settings.root_path)
        print(f'Config: {path}')
        print(f'Root path: {settings.root_path}')
        print(f'Manifests: {paths.manifests_guest_path}')
        print(f'Manifest file: {paths.manifest_file}')
        print(f'Hiera config: {paths.hiera_guest_path or "(none)"}')
        print('')
        print('Folder bindings')
        requests = plan_bindings(puppet, settings.root_path)
        if not requests:
            print('  (none)')
        for req in requests:
            opts = ', '.join(f'{k}={v}' for k, v in req.options.as_dict().items())
            print(f'  - {req.host_path} -> {req.guest_path} | {opts}')
        return 0


class CommandCLI(_BaseCommand):
    """Print the puppet apply command for the configured guest."""

    color = scfg.Value(
        False, isflag=True, help='Build the command for a color-capable UI.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        settings = _load_settings(args.config)
        platform = Platform.from_communicator(settings.machine.communicator)
        paths = resolve_paths(settings.puppet, settings.root_path)
        print(
            build_command(
                settings.puppet, paths, platform, colored=bool(args.color)
            )
        )
        return 0


class ProvisionCLI(_BaseCommand):
    """Verify the guest and run puppet apply on it."""

    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )
    sync = scfg.Value(
        False,
        isflag=True,
        help='Copy folder bindings into the guest over SSH before provisioning.',
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        settings = _load_settings(args.config)
        _require_valid(settings)
        ui = console_ui()
        if args.dry_run:
            platform = Platform.from_communicator(settings.machine.communicator)
            for req in plan_bindings(settings.puppet, settings.root_path):
                log.info('DRYRUN: bind {} -> {}', req.host_path, req.guest_path)
            paths = resolve_paths(settings.puppet, settings.root_path)
            print(
                build_command(
                    settings.puppet, paths, platform, colored=ui.colored
                )
            )
            return 0

        machine = build_machine(settings.machine, ui)
        prov = PuppetProvisioner(machine, settings.puppet, settings.root_path)
        registry = SyncedFolderRegistry()
        prov.configure(registry)
        if args.sync or wants_copy(registry.bindings()):
            res = sync_folders(machine, registry.bindings())
            if res.failed:
                raise PuppetVMError(
                    'Failed to copy folders into the guest:\n'
                    + '\n'.join(res.failed)
                )
        result = prov.provision()
        log.debug('Provision finished exit_code={}', result.exit_code)
        return 0


class PuppetVMModalCLI(scfg.ModalCLI):
    """Provision virtual machines with puppet apply over SSH."""

    config = ConfigModalCLI
    plan = PlanCLI
    command = CommandCLI
    provision = ProvisionCLI


def main(argv: list[str] | None = None) -> None:
    verbosity = 1
    config_value = None
    if argv is None:
        argv = sys.argv[1:]
    if '--config' in argv:
        try:
            config_value = argv[argv.index('--config') + 1]
        except IndexError:
            pass
    try:
        if config_value is not None or _cfg_path(None).exists():
            verbosity = _load_settings(config_value).verbosity
    except (PuppetVMError, ValueError):
        verbosity = 1

    explicit_verbose = _count_verbose(argv)
    _setup_logging(explicit_verbose, verbosity)

    try:
        rc = PuppetVMModalCLI.main(argv=argv, _noexit=True)
    except Exception as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        log.error('Unhandled puppetvm error: {}', ex)
        sys.exit(2)

    if any(flag in argv for flag in ('-h', '--help')):
        sys.exit(0)
    if isinstance(rc, int):
        sys.exit(rc)
    sys.exit(0)


def _setup_logging(args_verbose: int, cfg_verbosity: int) -> None:
    logger.remove()
    effective_verbosity = args_verbose if args_verbose > 0 else cfg_verbosity
    level = 'WARNING'
    if effective_verbosity == 1:
        level = 'INFO'
    elif effective_verbosity >= 2:
        level = 'DEBUG'
    colorize = sys.stderr.isatty() and os.getenv('NO_COLOR') is None
    logger.add(
        sys.stderr,
        level=level,
        colorize=colorize,
        format='<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>',
    )
    log.debug(
        'Logging configured at {} (effective_verbosity={}, colorize={})',
        level,
        effective_verbosity,
        colorize,
    )


def _count_verbose(argv: list[str]) -> int:
    count = 0
    for item in argv:
        if item == '--verbose':
            count += 1
        elif item.startswith('-') and not item.startswith('--'):
            short = item[1:]
            if short and set(short) <= {'v'}:
                count += len(short)
    return count
