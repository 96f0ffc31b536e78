"""Puppet provisioner: register folder bindings, then verify the guest and apply."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

from loguru import logger

from . import command as puppet_command
from .config import PuppetConfig
from .folders import BindingRegistrar, FolderBindingRequest, plan_bindings, register_bindings
from .machine import Machine
from .messages import t
from .paths import ResolvedPaths, absolute_host_path, resolve_paths
from .preflight import folders_to_check, prepare_temp_dir, verify_binary, verify_shared_folders

log = logger

WAIT_FOR_REBOOT = 'wait_for_reboot'


@dataclass(frozen=True)
class ProvisionResult:
    exit_code: int
    changed: bool
    command: str


class PuppetProvisioner:
    """Drives one ``puppet apply`` run against ``machine``.

    ``configure`` may be called any number of times before ``provision``; both
    derive the same guest paths from ``config`` and ``root_path``.
    """

    def __init__(self, machine: Machine, config: PuppetConfig, root_path: str):
        self.machine = machine
        self.config = config
        self.root_path = root_path

    @cached_property
    def paths(self) -> ResolvedPaths:
        return resolve_paths(self.config, self.root_path)

    def configure(self, registrar: BindingRegistrar) -> list[FolderBindingRequest]:
        requests = plan_bindings(self.config, self.root_path)
        register_bindings(registrar, requests)
        return requests

    def build_command(self) -> str:
        return puppet_command.build_command(
            self.config,
            self.paths,
            self.machine.platform,
            colored=self.machine.ui.colored,
        )

    def provision(self) -> ProvisionResult:
        machine = self.machine
        if machine.guest.has_capability(WAIT_FOR_REBOOT):
            machine.guest.capability(WAIT_FOR_REBOOT)

        paths = self.paths
        check = folders_to_check(self.config, paths)

        prepare_temp_dir(machine, self.config)
        log.debug(t('checking_folders', count=len(check)))
        verify_shared_folders(machine, check)
        verify_binary(machine, self.config.binary)

        if self.config.hiera_config_path and paths.hiera_guest_path:
            local_hiera = absolute_host_path(self.config.hiera_config_path, self.root_path)
            log.info(t('uploading_hiera', path=paths.hiera_guest_path))
            machine.communicate.upload(local_hiera, paths.hiera_guest_path)

        cmd = self.build_command()
        machine.ui.info(t('running_puppet', manifest=self.config.manifest_file))
        exit_code = puppet_command.execute(machine, cmd)
        changed = puppet_command.changes_applied(exit_code)
        log.info(t('puppet_changed' if changed else 'puppet_unchanged'))
        return ProvisionResult(exit_code=exit_code, changed=changed, command=cmd)
