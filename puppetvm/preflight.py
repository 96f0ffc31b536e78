"""Guest-side checks that must pass before puppet apply runs."""

from __future__ import annotations

import shlex
from typing import Sequence

from loguru import logger

from .config import PuppetConfig
from .errors import BinaryNotDetectedError, MissingSharedFoldersError, RemoteExecutionFailedError
from .machine import Machine
from .paths import ResolvedPaths

log = logger


def folders_to_check(config: PuppetConfig, paths: ResolvedPaths) -> list[str]:
    check = []
    if config.manifests_path.on_host:
        check.append(paths.manifests_guest_path)
    check.extend(paths.module_guest_paths)
    return check


def temp_dir_commands(machine: Machine, temp_dir: str) -> list[str]:
    if machine.platform.is_windows:
        return [f"New-Item -ItemType Directory -Force -Path '{temp_dir}' | Out-Null"]
    quoted = shlex.quote(temp_dir)
    return [f'mkdir -p {quoted}', f'chmod 0777 {quoted}']


def prepare_temp_dir(machine: Machine, config: PuppetConfig) -> None:
    """Create the guest temp dir (world writable) if it does not exist yet."""
    for command in temp_dir_commands(machine, config.temp_dir):
        res = machine.communicate.execute(command, sudo=True)
        if res.code != 0:
            raise RemoteExecutionFailedError(
                res.code, (res.stderr or res.stdout).strip().splitlines()
            )


def verify_shared_folders(machine: Machine, folders: Sequence[str]) -> None:
    for folder in folders:
        log.debug('Checking for shared folder: {}', folder)
        if not machine.communicate.test_dir(folder, sudo=True):
            raise MissingSharedFoldersError(folder)


def verify_binary(machine: Machine, binary: str) -> None:
    log.debug('Checking for binary on guest: {}', binary)
    if not machine.communicate.which(binary):
        raise BinaryNotDetectedError(binary)
