"""Copy registered folder bindings into the guest over SSH.

Stands in for a real synced-folder mechanism when the guest has none: each
host directory is copied to its guest path and handed to the requested owner.
"""

from __future__ import annotations

import posixpath
import shlex
from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger

from .errors import ConfigError
from .folders import FolderBindingRequest
from .machine import Machine

log = logger

COPY_FOLDER_TYPES = frozenset({'rsync', 'copy'})


@dataclass
class SyncFoldersResult:
    copied: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, list[str]]:
        return {'copied': list(self.copied), 'failed': list(self.failed)}


def wants_copy(requests: Sequence[FolderBindingRequest]) -> bool:
    return any(req.options.type in COPY_FOLDER_TYPES for req in requests)


def sync_folders(
    machine: Machine,
    requests: Sequence[FolderBindingRequest],
    *,
    dry_run: bool = False,
) -> SyncFoldersResult:
    if machine.platform.is_windows:
        raise ConfigError('Copying synced folders is only supported on POSIX guests.')
    result = SyncFoldersResult()
    comm = machine.communicate
    for req in requests:
        guest = req.guest_path
        parent = posixpath.dirname(guest) or '/'
        prepare = (
            f'rm -rf {shlex.quote(guest)} && mkdir -p {shlex.quote(parent)} '
            f'&& chmod 0777 {shlex.quote(parent)}'
        )
        label = f'{req.host_path} -> {guest}'
        if dry_run:
            log.info('DRYRUN: sudo {}', prepare)
            log.info('DRYRUN: upload -r {}', label)
            result.copied.append(label)
            continue
        res = comm.execute(prepare, sudo=True)
        if res.code != 0:
            result.failed.append(f'{label}: {res.stderr.strip()}')
            continue
        comm.upload(req.host_path, guest, recursive=True)
        if req.options.owner:
            res = comm.execute(
                f'chown -R {shlex.quote(req.options.owner)} {shlex.quote(guest)}',
                sudo=True,
            )
            if res.code != 0:
                result.failed.append(f'{label}: {res.stderr.strip()}')
                continue
        log.debug('Copied {}', label)
        result.copied.append(label)
    return result
