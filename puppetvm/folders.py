"""Plan host to guest folder bindings and hand them to a synced-folder registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from loguru import logger

from .config import PuppetConfig
from .errors import ConfigError
from .paths import absolute_host_path, resolve_manifests_guest_path, resolve_module_bindings

log = logger

ROOT_OWNER = 'root'


@dataclass(frozen=True)
class FolderOptions:
    type: str | None = None
    owner: str | None = None

    def as_dict(self) -> dict[str, str]:
        out = {}
        if self.type is not None:
            out['type'] = self.type
        if self.owner is not None:
            out['owner'] = self.owner
        return out


@dataclass(frozen=True)
class FolderBindingRequest:
    host_path: str
    guest_path: str
    options: FolderOptions = field(default_factory=FolderOptions)


class BindingRegistrar(Protocol):
    def register_binding(
        self, host_path: str, guest_path: str, options: FolderOptions
    ) -> None: ...


def binding_options(config: PuppetConfig) -> FolderOptions:
    # Puppet usually runs as root, so default mounts are owned by root.
    if config.synced_folder_type:
        return FolderOptions(type=config.synced_folder_type)
    return FolderOptions(owner=ROOT_OWNER)


def plan_bindings(config: PuppetConfig, root_path: str) -> list[FolderBindingRequest]:
    opts = binding_options(config)
    requests: list[FolderBindingRequest] = []
    if config.manifests_path.on_host:
        requests.append(
            FolderBindingRequest(
                absolute_host_path(config.manifests_path.path, root_path),
                resolve_manifests_guest_path(config, root_path),
                opts,
            )
        )
    for binding in resolve_module_bindings(config, root_path):
        requests.append(
            FolderBindingRequest(binding.host_path, binding.guest_path, opts)
        )
    return requests


def register_bindings(
    registrar: BindingRegistrar, requests: Sequence[FolderBindingRequest]
) -> None:
    for req in requests:
        log.debug(
            'Registering synced folder {} -> {} ({})',
            req.host_path,
            req.guest_path,
            req.options.as_dict(),
        )
        registrar.register_binding(req.host_path, req.guest_path, req.options)


class SyncedFolderRegistry:
    """Synced folders declared for one machine, keyed by guest path."""

    def __init__(self) -> None:
        self._folders: dict[str, FolderBindingRequest] = {}

    def register_binding(
        self, host_path: str, guest_path: str, options: FolderOptions
    ) -> None:
        existing = self._folders.get(guest_path)
        if existing is not None and existing.host_path != host_path:
            raise ConfigError(
                f'Guest path {guest_path} is already bound to '
                f'{existing.host_path}; cannot also bind {host_path}'
            )
        self._folders[guest_path] = FolderBindingRequest(
            host_path, guest_path, options
        )

    def bindings(self) -> list[FolderBindingRequest]:
        return list(self._folders.values())

    def __len__(self) -> int:
        return len(self._folders)
