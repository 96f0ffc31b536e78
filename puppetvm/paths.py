"""Deterministic guest-side path layout for manifests, modules, and Hiera config.

Every function here is a pure function of the puppet config and the host root
path. The same inputs always give the same guest paths, so the paths computed
when folders are registered match the ones checked at provision time.
"""

from __future__ import annotations

import hashlib
import os
import posixpath
from dataclasses import dataclass

from loguru import logger

from .config import PuppetConfig
from .errors import ConfigurationDerivationError
from .util import expand

log = logger

HIERA_FILENAME = 'hiera.yaml'


@dataclass(frozen=True)
class ModulePathBinding:
    host_path: str
    guest_path: str


@dataclass(frozen=True)
class ResolvedPaths:
    manifests_guest_path: str
    manifest_file: str
    module_bindings: tuple[ModulePathBinding, ...] = ()
    hiera_guest_path: str | None = None

    @property
    def module_guest_paths(self) -> list[str]:
        return [b.guest_path for b in self.module_bindings]


def content_key(path: str) -> str:
    """Stable 128-bit hex digest of a path string, used for guest dir names."""
    return hashlib.md5(path.encode('utf-8'), usedforsecurity=False).hexdigest()


def absolute_host_path(path: str, root_path: str) -> str:
    return os.path.abspath(os.path.join(root_path, expand(path)))


def resolve_manifests_guest_path(config: PuppetConfig, root_path: str) -> str:
    location = config.manifests_path
    if not location.on_host:
        return location.path
    host_path = absolute_host_path(location.path, root_path)
    return posixpath.join(config.temp_dir, f'manifests-{content_key(host_path)}')


def resolve_module_bindings(
    config: PuppetConfig, root_path: str
) -> list[ModulePathBinding]:
    bindings = []
    for entry in config.module_path:
        host_path = absolute_host_path(entry, root_path)
        guest_path = posixpath.join(
            config.temp_dir, f'modules-{content_key(host_path)}'
        )
        bindings.append(ModulePathBinding(host_path, guest_path))
    return bindings


def resolve_hiera_guest_path(config: PuppetConfig) -> str | None:
    if not config.hiera_config_path:
        return None
    return posixpath.join(config.temp_dir, HIERA_FILENAME)


def resolve_paths(config: PuppetConfig, root_path: str) -> ResolvedPaths:
    try:
        manifests = resolve_manifests_guest_path(config, root_path)
        resolved = ResolvedPaths(
            manifests_guest_path=manifests,
            manifest_file=posixpath.join(manifests, config.manifest_file),
            module_bindings=tuple(resolve_module_bindings(config, root_path)),
            hiera_guest_path=resolve_hiera_guest_path(config),
        )
    except (TypeError, ValueError, AttributeError) as ex:
        raise ConfigurationDerivationError(
            f'Could not derive guest paths: {ex}'
        ) from ex
    log.debug(
        'Resolved guest paths manifests={} modules={} hiera={}',
        resolved.manifests_guest_path,
        resolved.module_guest_paths,
        resolved.hiera_guest_path,
    )
    return resolved
