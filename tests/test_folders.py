"""Tests for folder binding planning and registration."""

from __future__ import annotations

import pytest

from puppetvm.config import ManifestsLocation, PuppetConfig
from puppetvm.errors import ConfigError
from puppetvm.folders import (
    FolderBindingRequest,
    FolderOptions,
    SyncedFolderRegistry,
    binding_options,
    plan_bindings,
    register_bindings,
)
from puppetvm.paths import resolve_paths


def test_binding_options_default_to_root_owner() -> None:
    opts = binding_options(PuppetConfig())
    assert opts == FolderOptions(owner='root')
    assert opts.as_dict() == {'owner': 'root'}


def test_binding_options_use_synced_folder_type() -> None:
    opts = binding_options(PuppetConfig(synced_folder_type='nfs'))
    assert opts == FolderOptions(type='nfs')
    assert opts.as_dict() == {'type': 'nfs'}


def test_plan_puts_manifests_first_then_modules() -> None:
    cfg = PuppetConfig(module_path=('modules', 'site'))
    paths = resolve_paths(cfg, '/proj')
    reqs = plan_bindings(cfg, '/proj')
    assert [r.host_path for r in reqs] == [
        '/proj/manifests',
        '/proj/modules',
        '/proj/site',
    ]
    assert [r.guest_path for r in reqs] == [
        paths.manifests_guest_path,
        *paths.module_guest_paths,
    ]
    assert all(r.options.owner == 'root' for r in reqs)


def test_plan_skips_guest_located_manifests() -> None:
    cfg = PuppetConfig(
        manifests_path=ManifestsLocation.guest('/etc/puppet/manifests'),
        module_path=('modules',),
    )
    reqs = plan_bindings(cfg, '/proj')
    assert [r.host_path for r in reqs] == ['/proj/modules']


def test_plan_is_idempotent() -> None:
    cfg = PuppetConfig(module_path=('a', 'b'), synced_folder_type='rsync')
    assert plan_bindings(cfg, '/proj') == plan_bindings(cfg, '/proj')


def test_register_bindings_preserves_order() -> None:
    seen = []

    class Recorder:
        def register_binding(self, host_path, guest_path, options):
            seen.append((host_path, guest_path, options))

    cfg = PuppetConfig(module_path=('modules',))
    reqs = plan_bindings(cfg, '/proj')
    register_bindings(Recorder(), reqs)
    assert seen == [(r.host_path, r.guest_path, r.options) for r in reqs]


def test_registry_replaces_same_binding_on_reconfigure() -> None:
    registry = SyncedFolderRegistry()
    cfg = PuppetConfig(module_path=('modules',))
    register_bindings(registry, plan_bindings(cfg, '/proj'))
    register_bindings(registry, plan_bindings(cfg, '/proj'))
    assert len(registry) == 2
    assert registry.bindings() == plan_bindings(cfg, '/proj')


def test_registry_rejects_conflicting_host_path() -> None:
    registry = SyncedFolderRegistry()
    registry.register_binding('/a', '/tmp/x', FolderOptions(owner='root'))
    with pytest.raises(ConfigError, match='already bound'):
        registry.register_binding('/b', '/tmp/x', FolderOptions(owner='root'))
    assert registry.bindings() == [
        FolderBindingRequest('/a', '/tmp/x', FolderOptions(owner='root'))
    ]
