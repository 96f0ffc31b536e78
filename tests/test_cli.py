"""Tests for CLI commands that do not touch a guest."""

from __future__ import annotations

import hashlib
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from puppetvm.cli import PuppetVMModalCLI
from puppetvm.cli.main import _count_verbose, main
from puppetvm.config import ProvisionerSettings, PuppetConfig, load, save


def _write_project(tmp_path: Path, communicator: str = 'ssh') -> Path:
    (tmp_path / 'manifests').mkdir()
    (tmp_path / 'manifests' / 'default.pp').write_text(
        "notify { 'hi': }\n", encoding='utf-8'
    )
    (tmp_path / 'modules').mkdir()
    settings = ProvisionerSettings()
    settings.machine = replace(
        settings.machine,
        communicator=communicator,
        ssh_identity_file=str(tmp_path / 'id_ed25519'),
    )
    settings.puppet = PuppetConfig(module_path=('modules',), facter={'role': 'db'})
    cfg_path = tmp_path / '.puppetvm.toml'
    save(cfg_path, settings)
    return cfg_path


def _run(argv: list[str]) -> int:
    rc = PuppetVMModalCLI.main(argv=argv, _noexit=True)
    return 0 if rc is None else int(rc)


def test_provision_dry_run_prints_command(tmp_path: Path, capsys) -> None:
    cfg_path = _write_project(tmp_path)
    assert _run(['provision', '--dry_run', '--config', str(cfg_path)]) == 0
    out = capsys.readouterr().out
    key = hashlib.md5(str(tmp_path.resolve() / 'modules').encode()).hexdigest()
    assert f'/tmp/vagrant-puppet/modules-{key}:/etc/puppet/modules' in out
    assert out.startswith("FACTER_role='db' puppet apply ")
    assert '--detailed-exitcodes' in out


def test_command_for_windows_guest(tmp_path: Path, capsys) -> None:
    cfg_path = _write_project(tmp_path, communicator='winssh')
    assert _run(['command', '--config', str(cfg_path)]) == 0
    out = capsys.readouterr().out
    assert ';/ProgramData/PuppetLabs/puppet/etc/modules' in out
    assert "`$env:FACTER_role='db';" in out
    assert '--color=false' in out


def test_plan_lists_bindings(tmp_path: Path, capsys) -> None:
    cfg_path = _write_project(tmp_path)
    assert _run(['plan', '--config', str(cfg_path)]) == 0
    out = capsys.readouterr().out
    assert 'Folder bindings' in out
    assert f'{tmp_path.resolve() / "manifests"} -> /tmp/vagrant-puppet/manifests-' in out
    assert 'owner=root' in out


def test_config_lint(tmp_path: Path, capsys) -> None:
    cfg_path = _write_project(tmp_path)
    assert _run(['config', 'lint', '--config', str(cfg_path)]) == 0
    (tmp_path / 'manifests' / 'default.pp').unlink()
    assert _run(['config', 'lint', '--config', str(cfg_path)]) == 1
    assert 'Manifest file not found' in capsys.readouterr().out


def test_config_init_and_show(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(
        'puppetvm.cli.config.detect_ssh_identity', lambda: '/keys/id_ed25519'
    )
    cfg_path = tmp_path / 'new.toml'
    assert _run(['config', 'init', '--config', str(cfg_path)]) == 0
    assert load(cfg_path).machine.ssh_identity_file == '/keys/id_ed25519'
    assert _run(['config', 'init', '--config', str(cfg_path)]) == 2
    assert _run(['config', 'init', '--force', '--config', str(cfg_path)]) == 0
    capsys.readouterr()
    assert _run(['config', 'show', '--config', str(cfg_path)]) == 0
    assert '[puppet]' in capsys.readouterr().out


def test_main_reports_errors_and_exits_2(
    tmp_path: Path, capsys, monkeypatch
) -> None:
    monkeypatch.setattr(
        sys.modules['puppetvm.cli.main'], '_setup_logging', lambda *a: None
    )
    missing = tmp_path / 'missing.toml'
    with pytest.raises(SystemExit) as exc:
        main(['plan', '--config', str(missing)])
    assert exc.value.code == 2
    assert 'Config not found' in capsys.readouterr().err


def test_provision_rejects_invalid_config(tmp_path: Path) -> None:
    cfg_path = _write_project(tmp_path)
    (tmp_path / 'modules').rmdir()
    with pytest.raises(Exception, match='Module path not found'):
        _run(['provision', '--dry_run', '--config', str(cfg_path)])


def test_count_verbose() -> None:
    assert _count_verbose(['plan', '-vv']) == 2
    assert _count_verbose(['plan', '--verbose', '-v']) == 2
    assert _count_verbose(['plan', '--config', 'x']) == 0
