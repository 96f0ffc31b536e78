from __future__ import annotations

from pathlib import Path

from puppetvm.detect import detect_ssh_identity


def test_detect_prefers_ed25519(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.setattr('puppetvm.detect.which', lambda cmd: None)
    ssh_dir = tmp_path / '.ssh'
    ssh_dir.mkdir()
    (ssh_dir / 'id_rsa').write_text('x', encoding='utf-8')
    (ssh_dir / 'id_ed25519').write_text('x', encoding='utf-8')
    assert detect_ssh_identity() == str(ssh_dir / 'id_ed25519')


def test_detect_nothing(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.setattr('puppetvm.detect.which', lambda cmd: None)
    assert detect_ssh_identity() == ''
