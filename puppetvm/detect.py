"""Auto-detection of host defaults such as the SSH identity file."""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from .util import CmdError, expand, run_cmd, which

log = logger

PREFERRED_IDENTITIES = ['id_ed25519', 'id_rsa']


def _identity_from_ssh_client() -> str:
    if not which('ssh'):
        return ''
    try:
        res = run_cmd(['ssh', '-G', 'unknown@doesnt.exist'], check=True, capture=True)
    except CmdError:
        return ''
    for line in res.stdout.splitlines():
        parts = line.strip().split()
        if len(parts) >= 2 and parts[0].lower() == 'identityfile':
            ident = expand(parts[1].replace('%d', '~'))
            if os.path.exists(ident):
                return ident
    return ''


def detect_ssh_identity() -> str:
    log.debug('detecting ssh identity')
    ident = _identity_from_ssh_client()
    if ident:
        return ident
    ssh_dir = Path(expand('~/.ssh'))
    for name in PREFERRED_IDENTITIES:
        p = ssh_dir / name
        if p.exists():
            return str(p)
    return ''
