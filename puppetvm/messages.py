"""User-facing message templates keyed by message id."""

from __future__ import annotations

MESSAGES: dict[str, str] = {
    'running_puppet': 'Running Puppet with {manifest}...',
    'uploading_hiera': 'Uploading Hiera configuration to {path}',
    'checking_folders': 'Checking {count} shared folder(s) on the guest',
    'waiting_for_reboot': 'Waiting for the guest to finish rebooting',
    'missing_shared_folders': (
        'Shared folder is missing on the guest: {folder}. '
        'Reload the machine so the folders are mounted and try again.'
    ),
    'not_detected': (
        "The '{binary}' binary was not found on the guest. "
        'Install it before provisioning.'
    ),
    'bad_exit_status': 'Remote command exited with non-success status {exit_code}.',
    'puppet_changed': 'Puppet applied changes.',
    'puppet_unchanged': 'Puppet made no changes.',
}


def t(key: str, **kwargs: object) -> str:
    try:
        template = MESSAGES[key]
    except KeyError:
        raise KeyError(f'Unknown message id: {key}') from None
    return template.format(**kwargs)
