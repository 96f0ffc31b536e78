"""Project-specific exception types."""

from __future__ import annotations

from .messages import t


class PuppetVMError(RuntimeError):
    """Base error for domain-level puppetvm failures."""


class ConfigError(PuppetVMError):
    """Raised when provisioner configuration is missing or invalid."""


class MissingSSHIdentityError(ConfigError):
    """Raised when SSH identity configuration is required but missing."""


class ConfigurationDerivationError(PuppetVMError):
    """Raised when guest path derivation fails on well-formed input."""


class MissingSharedFoldersError(PuppetVMError):
    """Raised when an expected shared folder is absent on the guest."""

    def __init__(self, folder: str):
        self.folder = folder
        super().__init__(t('missing_shared_folders', folder=folder))


class BinaryNotDetectedError(PuppetVMError):
    """Raised when the applier executable cannot be found on the guest."""

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(t('not_detected', binary=binary))


class RemoteExecutionFailedError(PuppetVMError):
    """Raised when the applier exits with a code outside the success set."""

    def __init__(self, exit_code: int, output_tail: list[str] | None = None):
        self.exit_code = exit_code
        self.output_tail = list(output_tail or [])
        msg = t('bad_exit_status', exit_code=exit_code)
        if self.output_tail:
            msg += '\n' + '\n'.join(self.output_tail)
        super().__init__(msg)


class TransportError(PuppetVMError):
    """Raised when the remote transport itself fails (connect, auth, timeout)."""

    def __init__(self, message: str, exit_code: int | None = None):
        self.exit_code = exit_code
        super().__init__(message)
