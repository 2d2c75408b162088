"""
Error taxonomy for the storage audit.

- FatalSetupError and its subclasses abort the run before any account is
  processed; no report is written.
- TransientFetchError is raised per account and recovered by the runner.
- RenderingError is raised for a single report row and recovered by the runner.
"""


class StorageAuditError(Exception):
    """Base class for all audit errors."""


class FatalSetupError(StorageAuditError):
    """The scope could not be validated or enumerated."""


class ContextValidationError(FatalSetupError):
    """The subscription is unknown, inaccessible or not enabled."""


class AuthorizationError(FatalSetupError):
    """The caller lacks read access to storage accounts in the scope."""


class NoAccountsError(FatalSetupError):
    """The scope has no visible storage accounts."""


class TransientFetchError(StorageAuditError):
    """A per-account property fetch failed."""

    def __init__(self, resource_name: str, message: str):
        super().__init__(f"{resource_name}: {message}")
        self.resource_name = resource_name
        self.message = message


class RenderingError(StorageAuditError):
    """A report row could not be rendered from its input data."""
