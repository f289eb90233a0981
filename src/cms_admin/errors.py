"""Exception hierarchy shared across the package.

Validation failures are *not* exceptions: ``RecordSchema.validate()``
returns a ``ValidationResult``.  Everything here signals either a broken
configuration, a failed call to the external store, or a caller that
skipped a precondition check.
"""


class CmsAdminError(Exception):
    """Base class for all cms-admin errors."""

    pass


class ConfigurationError(CmsAdminError):
    """Raised when a table or field configuration is malformed or missing.

    Fatal to rendering the affected view only.  ``report`` carries the
    layout report when the error came from layout validation.
    """

    def __init__(self, message: str, report: object | None = None) -> None:
        super().__init__(message)
        self.report = report


class TransportError(CmsAdminError):
    """Raised when a fetch or save against the external store fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = "UNKNOWN_ERROR",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class RecordNotFoundError(TransportError):
    """Raised when a single-record fetch names a key the store doesn't have."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Agent with ID {key} not found", status_code=404, code="NOT_FOUND")
        self.key = key


class PreconditionViolation(CmsAdminError):
    """Raised when a store mutation is called without its precondition holding."""

    pass


class DuplicateKeyError(PreconditionViolation):
    """Raised by ``create`` when the key already exists in the working copy."""

    pass


class MissingKeyError(PreconditionViolation):
    """Raised by ``update`` when the key is absent from the working copy."""

    pass


class InvalidKeyError(PreconditionViolation):
    """Raised when a record identifier fails the identifier rules."""

    pass


class SaveInProgressError(PreconditionViolation):
    """Raised when ``save_changes`` is called while another save is in flight."""

    pass


class ProfileNotFoundError(CmsAdminError):
    """Raised when no API profile is configured."""

    pass
