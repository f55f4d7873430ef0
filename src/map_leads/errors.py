"""Custom exceptions for the lead-generation domain."""


class MapLeadsError(Exception):
    """Base exception for this project."""

    status_code = 500

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else "Unexpected error"


class NotFoundError(MapLeadsError):
    """Raised for missing resources and for resources owned by another account."""

    status_code = 404


class ForbiddenError(MapLeadsError):
    """Raised for suspended accounts and non-superadmin callers."""

    status_code = 403


class QuotaExceededError(MapLeadsError):
    """Raised when an account has used its whole leads allowance."""

    status_code = 429


class ValidationError(MapLeadsError):
    """Raised for missing or malformed input fields."""

    status_code = 400


class ConflictError(ValidationError):
    """Raised for self-targeting admin actions and searches that are no longer queued."""

    status_code = 409


class InternalError(MapLeadsError):
    """Raised when a collaborator (provider, store, identity) fails."""


class ProviderError(InternalError):
    """Raised when the place-search provider call fails."""


class StoreError(InternalError):
    """Raised when the document store rejects a read or write."""


class IdentityError(InternalError):
    """Raised when the identity directory cannot update a user."""


class ConfigError(MapLeadsError):
    """Raised when runtime configuration is invalid."""


class FetchError(MapLeadsError):
    """Raised when fetching a URL fails unexpectedly."""
