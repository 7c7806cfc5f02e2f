"""Typed failures surfaced by the social core."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .schemas import Relationship


class SocialError(RuntimeError):
    """Base class for every failure the core reports to its callers."""

    code = "social_error"
    default_message = "Social request failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class NotAuthenticated(SocialError):
    code = "not_authenticated"
    default_message = "You must be signed in to use social features."


class UsernameTaken(SocialError):
    code = "username_taken"
    default_message = "This username is already taken. Please choose a different one."


class AlreadyRegistered(SocialError):
    code = "already_registered"
    default_message = "A profile already exists for this account."


class AlreadyFollowing(SocialError):
    code = "already_following"
    default_message = "You're already following this user."


class FollowingNotAllowed(SocialError):
    code = "following_not_allowed"
    default_message = "This user's privacy settings don't allow followers."


class ApprovalRequired(SocialError):
    """Raised when a follow was recorded as a pending request.

    Not a failure: the edge exists in the store, callers show a pending state.
    """

    code = "approval_required"
    default_message = "Follow request sent. Waiting for approval."

    def __init__(self, relationship: "Relationship", message: str | None = None) -> None:
        super().__init__(message)
        self.relationship = relationship


class UserNotFound(SocialError):
    code = "user_not_found"
    default_message = "User not found."


class ProfileNotFound(SocialError):
    code = "profile_not_found"
    default_message = "Your profile could not be found. Please set it up again."


class ConcurrentModification(SocialError):
    code = "concurrent_modification"
    default_message = "Your profile changed elsewhere. Please review and try again."


class InvalidRequest(SocialError):
    code = "invalid_request"
    default_message = "The request is invalid."


class NetworkError(SocialError):
    code = "network_error"
    default_message = "Network connection error. Please check your connection and try again."


class ServerError(SocialError):
    code = "server_error"
    default_message = "The server is temporarily unavailable. Please try again later."


class SchemaMisconfigured(SocialError):
    code = "schema_misconfigured"
    default_message = "The remote store is not configured for social records."


# ---------------------------------------------------------------------------
# Store-level failures, raised by RecordStore implementations
# ---------------------------------------------------------------------------


class StoreError(RuntimeError):
    """Raised by record stores; translated by :func:`classify_store_error`."""


class RecordNotFound(StoreError):
    def __init__(self, record_type: str, record_id: str) -> None:
        super().__init__(f"{record_type} {record_id} not found")
        self.record_type = record_type
        self.record_id = record_id


class RecordConflict(StoreError):
    """A unique constraint rejected the write."""

    def __init__(self, record_type: str, fields: tuple[str, ...] = ()) -> None:
        detail = ", ".join(fields) if fields else "unique key"
        super().__init__(f"{record_type} conflicts on {detail}")
        self.record_type = record_type
        self.fields = fields


class VersionMismatch(StoreError):
    def __init__(self, record_type: str, record_id: str, expected: int, actual: Any) -> None:
        super().__init__(f"{record_type} {record_id} is at version {actual}, expected {expected}")
        self.record_type = record_type
        self.record_id = record_id
        self.expected = expected
        self.actual = actual


class StoreUnavailable(StoreError):
    """The store could not be reached."""


class StoreSchemaError(StoreError):
    """A record type or field is missing from the store."""


class StoreFailure(StoreError):
    """Any other store-side failure."""


def classify_store_error(exc: StoreError) -> SocialError:
    """Map a store failure onto the public error taxonomy.

    ``RecordNotFound`` has no single meaning; callers that care about it handle
    it before delegating here.
    """

    if isinstance(exc, StoreUnavailable):
        return NetworkError()
    if isinstance(exc, StoreSchemaError):
        return SchemaMisconfigured(str(exc))
    if isinstance(exc, RecordNotFound):
        return UserNotFound()
    if isinstance(exc, VersionMismatch):
        return ConcurrentModification()
    return ServerError()


__all__ = [
    "SocialError",
    "NotAuthenticated",
    "UsernameTaken",
    "AlreadyRegistered",
    "AlreadyFollowing",
    "FollowingNotAllowed",
    "ApprovalRequired",
    "UserNotFound",
    "ProfileNotFound",
    "ConcurrentModification",
    "InvalidRequest",
    "NetworkError",
    "ServerError",
    "SchemaMisconfigured",
    "StoreError",
    "RecordNotFound",
    "RecordConflict",
    "VersionMismatch",
    "StoreUnavailable",
    "StoreSchemaError",
    "StoreFailure",
    "classify_store_error",
]
