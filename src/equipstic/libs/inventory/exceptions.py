"""Exceptions for EquipsTIC client operations."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from equipstic.libs.inventory.envelope import Envelope


class EquipsTicError(Exception):
    """Base exception for all EquipsTIC client errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: The main error message.
            details: Optional additional details about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        """Return a string representation of the error."""
        if self.details:
            return f"{self.message}. Details: {self.details}"
        return self.message


class ConfigError(EquipsTicError):
    """Configuration-related errors."""

    pass


class InvalidArgumentError(EquipsTicError, ValueError):
    """A required parameter was missing or blank.

    Raised before any request is sent.
    """

    pass


class TransportError(EquipsTicError):
    """No usable envelope was received from the API.

    Covers connection failures, timeouts, non-2xx HTTP statuses and bodies
    that cannot be decoded as an envelope.
    """

    def __init__(
        self, message: str, status_code: int | None = None, details: str | None = None
    ) -> None:
        """Initialize the transport error.

        Args:
            message: The main error message.
            status_code: HTTP status code if applicable.
            details: Optional additional details about the error.
        """
        self.status_code = status_code
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return a string representation of the error."""
        base_message = self.message
        if self.status_code:
            base_message = f"{base_message} (HTTP {self.status_code})"
        if self.details:
            base_message = f"{base_message}. Details: {self.details}"
        return base_message


class AuthenticationError(TransportError):
    """Exception raised when the API rejects the Basic credentials."""

    pass


class RemoteOperationError(EquipsTicError):
    """The API answered with a failure envelope.

    The server message is kept verbatim in ``remote_message`` and the raw
    envelope in ``envelope`` for diagnostics.
    """

    def __init__(
        self,
        message: str,
        envelope: "Envelope | None" = None,
        details: str | None = None,
    ) -> None:
        """Initialize the remote operation error.

        Args:
            message: The main error message.
            envelope: The envelope that carried the failure, if any.
            details: Optional additional details about the error.
        """
        self.envelope = envelope
        self.remote_message = envelope.message if envelope is not None else None
        super().__init__(message, details)


class StubResolutionError(RemoteOperationError):
    """A relation of a composite entity could not be resolved.

    Raised when a relation lookup reports the referenced entity as missing,
    typically because the record changed on the server between calls.
    """

    def __init__(self, relation: str, entity_id: int) -> None:
        """Initialize the stub resolution error.

        Args:
            relation: Name of the relation field that failed to resolve.
            entity_id: Identifier held by the stub.
        """
        self.relation = relation
        self.entity_id = entity_id
        super().__init__(f"Could not resolve relation '{relation}' with id {entity_id}")
