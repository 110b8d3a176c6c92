"""Interpretation of the EquipsTIC response envelope.

Every reply from the API is wrapped as ``{"status", "message", "data"}`` and
is delivered with HTTP 200 whatever the outcome. A missing resource is only
recognisable by a failure status whose message contains ``"no existeix"``.
That convention is matched in :func:`is_not_found` and nowhere else.
"""

import logging
from dataclasses import dataclass
from typing import Final, Generic, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict, JsonValue

from equipstic.libs.inventory.exceptions import RemoteOperationError, TransportError

logger = logging.getLogger(__name__)

SUCCESS_STATUS: Final[str] = "success"
NOT_FOUND_MARKER: Final[str] = "no existeix"

T = TypeVar("T")


class Envelope(BaseModel):
    """Uniform wrapper around every API reply."""

    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    data: JsonValue = None

    @property
    def succeeded(self) -> bool:
        """Whether the status tag reports success."""
        return self.status == SUCCESS_STATUS


@dataclass(frozen=True)
class Present(Generic[T]):
    """A single-entity lookup that returned a payload (possibly ``None``)."""

    value: T


@dataclass(frozen=True)
class Absent:
    """A single-entity lookup for a resource the server reports as missing."""


ABSENT: Final[Absent] = Absent()

LookupResult: TypeAlias = Present[JsonValue] | Absent


def is_not_found(envelope: Envelope) -> bool:
    """Return True if the envelope is the server's disguised "not found" reply.

    A null message never matches.
    """
    message = envelope.message
    if not message:
        return False
    return not envelope.succeeded and NOT_FOUND_MARKER in message.casefold()


def _require_envelope(envelope: Envelope | None) -> Envelope:
    if envelope is None:
        logger.error("No envelope received from the API")
        raise TransportError("No response envelope received from the API")
    return envelope


def _failure(envelope: Envelope, context: str) -> RemoteOperationError:
    logger.warning(
        "API reported a failure",
        extra={"status": envelope.status, "remote_message": envelope.message},
    )
    return RemoteOperationError(f"{context}: {envelope.message}", envelope=envelope)


def interpret_single(envelope: Envelope | None) -> LookupResult:
    """Classify the reply to a single-entity lookup.

    Args:
        envelope: The decoded envelope, or None if the transport produced none.

    Returns:
        ``Present(data)`` on success, ``ABSENT`` if the resource does not exist.

    Raises:
        TransportError: If there is no envelope.
        RemoteOperationError: If the server reported any other failure.
    """
    envelope = _require_envelope(envelope)

    if is_not_found(envelope):
        logger.debug("Resource not found", extra={"remote_message": envelope.message})
        return ABSENT

    if not envelope.succeeded:
        raise _failure(envelope, "Error fetching resource")

    return Present(envelope.data)


def interpret_list(envelope: Envelope | None) -> list[JsonValue]:
    """Classify the reply to a list lookup.

    A missing resource and a null payload both become an empty list.

    Raises:
        TransportError: If there is no envelope.
        RemoteOperationError: If the server reported a failure, or the payload
            is not a list.
    """
    result = interpret_single(envelope)
    if isinstance(result, Absent) or result.value is None:
        return []
    if not isinstance(result.value, list):
        raise RemoteOperationError(
            "Expected a list payload",
            envelope=envelope,
            details=f"got {type(result.value).__name__}",
        )
    return result.value


def interpret_mutation(envelope: Envelope | None) -> JsonValue:
    """Classify the reply to a create, update or delete call.

    Unlike lookups, a "no existeix" failure is an error here.

    Returns:
        The payload carried by a successful reply (None for deletes).

    Raises:
        TransportError: If there is no envelope.
        RemoteOperationError: If the status reports any failure.
    """
    envelope = _require_envelope(envelope)
    if not envelope.succeeded:
        raise _failure(envelope, "Error modifying infrastructure")
    return envelope.data
