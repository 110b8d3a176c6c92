"""Resolution of stub relations on equipment records.

The API returns the relations of an :class:`Infrastructure` as objects that
only carry an identifier. :func:`hydrate` replaces each of them with the
full entity, fetched through its own lookup-by-id operation.

Lookups are independent of each other and run concurrently. Hydration is
all-or-nothing: if any lookup fails, the error propagates and no partially
resolved record is returned. The sub-calls share no transaction on the
server, so a record modified concurrently may be resolved against a mix of
old and new state.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from equipstic.libs.inventory.exceptions import RemoteOperationError, StubResolutionError
from equipstic.libs.inventory.models import RELATIONS, Entity, Infrastructure, Relation, Stub

logger = logging.getLogger(__name__)

# Fetches the entity a relation points to; None means the server reported it missing
Resolver = Callable[[Relation, int], Awaitable[Entity | None]]


def _reference_id(relation: Relation, value: Stub | Entity) -> int:
    reference_id = value.id if isinstance(value, Stub) else value.entity_id
    if reference_id is None:
        raise RemoteOperationError(f"Relation '{relation.field}' carries no identifier")
    return reference_id


async def hydrate(
    infrastructure: Infrastructure | None, resolve: Resolver
) -> Infrastructure | None:
    """Return a copy of the record with every relation resolved.

    Optional relations that are None stay None and cost no lookup. Relations
    that are already resolved are fetched again by id, so hydrating twice
    gives the same result.

    Args:
        infrastructure: The record to hydrate. None is returned unchanged.
        resolve: Coroutine function fetching one relation target by id.

    Returns:
        A new, fully hydrated record, or None.

    Raises:
        StubResolutionError: If a referenced entity no longer exists.
        RemoteOperationError: If a lookup failed on the server.
        TransportError: If a lookup got no reply.
    """
    if infrastructure is None:
        return None

    targets: list[tuple[Relation, int]] = []
    for relation in RELATIONS:
        value = getattr(infrastructure, relation.field)
        if value is None:
            continue
        targets.append((relation, _reference_id(relation, value)))

    logger.debug(
        "Hydrating infrastructure",
        extra={"identifier": infrastructure.identifier, "lookups": len(targets)},
    )

    results = await asyncio.gather(
        *(resolve(relation, reference_id) for relation, reference_id in targets),
        return_exceptions=True,
    )

    update: dict[str, Entity] = {}
    for (relation, reference_id), result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Failed to resolve relation",
                extra={
                    "identifier": infrastructure.identifier,
                    "relation": relation.field,
                    "reference_id": reference_id,
                    "error": str(result),
                },
            )
            raise result
        if result is None:
            logger.warning(
                "Relation target no longer exists",
                extra={
                    "identifier": infrastructure.identifier,
                    "relation": relation.field,
                    "reference_id": reference_id,
                },
            )
            raise StubResolutionError(relation.field, reference_id)
        update[relation.field] = result

    return infrastructure.model_copy(update=update)
