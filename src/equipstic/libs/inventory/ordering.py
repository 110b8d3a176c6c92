"""Natural ordering of list results."""

from collections.abc import Iterable
from typing import TypeVar

from equipstic.libs.inventory.models import Entity, Infrastructure

E = TypeVar("E", bound=Entity | Infrastructure)


def sort_entities(items: Iterable[E] | None) -> list[E]:
    """Return the items sorted by their natural ordering.

    ``None`` becomes an empty list. Types without a natural ordering keep
    the order the server sent them in.
    """
    if items is None:
        return []
    result = list(items)
    if result and type(result[0]).is_ordered():
        result.sort(key=lambda item: item.sort_key())
    return result
