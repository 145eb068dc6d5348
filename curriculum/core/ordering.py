"""Prerequisite ordering for chapters and units."""

from operator import attrgetter
from typing import Callable, Iterable, Optional, TypeVar

from ..logging_config import get_logger

logger = get_logger('ordering')

T = TypeVar('T')

_default_prerequisite = attrgetter('prerequisite_id')
_default_id = attrgetter('id')


def sort_by_prerequisite(
    entities: Iterable[T],
    prerequisite_of: Callable[[T], Optional[str]] = _default_prerequisite,
    id_of: Callable[[T], str] = _default_id,
) -> list[T]:
    """
    Order entities so each one follows its prerequisite sibling.

    Entities without a prerequisite come first in input order. Each pass then
    releases every remaining entity whose prerequisite is already placed, in
    input order. When a pass releases nothing (a cycle, a dangling reference,
    or an entity naming itself), everything still remaining is appended in
    input order.

    Never raises and always returns a permutation of the input.

    Args:
        entities: Chapters, units, or any records with an id and a prerequisite
        prerequisite_of: Returns an entity's prerequisite id ('' or None = none)
        id_of: Returns an entity's id

    Returns:
        A new list in prerequisite order
    """
    ordered: list[T] = []
    remaining: list[T] = []

    for entity in entities:
        if prerequisite_of(entity):
            remaining.append(entity)
        else:
            ordered.append(entity)

    placed_ids = {id_of(entity) for entity in ordered}

    while remaining:
        released = [e for e in remaining if prerequisite_of(e) in placed_ids]

        if not released:
            logger.debug(
                f"{len(remaining)} entities have unresolvable prerequisites; "
                "appending in input order"
            )
            ordered.extend(remaining)
            break

        ordered.extend(released)
        placed_ids.update(id_of(e) for e in released)
        # Identity, not equality: duplicates must keep their multiplicity
        released_ids = {id(e) for e in released}
        remaining = [e for e in remaining if id(e) not in released_ids]

    return ordered


def prerequisite_candidates(
    entities: Iterable[T],
    exclude_id: Optional[str] = None,
    prerequisite_of: Callable[[T], Optional[str]] = _default_prerequisite,
    id_of: Callable[[T], str] = _default_id,
) -> list[T]:
    """Siblings that may be picked as the prerequisite of `exclude_id`, in order."""
    return [
        entity for entity in sort_by_prerequisite(entities, prerequisite_of, id_of)
        if exclude_id is None or id_of(entity) != exclude_id
    ]
