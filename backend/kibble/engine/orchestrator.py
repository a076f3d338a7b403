"""Move orchestration: ordering plus lifecycle, as one write batch."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from ..errors import CrossOwnerMoveError
from .lifecycle import NO_CHANGE, check_board_active, transition_for
from .ordering import (
    Shift,
    Sibling,
    clamp_index,
    compute_insertion,
    compute_removal,
    compute_within_parent_move,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntitySnapshot:
    """State of the entity being moved, as read inside the transaction.

    ``owner_id`` is the top-level owner (the board). ``role`` is the role of
    the current parent column and is ``None`` for entities without a
    lifecycle (columns).
    """

    id: int
    parent_id: int
    owner_id: int
    position: int
    archived: bool = False
    role: Optional[str] = None


@dataclass(frozen=True)
class ParentSnapshot:
    """Destination parent of a move."""

    id: int
    owner_id: int
    role: Optional[str] = None
    owner_title: str = ""
    owner_archived: bool = False


@dataclass
class WriteBatch:
    """Every write one move needs, applied as a single unit."""

    entity_id: int
    parent_id: Optional[int] = None
    position: Optional[int] = None
    source_shifts: list[Shift] = field(default_factory=list)
    destination_shifts: list[Shift] = field(default_factory=list)
    changes: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return (
            self.parent_id is None
            and self.position is None
            and not self.source_shifts
            and not self.destination_shifts
            and not self.changes
        )


def plan_move(
    entity: EntitySnapshot,
    destination: ParentSnapshot,
    source_siblings: Iterable[Sibling],
    destination_siblings: Iterable[Sibling],
    desired_index: Optional[int],
    now: datetime,
) -> WriteBatch:
    """Compute the write batch for moving ``entity`` into ``destination``.

    Sibling snapshots hold the non-archived siblings of each parent and
    exclude the entity itself. For a within-parent move only
    ``source_siblings`` is consulted.
    """
    if destination.id == entity.parent_id:
        return _plan_within_parent(entity, source_siblings, desired_index)

    if destination.owner_id != entity.owner_id:
        raise CrossOwnerMoveError(entity.id, destination.id)

    change = NO_CHANGE
    if entity.role is not None and destination.role is not None:
        change = transition_for(entity.role, destination.role)
    changes = change.apply(entity.archived, now)

    archived_after = changes.get("archived", entity.archived)
    if entity.archived and not archived_after:
        check_board_active(
            destination.owner_id, destination.owner_title, destination.owner_archived
        )

    # Archived entities hold no slot in the dense sequence of either parent
    source_shifts = []
    if not entity.archived:
        source_shifts = compute_removal(source_siblings, entity.position)

    destination_siblings = list(destination_siblings)
    if archived_after:
        index = clamp_index(desired_index, len(destination_siblings))
        destination_shifts = []
    else:
        placement = compute_insertion(destination_siblings, desired_index)
        index = placement.index
        destination_shifts = placement.shifts

    batch = WriteBatch(
        entity_id=entity.id,
        parent_id=destination.id,
        position=index,
        source_shifts=source_shifts,
        destination_shifts=destination_shifts,
        changes=changes,
    )
    logger.debug(
        f"Planned move of {entity.id}: parent {entity.parent_id} -> {destination.id}, "
        f"position {entity.position} -> {index}, "
        f"{len(source_shifts)} source shifts, {len(destination_shifts)} destination shifts, "
        f"changes={changes}"
    )
    return batch


def _plan_within_parent(
    entity: EntitySnapshot,
    siblings: Iterable[Sibling],
    desired_index: Optional[int],
) -> WriteBatch:
    if entity.archived:
        # Nothing to reorder: the stale position of an archived entity is inert
        return WriteBatch(entity_id=entity.id)

    placement = compute_within_parent_move(siblings, entity.position, desired_index)
    if placement.index == entity.position:
        return WriteBatch(entity_id=entity.id)

    logger.debug(
        f"Planned reorder of {entity.id} in {entity.parent_id}: "
        f"{entity.position} -> {placement.index}, {len(placement.shifts)} shifts"
    )
    return WriteBatch(
        entity_id=entity.id,
        position=placement.index,
        source_shifts=placement.shifts,
    )
