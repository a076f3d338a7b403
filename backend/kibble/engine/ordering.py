"""Dense sibling ordering.

Every function here is pure: it takes a snapshot of the non-archived
siblings of one parent (columns of a board, tasks of a column) and returns
the position the placed entity must take plus the shift set, i.e. the
siblings whose ``position`` must move by +1 or -1 so that the positions of
the non-archived siblings stay exactly ``0..n-1``.

Indices outside ``[0, len(siblings)]`` are clamped, never rejected.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass(frozen=True)
class Sibling:
    """Snapshot of one sibling's identity and current position."""

    id: int
    position: int


@dataclass(frozen=True)
class Shift:
    """A sibling whose position must change by ``delta``."""

    id: int
    delta: int


@dataclass
class Placement:
    """Final position of the placed entity and the siblings to shift."""

    index: int
    shifts: list[Shift] = field(default_factory=list)


def clamp_index(index: Optional[int], count: int) -> int:
    """Clamp ``index`` into ``[0, count]``; ``None`` means append."""
    if index is None:
        return count
    return max(0, min(index, count))


def compute_insertion(
    siblings: Iterable[Sibling], desired_index: Optional[int] = None
) -> Placement:
    """Open a slot at ``desired_index`` among ``siblings``.

    ``siblings`` must exclude the entity being placed.
    """
    siblings = list(siblings)
    index = clamp_index(desired_index, len(siblings))
    shifts = [Shift(s.id, 1) for s in siblings if s.position >= index]
    return Placement(index=index, shifts=shifts)


def compute_removal(siblings: Iterable[Sibling], removed_position: int) -> list[Shift]:
    """Close the gap left at ``removed_position``."""
    return [Shift(s.id, -1) for s in siblings if s.position > removed_position]


def compute_within_parent_move(
    siblings: Iterable[Sibling], old_index: int, new_index: Optional[int]
) -> Placement:
    """Move an entity from ``old_index`` to ``new_index`` inside its parent.

    ``siblings`` excludes the moved entity, so the largest valid index is
    ``len(siblings)``. A ``None`` target keeps the entity where it is. When
    the clamped target equals ``old_index`` the shift set is empty.
    """
    siblings = list(siblings)
    if new_index is None:
        return Placement(index=old_index)

    target = clamp_index(new_index, len(siblings))
    if target == old_index:
        return Placement(index=target)

    if old_index < target:
        shifts = [
            Shift(s.id, -1) for s in siblings if old_index < s.position <= target
        ]
    else:
        shifts = [
            Shift(s.id, 1) for s in siblings if target <= s.position < old_index
        ]
    return Placement(index=target, shifts=shifts)
