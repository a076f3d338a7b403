"""Position and lifecycle consistency engine."""

from .ordering import (
    Sibling,
    Shift,
    Placement,
    clamp_index,
    compute_insertion,
    compute_removal,
    compute_within_parent_move,
)
from .lifecycle import (
    LifecycleChange,
    LifecycleState,
    TRANSITIONS,
    infer_role,
    transition_for,
)
from .orchestrator import EntitySnapshot, ParentSnapshot, WriteBatch, plan_move

__all__ = [
    "Sibling",
    "Shift",
    "Placement",
    "clamp_index",
    "compute_insertion",
    "compute_removal",
    "compute_within_parent_move",
    "LifecycleChange",
    "LifecycleState",
    "TRANSITIONS",
    "infer_role",
    "transition_for",
    "EntitySnapshot",
    "ParentSnapshot",
    "WriteBatch",
    "plan_move",
]
