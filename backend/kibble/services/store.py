"""Ordered collection store: sibling snapshots and write-batch application."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.ordering import Shift, Sibling
from ..engine.orchestrator import WriteBatch

logger = logging.getLogger(__name__)


class OrderedStore:
    """Reads and writes ``position`` for one model under one parent key.

    Only non-archived rows count as siblings when the model has an
    ``archived`` column.
    """

    def __init__(self, db: AsyncSession, model, parent_attr: str):
        self.db = db
        self.model = model
        self.parent_attr = parent_attr

    @property
    def _parent_column(self):
        return getattr(self.model, self.parent_attr)

    async def siblings(
        self, parent_id: Any, exclude_id: Optional[int] = None
    ) -> list[Sibling]:
        """Lock and return the non-archived siblings under ``parent_id``."""
        query = select(self.model.id, self.model.position).where(
            self._parent_column == parent_id
        )
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        if hasattr(self.model, "archived"):
            query = query.where(self.model.archived == False)

        query = query.order_by(self.model.position).with_for_update()
        result = await self.db.execute(query)
        return [Sibling(id=row.id, position=row.position) for row in result.all()]

    async def apply_shifts(self, shifts: Iterable[Shift]) -> None:
        """Apply shifts as one ranged update per distinct delta."""
        by_delta: dict[int, list[int]] = defaultdict(list)
        for shift in shifts:
            by_delta[shift.delta].append(shift.id)

        for delta, ids in by_delta.items():
            await self.db.execute(
                update(self.model)
                .where(self.model.id.in_(ids))
                .values(position=self.model.position + delta)
            )

    async def apply(self, entity, batch: WriteBatch) -> None:
        """Write every part of ``batch``; the caller's transaction commits it."""
        if batch.is_empty:
            return

        await self.apply_shifts(batch.source_shifts)
        await self.apply_shifts(batch.destination_shifts)

        if batch.parent_id is not None:
            setattr(entity, self.parent_attr, batch.parent_id)
        if batch.position is not None:
            entity.position = batch.position
        for name, value in batch.changes.items():
            setattr(entity, name, value)
        entity.updated_at = datetime.utcnow()

        await self.db.flush()
