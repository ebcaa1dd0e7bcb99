"""Saving and restoring the descriptor store between restarts."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartattend.db import models
from smartattend.face import DescriptorStore

logger = logging.getLogger(__name__)


class DescriptorArchive:
    """Keeps a durable copy of a store's enrollment set."""

    async def save(self, store: DescriptorStore) -> int:
        """Replace the archived samples with the store's current contents."""

        raise NotImplementedError

    async def restore(self, store: DescriptorStore) -> int:
        """Enroll archived samples into ``store`` and return how many were added."""

        raise NotImplementedError


class SqlDescriptorArchive(DescriptorArchive):
    """Archive backed by the ``face_samples`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    async def save(self, store: DescriptorStore) -> int:
        # The snapshot is taken under the lock so the last commit holds the newest state.
        async with self._lock:
            snapshot = store.snapshot()
            rows = [
                models.FaceSample(
                    student_id=student_id,
                    dimension=sample.shape[0],
                    vector=sample.tolist(),
                )
                for student_id, samples in snapshot
                for sample in samples
            ]
            async with self._session_factory() as session:
                await session.execute(delete(models.FaceSample))
                session.add_all(rows)
                await session.commit()

        logger.info("Saved %d face samples for %d students", len(rows), len(snapshot))
        return len(rows)

    async def restore(self, store: DescriptorStore) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(models.FaceSample).order_by(models.FaceSample.id))
            rows = list(result.scalars().all())

        restored = 0
        for row in rows:
            if len(row.vector) != row.dimension:
                logger.warning("Skipping corrupt face sample %d for student %s", row.id, row.student_id)
                continue
            store.enroll(row.student_id, row.vector)
            restored += 1

        logger.info("Restored %d face samples", restored)
        return restored
