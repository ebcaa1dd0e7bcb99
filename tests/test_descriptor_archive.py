"""Tests for saving and restoring enrolled descriptors."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartattend.db import models
from smartattend.db.session import build_engine, build_session_factory, init_db
from smartattend.face import DescriptorStore, EuclideanMatcher, MatchResult
from smartattend.services import SqlDescriptorArchive


@asynccontextmanager
async def _database(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'faces.db'}")
    await init_db(engine)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_restored_store_matches_like_the_saved_one(tmp_path: Path) -> None:
    store = DescriptorStore()
    store.enroll("CSE002", [0.5, 0.25, 0.125])
    store.enroll("CSE001", [0.0, 0.0, 0.0])
    store.enroll("CSE002", [1.0, 1.0, 1.0])

    async with _database(tmp_path) as factory:
        assert await SqlDescriptorArchive(factory).save(store) == 3

        restored = DescriptorStore()
        assert await SqlDescriptorArchive(factory).restore(restored) == 3

    assert [sid for sid, _ in restored.snapshot()] == ["CSE002", "CSE001"]
    assert [s.tolist() for s in restored.samples_for("CSE002")] == [[0.5, 0.25, 0.125], [1.0, 1.0, 1.0]]
    assert EuclideanMatcher(restored).match([0.0, 0.0, 0.0]) == MatchResult("CSE001", 1.0)


@pytest.mark.asyncio
async def test_save_replaces_previous_contents(tmp_path: Path) -> None:
    store = DescriptorStore()
    store.enroll("CSE001", [0.0, 0.0])
    store.enroll("CSE002", [1.0, 1.0])

    async with _database(tmp_path) as factory:
        archive = SqlDescriptorArchive(factory)
        await archive.save(store)
        store.clear("CSE001")
        await archive.save(store)

        restored = DescriptorStore()
        await archive.restore(restored)

    assert restored.all_student_ids() == {"CSE002"}
    assert restored.total_sample_count() == 1


@pytest.mark.asyncio
async def test_restore_skips_rows_with_wrong_length(tmp_path: Path) -> None:
    async with _database(tmp_path) as factory:
        async with factory() as session:
            session.add_all(
                [
                    models.FaceSample(student_id="CSE001", dimension=2, vector=[0.0, 0.0]),
                    models.FaceSample(student_id="CSE002", dimension=3, vector=[0.0, 0.0]),
                ],
            )
            await session.commit()

        store = DescriptorStore()
        restored = await SqlDescriptorArchive(factory).restore(store)

    assert restored == 1
    assert store.all_student_ids() == {"CSE001"}
