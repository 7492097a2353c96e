import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.future import select

from app.core.config import settings
from app.models.order_model import Order, OrderStatus
from app.tasks.cleanup_tasks import cleanup_old_orders, cleanup_old_orders_async
from tests.factories import create_order, create_user, in_session, run

NOW = datetime(2026, 3, 1, 12, 0, 0)


def touch(upload_dir, name):
    path = os.path.join(upload_dir, name)
    with open(path, "wb") as f:
        f.write(b"data")
    return path


@pytest.mark.asyncio
async def test_cleanup_deletes_only_expired_orders_and_files(db_session, upload_dir):
    user = await create_user(db_session)
    old_doc = touch(upload_dir, f"{user.id}_100_old.docx")
    old_report1 = touch(upload_dir, "report1_100_ai.pdf")
    old_report2 = touch(upload_dir, "report1_100_sim.pdf")
    new_doc = touch(upload_dir, f"{user.id}_200_new.docx")

    old = await create_order(
        db_session, user.id, local_file_path=old_doc, status=OrderStatus.COMPLETED,
        report1_path="report1_100_ai.pdf", report2_path="report1_100_sim.pdf",
        ai_score=10.0, sim_score=5.0, created_at=NOW - timedelta(hours=25),
    )
    await create_order(db_session, user.id, local_file_path=new_doc, created_at=NOW - timedelta(hours=1))
    old_id = old.id

    removed = await cleanup_old_orders_async(db_session, hours_to_keep=24, now=NOW)

    assert removed == 1
    remaining = (await db_session.execute(select(Order.id))).scalars().all()
    assert old_id not in remaining
    assert len(remaining) == 1
    for path in (old_doc, old_report1, old_report2):
        assert not os.path.exists(path)
    assert os.path.exists(new_doc)


@pytest.mark.asyncio
async def test_cleanup_keeps_files_when_commit_fails(db_session, upload_dir, monkeypatch):
    user = await create_user(db_session)
    doc = touch(upload_dir, f"{user.id}_100_kept.docx")
    await create_order(db_session, user.id, local_file_path=doc, created_at=NOW - timedelta(days=2))

    monkeypatch.setattr(db_session, "commit", AsyncMock(side_effect=RuntimeError("database is locked")))
    with pytest.raises(RuntimeError):
        await cleanup_old_orders_async(db_session, hours_to_keep=24, now=NOW)
    monkeypatch.undo()

    assert os.path.exists(doc)
    remaining = (await db_session.execute(select(Order.local_file_path))).scalars().all()
    assert remaining == [doc]


@pytest.mark.asyncio
async def test_cleanup_with_nothing_to_delete(db_session):
    user = await create_user(db_session)
    await create_order(db_session, user.id, created_at=NOW)

    assert await cleanup_old_orders_async(db_session, hours_to_keep=24, now=NOW) == 0


@pytest.mark.asyncio
async def test_cleanup_tolerates_missing_files(db_session, upload_dir):
    user = await create_user(db_session)
    await create_order(
        db_session, user.id, local_file_path=os.path.join(upload_dir, "1_1_gone.docx"),
        created_at=NOW - timedelta(days=3),
    )

    assert await cleanup_old_orders_async(db_session, hours_to_keep=24, now=NOW) == 1


def test_periodic_task_commits_its_own_session(fresh_db, monkeypatch, upload_dir):
    async def seed(db):
        user = await create_user(db)
        await create_order(db, user.id, created_at=datetime.utcnow() - timedelta(hours=48))
        await create_order(db, user.id, created_at=datetime.utcnow())

    async def count(db):
        return len((await db.execute(select(Order.id))).scalars().all())

    run(in_session(seed))
    monkeypatch.setattr(settings, "ORDER_RETENTION_HOURS", 24)

    assert cleanup_old_orders() == 1
    assert run(in_session(count)) == 1
