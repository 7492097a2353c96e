import asyncio

import pytest
from sqlalchemy.future import select

from app.core.database import db_manager
from app.core.exceptions import QuotaExceededError, ValidationError
from app.core.uow import atomic
from app.models.daily_limit_model import DailyLimit
from app.modules.quota.service import daily_limit_service
from tests.factories import set_today_limit


@pytest.mark.asyncio
async def test_status_without_row_fails_closed(db_session):
    status = await daily_limit_service.get_status(db_session)

    assert status.max_uploads == 0
    assert status.current_uploads == 0
    assert status.remaining == 0


@pytest.mark.asyncio
async def test_admit_without_configured_cap_is_rejected(db_session):
    with pytest.raises(QuotaExceededError):
        async with atomic(db_session):
            await daily_limit_service.admit_upload(db_session)


@pytest.mark.asyncio
async def test_admit_counts_upload(db_session):
    await set_today_limit(db_session, max_uploads=5, current_uploads=1)

    async with atomic(db_session):
        status = await daily_limit_service.admit_upload(db_session)

    assert status.current_uploads == 2
    assert status.remaining == 3


@pytest.mark.asyncio
async def test_set_remaining_is_relative_to_current_usage(db_session):
    await set_today_limit(db_session, max_uploads=4, current_uploads=3)

    status = await daily_limit_service.set_limit(db_session, remaining=10)

    assert status.max_uploads == 13
    assert status.current_uploads == 3
    assert status.remaining == 10

    # Same edit again lands on the same cap
    status = await daily_limit_service.set_limit(db_session, remaining=10)
    assert status.max_uploads == 13


@pytest.mark.asyncio
async def test_set_absolute_limit_creates_todays_row(db_session):
    status = await daily_limit_service.set_limit(db_session, max_uploads=7)

    assert status.max_uploads == 7
    assert status.date == daily_limit_service.today()
    result = await db_session.execute(select(DailyLimit))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_set_limit_rejects_negative_and_ambiguous_values(db_session):
    with pytest.raises(ValidationError):
        await daily_limit_service.set_limit(db_session, max_uploads=-1)
    with pytest.raises(ValidationError):
        await daily_limit_service.set_limit(db_session, max_uploads=1, remaining=1)
    with pytest.raises(ValidationError):
        await daily_limit_service.set_limit(db_session)


@pytest.mark.asyncio
async def test_concurrent_admissions_never_exceed_cap(db_session):
    await set_today_limit(db_session, max_uploads=2)

    async def attempt():
        async with db_manager.async_session_maker() as session:
            try:
                async with atomic(session):
                    await daily_limit_service.admit_upload(session)
                return "ok"
            except QuotaExceededError:
                return "rejected"

    results = await asyncio.gather(attempt(), attempt(), attempt())

    assert results.count("ok") == 2
    assert results.count("rejected") == 1
    status = await daily_limit_service.get_status(db_session)
    assert status.current_uploads == 2
