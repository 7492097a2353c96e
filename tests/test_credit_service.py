import pytest

from app.core.exceptions import InsufficientCreditsError, ValidationError
from app.core.uow import atomic
from app.modules.credits.service import credit_service
from tests.factories import create_user


@pytest.mark.asyncio
async def test_balance_without_row_is_zero(db_session):
    user = await create_user(db_session)

    balance = await credit_service.get_balance(db_session, user.id)

    assert balance.slots_remaining == 0
    assert balance.total_purchased == 0


@pytest.mark.asyncio
async def test_reserve_last_slot_then_reject(db_session):
    user = await create_user(db_session, slots=1)
    # The rejected reservation rolls back and expires the loaded user
    user_id = user.id

    async with atomic(db_session):
        remaining = await credit_service.reserve_slot(db_session, user_id)
    assert remaining == 0

    with pytest.raises(InsufficientCreditsError):
        async with atomic(db_session):
            await credit_service.reserve_slot(db_session, user_id)

    balance = await credit_service.get_balance(db_session, user_id)
    assert balance.slots_remaining == 0
    assert balance.total_purchased == 1


@pytest.mark.asyncio
async def test_grant_creates_row_and_accumulates(db_session):
    user = await create_user(db_session)

    async with atomic(db_session):
        await credit_service.grant_slots(db_session, user.id, 3)
    async with atomic(db_session):
        balance = await credit_service.grant_slots(db_session, user.id, 5)

    assert balance.slots_remaining == 8
    assert balance.total_purchased == 8


@pytest.mark.asyncio
async def test_grant_rejects_non_positive_counts(db_session):
    user = await create_user(db_session)

    with pytest.raises(ValidationError):
        await credit_service.grant_slots(db_session, user.id, 0)
