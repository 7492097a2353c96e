from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_admin
from app.schemas.daily_limit_schema import DailyLimitStatus, DailyLimitUpdate, DailyLimitUpdateResponse
from app.modules.quota.service import daily_limit_service

router = APIRouter(tags=["Daily Limit"])

admin_router = APIRouter(
    prefix="/admin",
    tags=["Daily Limit"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/daily-limit", response_model=DailyLimitStatus)
async def get_daily_limit(db: AsyncSession = Depends(get_db)):
    """Public: the pricing page greys out purchases once today's quota is gone."""
    return await daily_limit_service.get_status(db)


@admin_router.put("/daily-limit", response_model=DailyLimitUpdateResponse)
async def set_daily_limit(
    payload: DailyLimitUpdate,
    db: AsyncSession = Depends(get_db),
):
    status = await daily_limit_service.set_limit(
        db,
        max_uploads=payload.max_uploads,
        remaining=payload.remaining,
    )
    return DailyLimitUpdateResponse(
        message=f"Daily limit set to {status.max_uploads}",
        **status.model_dump(),
    )
