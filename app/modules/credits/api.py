from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from app.models.user_model import Users
from app.schemas.user_schema import Credits
from app.modules.credits.service import credit_service

router = APIRouter(prefix="/user", tags=["Credits"])


@router.get("/credits", response_model=Credits)
async def get_my_credits(
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await credit_service.get_balance(db, current_user.id)
