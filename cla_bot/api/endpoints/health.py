from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.dependencies.database import get_db

router = APIRouter()


@router.get("")
async def health_check(session: AsyncSession = Depends(get_db)):
    """
    Check the health of the API and its database connection.
    """
    await session.execute(text("SELECT 1"))
    return {"status": "ok"}
