# This project was developed with assistance from AI tools.
"""Fund catalog lookup."""

from fastapi import APIRouter, Depends, HTTPException, status
from relief_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.fund import FundRecord
from ..services.funds import get_fund

router = APIRouter()


@router.get("/{code}", response_model=FundRecord)
async def read_fund(
    code: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FundRecord:
    fund = await get_fund(session, code)
    if fund is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Fund '{code}' not found")
    return fund
