"""스테이션 커버리지 라우터 — Station coverage API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.api.deps import Identity, get_identity
from schedulehub.database import get_db
from schedulehub.schemas.coverage import CoverageReport
from schedulehub.services.coverage_service import coverage_service

router: APIRouter = APIRouter()


@router.get("/stations", response_model=CoverageReport)
async def get_station_coverage(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    date: Annotated[str | None, Query()] = None,
) -> dict:
    """날짜별 스테이션 커버리지 보고서.

    Station coverage report for ``date`` ("YYYY-MM-DD", today when omitted).
    """
    return await coverage_service.get_station_coverage_stats(db, identity.organization_id, date)
