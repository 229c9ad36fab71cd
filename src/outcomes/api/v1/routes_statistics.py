from __future__ import annotations

from fastapi import APIRouter, Depends

from src.outcomes.domain.models.statistics import CaseStatistics
from src.outcomes.security import get_api_key
from src.outcomes.services.statistics.service import statistics_service

router = APIRouter(
    prefix="/statistics",
    tags=["statistics"],
    dependencies=[Depends(get_api_key)],
)


@router.get("/case/{case_id}", response_model=CaseStatistics)
async def get_case_statistics(case_id: str) -> CaseStatistics:
    return statistics_service.get_case_statistics(case_id)
