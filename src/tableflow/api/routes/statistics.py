from __future__ import annotations

from fastapi import APIRouter, Depends

from tableflow.api.dependencies import order_statistics_use_case
from tableflow.application.dto.responses import OrderStatisticsResponse
from tableflow.application.use_cases.order_statistics import OrderStatistics

router = APIRouter()


@router.get("/v1/manager/statistics", response_model=OrderStatisticsResponse)
def manager_statistics(
    use_case: OrderStatistics = Depends(order_statistics_use_case),
) -> OrderStatisticsResponse:
    return use_case.execute()


@router.get("/v1/kitchen/statistics/today", response_model=OrderStatisticsResponse)
def kitchen_statistics_today(
    use_case: OrderStatistics = Depends(order_statistics_use_case),
) -> OrderStatisticsResponse:
    return use_case.today()
