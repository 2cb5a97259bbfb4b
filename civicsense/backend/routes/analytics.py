from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from auth import Principal, get_current_principal, require_role
from config import settings
from services.analytics_service import AnalyticsService
from services.repositories import ReportRepository, UserRepository, get_report_repository, get_user_repository

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

PeriodQuery = Annotated[int, Query(description="Window length in days, counted back from now")]


def get_analytics_service(
    reports: Annotated[ReportRepository, Depends(get_report_repository)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> AnalyticsService:
    return AnalyticsService(reports, users)


Service = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("/overview")
def overview(
    principal: Annotated[Principal, Depends(get_current_principal)],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
):
    return svc.overview(principal, period)


@router.get("/departments")
def departments(
    principal: Annotated[Principal, Depends(require_role("admin", "mandal-admin"))],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
):
    return svc.departments(principal, period)


@router.get("/mandal-areas")
def mandal_areas(
    principal: Annotated[Principal, Depends(require_role("admin", "mandal-admin"))],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
):
    return svc.mandal_areas(principal, period)


@router.get("/trends")
def trends(
    principal: Annotated[Principal, Depends(get_current_principal)],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
    group_by: Annotated[str, Query(alias="groupBy")] = "day",
):
    """
    Time-bucketed counts (day/week/month) plus status, priority and category totals.
    Weeks start on Sunday; an unknown groupBy is rejected with 400.
    """
    return svc.trends(principal, period, group_by)


@router.get("/performance")
def performance(
    principal: Annotated[Principal, Depends(get_current_principal)],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
):
    return svc.performance(principal, period)


@router.get("/dashboard")
def dashboard(
    principal: Annotated[Principal, Depends(get_current_principal)],
    svc: Service,
    period: PeriodQuery = settings.default_period_days,
):
    return svc.dashboard(principal, period)
