from __future__ import annotations

import datetime as dt
import logging

from auth import Principal
from config import settings
from errors import AuthorizationError, ValidationError
from services.aggregation import count_by, group_statistics, performance_metrics, trend, validate_granularity
from services.dashboard_service import compose_dashboard
from services.repositories import Report, ReportRepository, TimeWindow, UserRepository
from services.scope_filter import filter_reports

logger = logging.getLogger(__name__)

CROSS_SCOPE_ROLES = ("admin", "mandal-admin")


class AnalyticsService:
    """
    Role-scoped analytics over one report snapshot per call.

    Each public method validates its inputs, reads the report source exactly once
    for the requested window, scopes the rows to the principal and derives every
    figure of the response from that single subset. The departments and
    mandal-areas views are role-gated instead and aggregate the whole window.
    """

    def __init__(
        self,
        reports: ReportRepository,
        users: UserRepository | None = None,
        *,
        now: dt.datetime | None = None,
        max_period_days: int | None = None,
        activity_limit: int | None = None,
    ) -> None:
        self.reports = reports
        self.users = users
        self._fixed_now = now
        self.max_period_days = max_period_days or settings.max_period_days
        self.activity_limit = settings.recent_activity_limit if activity_limit is None else activity_limit

    def now(self) -> dt.datetime:
        return self._fixed_now or dt.datetime.now(dt.timezone.utc)

    def validate_period(self, period_days) -> int:
        if isinstance(period_days, bool) or (isinstance(period_days, float) and not period_days.is_integer()):
            raise ValidationError("period must be a positive integer")
        try:
            days = int(period_days)
        except (TypeError, ValueError) as e:
            raise ValidationError("period must be a positive integer") from e
        if days <= 0:
            raise ValidationError("period must be a positive integer")
        if days > self.max_period_days:
            raise ValidationError(f"period must not exceed {self.max_period_days} days")
        return days

    def _window_snapshot(self, period_days: int) -> tuple[Report, ...]:
        return self.reports.find_by_window(TimeWindow.last_days(period_days, self.now()))

    def _scoped_snapshot(self, principal: Principal, period_days: int) -> tuple[Report, ...]:
        window = TimeWindow.last_days(period_days, self.now())
        snapshot = self.reports.find_by_window(window)
        subset = filter_reports(principal, snapshot, window)
        logger.debug(
            "Scoped %d of %d reports for %s %s over %d days",
            len(subset), len(snapshot), principal.role, principal.id, period_days,
        )
        return subset

    @staticmethod
    def _require_cross_scope(principal: Principal) -> None:
        if principal.role not in CROSS_SCOPE_ROLES:
            raise AuthorizationError()

    def overview(self, principal: Principal, period_days: int) -> dict:
        days = self.validate_period(period_days)
        subset = self._scoped_snapshot(principal, days)

        user_stats = None
        if principal.role == "admin" and self.users is not None:
            stats = self.users.statistics()
            user_stats = {"totalUsers": stats["total_users"], "activeUsers": stats["active_users"]}

        return {
            "total": len(subset),
            "reportsByStatus": count_by(subset, "status"),
            "reportsByPriority": count_by(subset, "priority"),
            "reportsByCategory": count_by(subset, "category"),
            "dailyReports": trend(subset, "day"),
            "userStatistics": user_stats,
            "periodDays": days,
        }

    def departments(self, principal: Principal, period_days: int) -> dict:
        self._require_cross_scope(principal)
        days = self.validate_period(period_days)
        subset = self._window_snapshot(days)
        return {
            "departmentStatistics": group_statistics(subset, "department", ("status", "priority")),
            "periodDays": days,
        }

    def mandal_areas(self, principal: Principal, period_days: int) -> dict:
        self._require_cross_scope(principal)
        days = self.validate_period(period_days)
        subset = self._window_snapshot(days)
        return {
            "mandalAreaStatistics": group_statistics(subset, "mandal_area", ("status", "priority", "department")),
            "periodDays": days,
        }

    def trends(self, principal: Principal, period_days: int, group_by: str = "day") -> dict:
        days = self.validate_period(period_days)
        granularity = validate_granularity(group_by)
        subset = self._scoped_snapshot(principal, days)
        return {
            "trends": {
                "byDate": trend(subset, granularity),
                "byStatus": count_by(subset, "status"),
                "byPriority": count_by(subset, "priority"),
                "byCategory": count_by(subset, "category"),
            },
            "periodDays": days,
            "groupBy": granularity,
        }

    def performance(self, principal: Principal, period_days: int) -> dict:
        days = self.validate_period(period_days)
        metrics = performance_metrics(self._scoped_snapshot(principal, days))
        return {
            "totalReports": metrics.total,
            "resolvedReports": metrics.resolved,
            "avgResolutionTimeHours": metrics.avg_resolution_hours,
            "resolutionRate": metrics.resolution_rate,
            "periodDays": days,
        }

    def dashboard(self, principal: Principal, period_days: int) -> dict:
        days = self.validate_period(period_days)
        subset = self._scoped_snapshot(principal, days)
        return compose_dashboard(principal, subset, self.now(), activity_limit=self.activity_limit)
