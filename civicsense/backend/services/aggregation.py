"""
Pure aggregation over a scoped report snapshot.

All functions read their input only; callers pass the same snapshot to every view
so that the per-dimension counts and trend buckets each sum to len(snapshot).
"""
from __future__ import annotations

import datetime as dt
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable, Sequence

from errors import ValidationError
from services.repositories import Report, as_utc

DIMENSIONS = ("status", "priority", "category", "department", "mandal_area")
GRANULARITIES = ("day", "week", "month")
RESOLVED_STATUSES = ("resolved", "closed")


def count_by(reports: Iterable[Report], dimension: str) -> dict[str, int]:
    """Observed value -> occurrences. Values never seen are absent, not zero."""
    if dimension not in DIMENSIONS:
        raise ValidationError(f"Unknown dimension: {dimension}")
    return dict(Counter(getattr(r, dimension) for r in reports))


def validate_granularity(granularity: str) -> str:
    g = (granularity or "").strip().lower()
    if g not in GRANULARITIES:
        raise ValidationError(f"groupBy must be one of {', '.join(GRANULARITIES)}")
    return g


def bucket_key(ts: dt.datetime, granularity: str) -> str:
    d = as_utc(ts).date()
    if granularity == "day":
        return d.isoformat()
    if granularity == "week":
        # Weeks start on Sunday: weekday() is Monday=0, so Sunday-based offset is (weekday+1) % 7.
        return (d - dt.timedelta(days=(d.weekday() + 1) % 7)).isoformat()
    if granularity == "month":
        return f"{d.year}-{d.month:02d}"
    raise ValidationError(f"groupBy must be one of {', '.join(GRANULARITIES)}")


def trend(reports: Iterable[Report], granularity: str) -> dict[str, int]:
    g = validate_granularity(granularity)
    counts = Counter(bucket_key(r.created_at, g) for r in reports)
    return {k: counts[k] for k in sorted(counts)}


@dataclass(frozen=True)
class PerformanceMetrics:
    total: int
    resolved: int
    resolution_rate: float
    avg_resolution_hours: float


def resolution_hours(report: Report) -> float:
    return (as_utc(report.updated_at) - as_utc(report.created_at)).total_seconds() / 3600.0


def performance_metrics(reports: Sequence[Report]) -> PerformanceMetrics:
    total = len(reports)
    resolved = [r for r in reports if r.status in RESOLVED_STATUSES]
    rate = (len(resolved) / total * 100) if total else 0.0
    avg_hours = (sum(resolution_hours(r) for r in resolved) / len(resolved)) if resolved else 0.0
    return PerformanceMetrics(total=total, resolved=len(resolved), resolution_rate=rate, avg_resolution_hours=avg_hours)


def group_statistics(reports: Iterable[Report], group_by: str, breakdowns: Sequence[str]) -> dict[str, dict]:
    """
    Per-group totals with nested dimensional breakdowns, e.g.
    {"Public Works": {"total": 2, "byStatus": {...}, "byPriority": {...}}}.
    """
    if group_by not in DIMENSIONS:
        raise ValidationError(f"Unknown dimension: {group_by}")
    for b in breakdowns:
        if b not in DIMENSIONS:
            raise ValidationError(f"Unknown dimension: {b}")

    grouped: dict[str, list[Report]] = defaultdict(list)
    for r in reports:
        grouped[getattr(r, group_by)].append(r)

    out: dict[str, dict] = {}
    for name in sorted(grouped):
        members = grouped[name]
        stats: dict = {"total": len(members)}
        for b in breakdowns:
            stats[_breakdown_key(b)] = count_by(members, b)
        out[name] = stats
    return out


def _breakdown_key(dimension: str) -> str:
    return {"status": "byStatus", "priority": "byPriority", "category": "byCategory",
            "department": "byDepartment", "mandal_area": "byMandalArea"}[dimension]
