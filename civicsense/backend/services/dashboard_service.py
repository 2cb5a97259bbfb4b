from __future__ import annotations

import datetime as dt
from collections import defaultdict
from typing import Sequence

from auth import DepartmentPrincipal, MandalAdminPrincipal, Principal
from services.repositories import Report, as_utc

ATTENTION_PRIORITIES = ("high", "urgent")
EFFICIENCY_FLOOR = 60
EFFICIENCY_CEILING = 100
# Weighting of resolution rate vs. (1 - backlog ratio) in the efficiency score.
RESOLUTION_WEIGHT = 0.8
BACKLOG_WEIGHT = 0.2

ROLE_LABELS = {
    "admin": "City Administrator",
    "mandal-admin": "Mandal Administrator",
    "department": "Department Head",
}


def classify_issue(report: Report) -> str | None:
    """
    Summary bucket for one report. Precedence is fixed:
    1. submitted, or high/urgent priority -> requireAttention (checked first)
    2. in_progress                        -> beingWorkedOn
    3. resolved                           -> successfullyCompleted
    Anything else (e.g. closed) is left out of the summary.
    """
    if report.status == "submitted" or report.priority in ATTENTION_PRIORITIES:
        return "requireAttention"
    if report.status == "in_progress":
        return "beingWorkedOn"
    if report.status == "resolved":
        return "successfullyCompleted"
    return None


def issue_summary(reports: Sequence[Report]) -> dict[str, int]:
    summary = {"requireAttention": 0, "beingWorkedOn": 0, "successfullyCompleted": 0}
    for r in reports:
        bucket = classify_issue(r)
        if bucket:
            summary[bucket] += 1
    return summary


def efficiency_score(total: int, resolved: int, open_issues: int) -> int:
    if total <= 0:
        return EFFICIENCY_FLOOR
    resolution_pct = resolved / total * 100
    clear_pct = (1 - open_issues / total) * 100
    score = round(RESOLUTION_WEIGHT * resolution_pct + BACKLOG_WEIGHT * clear_pct)
    return max(EFFICIENCY_FLOOR, min(EFFICIENCY_CEILING, score))


def department_performance(reports: Sequence[Report]) -> list[dict]:
    by_dept: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for r in reports:
        stats = by_dept[r.department]
        stats["total"] += 1
        stats[r.status] += 1

    out = []
    for name in sorted(by_dept):
        stats = by_dept[name]
        open_issues = stats["submitted"] + stats["in_progress"]
        out.append(
            {
                "name": name,
                "totalIssues": stats["total"],
                "resolvedIssues": stats["resolved"],
                "openIssues": open_issues,
                "efficiency": efficiency_score(stats["total"], stats["resolved"], open_issues),
            }
        )
    return out


def time_ago(ts: dt.datetime, now: dt.datetime) -> str:
    hours = int((as_utc(now) - as_utc(ts)).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours} hours ago"
    days = hours // 24
    if days < 7:
        return f"{days} days ago"
    return f"{days // 7} weeks ago"


def recent_activity(reports: Sequence[Report], now: dt.datetime, limit: int = 4) -> list[dict]:
    newest = sorted(reports, key=lambda r: (as_utc(r.created_at), r.id), reverse=True)[: max(0, limit)]
    return [
        {
            "id": f"activity-{r.report_code}",
            "description": f"New {r.category.lower()} issue reported in {r.department}",
            "timestamp": time_ago(r.created_at, now),
            "type": "issue",
        }
        for r in newest
    ]


def user_info(principal: Principal) -> dict:
    department = principal.department if isinstance(principal, DepartmentPrincipal) else None
    info = {
        "name": principal.name,
        "role": ROLE_LABELS.get(principal.role, "User"),
        "department": department or "Administration",
    }
    if isinstance(principal, MandalAdminPrincipal):
        info["mandalArea"] = principal.mandal_area
    return info


def compose_dashboard(
    principal: Principal,
    reports: Sequence[Report],
    now: dt.datetime,
    *,
    activity_limit: int = 4,
) -> dict:
    return {
        "issueSummary": issue_summary(reports),
        "departmentPerformance": department_performance(reports),
        "recentActivity": recent_activity(reports, now, activity_limit),
        "userInfo": user_info(principal),
    }
