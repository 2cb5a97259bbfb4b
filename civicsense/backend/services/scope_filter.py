from __future__ import annotations

import logging
from typing import Iterable

from auth import AdminPrincipal, CitizenPrincipal, DepartmentPrincipal, MandalAdminPrincipal, Principal
from services.repositories import Report, TimeWindow

logger = logging.getLogger(__name__)


def in_scope(principal: Principal, report: Report) -> bool:
    if isinstance(principal, AdminPrincipal):
        return True
    if isinstance(principal, DepartmentPrincipal):
        return report.department == principal.department
    if isinstance(principal, MandalAdminPrincipal):
        return report.mandal_area == principal.mandal_area
    if isinstance(principal, CitizenPrincipal):
        return report.reported_by is not None and report.reported_by == principal.id
    return False


def filter_reports(
    principal: Principal,
    reports: Iterable[Report],
    window: TimeWindow | None = None,
) -> tuple[Report, ...]:
    """
    Reports the principal may view, optionally restricted to a creation window.

    Anything that is not one of the four principal variants sees nothing.
    """
    if not isinstance(principal, (AdminPrincipal, DepartmentPrincipal, MandalAdminPrincipal, CitizenPrincipal)):
        logger.warning("Unrecognised principal %r; returning empty scope", type(principal).__name__)
        return ()
    return tuple(
        r for r in reports if in_scope(principal, r) and (window is None or window.contains(r.created_at))
    )
