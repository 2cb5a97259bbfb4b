"""
Shared pytest fixtures for the CivicSense analytics test suite.

Provides report/user factories, the five-report reference scenario and an
in-process httpx AsyncClient whose repositories are per-test in-memory instances.
"""

import sys
import datetime as dt
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

# Ensure the backend modules are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from auth import create_access_token
from services.analytics_service import AnalyticsService
from services.repositories import (
    InMemoryReportRepository,
    InMemoryUserRepository,
    Report,
    UserAccount,
    get_user_repository,
)

UTC = dt.timezone.utc
NOW = dt.datetime(2024, 1, 20, 12, 0, tzinfo=UTC)


def make_report(n: int = 1, **overrides) -> Report:
    created = overrides.pop("created_at", NOW - dt.timedelta(days=1))
    fields = dict(
        id=f"report-{n:03d}",
        report_code=f"PUBW-2024-{n:06d}",
        title=f"Report {n}",
        category="Infrastructure",
        priority="medium",
        status="submitted",
        department="Public Works",
        mandal_area="Central Zone",
        created_at=created,
        updated_at=overrides.pop("updated_at", created),
    )
    fields.update(overrides)
    return Report(**fields)


@pytest.fixture
def scenario_reports():
    """Five reports across four departments, all inside a 30-day window ending at NOW."""
    return [
        make_report(1, report_code="PUBW-2024-000001", title="Broken Street Light", category="Infrastructure",
                    department="Public Works", mandal_area="Central Zone", priority="medium", status="submitted",
                    created_at=dt.datetime(2024, 1, 15, 10, 0, tzinfo=UTC), reported_by="user-005"),
        make_report(2, report_code="WATE-2024-000001", title="Water Leakage", category="Water",
                    department="Water Department", mandal_area="North Zone", priority="high", status="in_progress",
                    created_at=dt.datetime(2024, 1, 14, 9, 0, tzinfo=UTC),
                    updated_at=dt.datetime(2024, 1, 16, 14, 30, tzinfo=UTC)),
        make_report(3, report_code="PUBW-2024-000002", title="Pothole on Highway", category="Roads",
                    department="Public Works", mandal_area="South Zone", priority="high", status="resolved",
                    created_at=dt.datetime(2024, 1, 13, 8, 0, tzinfo=UTC),
                    updated_at=dt.datetime(2024, 1, 17, 16, 0, tzinfo=UTC)),
        make_report(4, report_code="SANI-2024-000001", title="Garbage Collection Issue", category="Sanitation",
                    department="Sanitation Department", mandal_area="East Zone", priority="medium",
                    status="submitted", created_at=dt.datetime(2024, 1, 12, 11, 0, tzinfo=UTC)),
        make_report(5, report_code="TRAF-2024-000001", title="Traffic Signal Malfunction", category="Traffic",
                    department="Traffic Department", mandal_area="West Zone", priority="urgent",
                    status="in_progress", created_at=dt.datetime(2024, 1, 11, 15, 30, tzinfo=UTC),
                    updated_at=dt.datetime(2024, 1, 13, 9, 15, tzinfo=UTC)),
    ]


@pytest.fixture
def users():
    return [
        UserAccount(id="admin-001", full_name="Rajesh Kumar", email="admin@civicsense.com", role="admin",
                    department="Administration", mandal_area="All Zones"),
        UserAccount(id="dept-001", full_name="Priya Sharma", email="priya@civicsense.com", role="department",
                    department="Public Works", mandal_area="North Zone"),
        UserAccount(id="mandal-001", full_name="Sunita Reddy", email="mandal@civicsense.com", role="mandal-admin",
                    department="Administration", mandal_area="North Zone"),
        UserAccount(id="user-005", full_name="Vikram Rao", email="citizen@civicsense.com", role="citizen",
                    mandal_area="Central Zone"),
        UserAccount(id="auditor-001", full_name="Odd Role", email="auditor@civicsense.com", role="auditor"),
        UserAccount(id="inactive-001", full_name="Gone Away", email="gone@civicsense.com", role="admin",
                    is_active=False),
    ]


@pytest.fixture
def report_repo(scenario_reports):
    return InMemoryReportRepository(scenario_reports)


@pytest.fixture
def user_repo(users):
    return InMemoryUserRepository(users)


@pytest.fixture
def service(report_repo, user_repo):
    return AnalyticsService(report_repo, user_repo, now=NOW)


def bearer(user_id: str, role: str = "admin") -> dict:
    return {"Authorization": f"Bearer {create_access_token(sub=user_id, role=role)}"}


@pytest.fixture
def app(report_repo, user_repo):
    from main import create_app
    from routes.analytics import get_analytics_service

    application = create_app()
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_analytics_service] = lambda: AnalyticsService(report_repo, user_repo, now=NOW)
    return application


@pytest_asyncio.fixture
async def client(app):
    """In-process httpx AsyncClient; unhandled errors come back as 500 responses."""
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
