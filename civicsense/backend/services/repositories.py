"""
Read-side access to reports and user accounts.

Aggregation code is written once against ReportRepository/UserRepository; the SQL
implementations back the running service, the in-memory ones back tests and demos.
Every read returns an immutable snapshot so all views of one request agree.
"""
from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from database import get_db
from errors import TransientSourceError
from models import ReportCounter, ReportRecord, UserRecord

logger = logging.getLogger(__name__)

UTC = dt.timezone.utc


def as_utc(ts: dt.datetime) -> dt.datetime:
    # SQLite drops tzinfo; every stored timestamp is UTC.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


@dataclass(frozen=True)
class Report:
    id: str
    report_code: str
    title: str
    category: str
    priority: str
    status: str
    department: str
    mandal_area: str
    created_at: dt.datetime
    updated_at: dt.datetime
    description: str = ""
    reported_by: str | None = None
    assigned_to: str | None = None
    resolution_notes: str | None = None


@dataclass(frozen=True)
class TimeWindow:
    """Half-open creation-time interval [start, end)."""

    start: dt.datetime
    end: dt.datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))

    def contains(self, ts: dt.datetime) -> bool:
        return self.start <= as_utc(ts) < self.end

    @classmethod
    def last_days(cls, days: int, now: dt.datetime | None = None) -> "TimeWindow":
        """Analytics window [now - days, now]; the end is widened by 1µs so `now` itself is included."""
        now = as_utc(now) if now else dt.datetime.now(UTC)
        return cls(start=now - dt.timedelta(days=days), end=now + dt.timedelta(microseconds=1))


@dataclass(frozen=True)
class UserAccount:
    id: str
    full_name: str
    email: str
    role: str
    department: str | None = None
    mandal_area: str | None = None
    is_active: bool = True
    password_hash: str = ""


class ReportRepository(Protocol):
    def find_all(self) -> tuple[Report, ...]:
        ...

    def find_by_window(self, window: TimeWindow) -> tuple[Report, ...]:
        ...


class UserRepository(Protocol):
    def get(self, user_id: str) -> UserAccount | None:
        ...

    def find_by_email(self, email: str) -> UserAccount | None:
        ...

    def statistics(self) -> dict:
        ...


def _sorted(reports: Iterable[Report]) -> tuple[Report, ...]:
    return tuple(sorted(reports, key=lambda r: (r.created_at, r.id)))


class InMemoryReportRepository:
    def __init__(self, reports: Iterable[Report] = ()) -> None:
        self._reports = _sorted(reports)

    def find_all(self) -> tuple[Report, ...]:
        return self._reports

    def find_by_window(self, window: TimeWindow) -> tuple[Report, ...]:
        return tuple(r for r in self._reports if window.contains(r.created_at))


class InMemoryUserRepository:
    def __init__(self, users: Iterable[UserAccount] = ()) -> None:
        self._users = {u.id: u for u in users}

    def get(self, user_id: str) -> UserAccount | None:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> UserAccount | None:
        needle = (email or "").strip().lower()
        return next((u for u in self._users.values() if u.email.lower() == needle), None)

    def statistics(self) -> dict:
        return {
            "total_users": len(self._users),
            "active_users": sum(1 for u in self._users.values() if u.is_active),
        }


def _to_report(row: ReportRecord) -> Report:
    return Report(
        id=row.id,
        report_code=row.report_code,
        title=row.title,
        description=row.description or "",
        category=row.category,
        priority=row.priority,
        status=row.status,
        department=row.department,
        mandal_area=row.mandal_area,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        reported_by=row.reported_by,
        assigned_to=row.assigned_to,
        resolution_notes=row.resolution_notes,
    )


def _to_account(row: UserRecord) -> UserAccount:
    return UserAccount(
        id=row.id,
        full_name=row.full_name,
        email=row.email,
        role=row.role,
        department=row.department,
        mandal_area=row.mandal_area,
        is_active=bool(row.is_active),
        password_hash=row.password_hash,
    )


class SqlReportRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _fetch(self, stmt) -> tuple[Report, ...]:
        try:
            rows = self.db.execute(stmt).scalars().all()
        except (OperationalError, PoolTimeoutError) as e:
            logger.exception("Report source read failed: %s", type(e).__name__)
            raise TransientSourceError() from e
        return tuple(_to_report(r) for r in rows)

    def find_all(self) -> tuple[Report, ...]:
        return self._fetch(select(ReportRecord).order_by(ReportRecord.created_at, ReportRecord.id))

    def find_by_window(self, window: TimeWindow) -> tuple[Report, ...]:
        stmt = (
            select(ReportRecord)
            .where(ReportRecord.created_at >= window.start, ReportRecord.created_at < window.end)
            .order_by(ReportRecord.created_at, ReportRecord.id)
        )
        return self._fetch(stmt)


class SqlUserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: str) -> UserAccount | None:
        row = self.db.get(UserRecord, user_id)
        return _to_account(row) if row else None

    def find_by_email(self, email: str) -> UserAccount | None:
        row = self.db.execute(
            select(UserRecord).where(func.lower(UserRecord.email) == (email or "").strip().lower())
        ).scalar_one_or_none()
        return _to_account(row) if row else None

    def statistics(self) -> dict:
        total = int(self.db.execute(select(func.count()).select_from(UserRecord)).scalar_one() or 0)
        active = int(
            self.db.execute(select(func.count()).select_from(UserRecord).where(UserRecord.is_active.is_(True))).scalar_one()
            or 0
        )
        return {"total_users": total, "active_users": active}


def get_report_repository(db: Session = Depends(get_db)) -> ReportRepository:
    return SqlReportRepository(db)


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return SqlUserRepository(db)


# Report codes: <DEPTCODE>-<YEAR>-<sequence>


def department_code(department: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", (department or "").upper())[:4] or "GEN"


def format_report_code(code: str, year: int, seq: int) -> str:
    return f"{code}-{year}-{seq:06d}"


def next_report_code(db: Session, department: str, year: int) -> str:
    """Allocates the next code from the department's counter row (caller commits)."""
    code = department_code(department)
    key = f"report-{code}"
    counter = db.execute(select(ReportCounter).where(ReportCounter.key == key)).scalar_one_or_none()
    if counter is None:
        counter = ReportCounter(key=key, seq=0)
        db.add(counter)
    counter.seq = int(counter.seq or 0) + 1
    db.flush()
    return format_report_code(code, year, counter.seq)
