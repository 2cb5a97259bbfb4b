from __future__ import annotations

import datetime as dt
import logging
import uuid
from pathlib import Path

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from auth import hash_password
from errors import ValidationError
from models import CATEGORIES, DEPARTMENTS, MANDAL_AREAS, PRIORITIES, STATUSES, ReportRecord, UserRecord
from services.repositories import Report, as_utc, next_report_code

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("title", "category", "priority", "status", "department", "mandal_area")

# Demo accounts for local runs; passwords match the login page hints.
DEMO_USERS = [
    {"id": "user-001", "full_name": "Rajesh Kumar", "email": "admin@civicsense.com", "password": "admin123",
     "role": "admin", "department": "Administration", "mandal_area": "All Zones"},
    {"id": "user-002", "full_name": "Priya Sharma", "email": "priya@civicsense.com", "password": "public123",
     "role": "department", "department": "Public Works", "mandal_area": "North Zone"},
    {"id": "user-003", "full_name": "Amit Patel", "email": "amit@civicsense.com", "password": "water123",
     "role": "department", "department": "Water Department", "mandal_area": "South Zone"},
    {"id": "user-004", "full_name": "Sunita Reddy", "email": "mandal@civicsense.com", "password": "mandal123",
     "role": "mandal-admin", "department": "Administration", "mandal_area": "Central Zone"},
    {"id": "user-005", "full_name": "Vikram Rao", "email": "citizen@civicsense.com", "password": "citizen123",
     "role": "citizen", "department": None, "mandal_area": "Central Zone"},
]


def _cell(row: dict, key: str) -> str | None:
    v = row.get(key)
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def _timestamp(value: str) -> dt.datetime:
    return as_utc(pd.to_datetime(value, utc=True).to_pydatetime())


def _row_to_report(row: dict, idx: int, now: dt.datetime) -> Report:
    missing = [c for c in REQUIRED_COLUMNS if not _cell(row, c)]
    if missing:
        raise ValidationError(f"Row {idx}: missing {', '.join(missing)}")

    checks = (
        ("category", CATEGORIES),
        ("priority", PRIORITIES),
        ("status", STATUSES),
        ("department", DEPARTMENTS),
        ("mandal_area", MANDAL_AREAS),
    )
    for col, allowed in checks:
        if _cell(row, col) not in allowed:
            raise ValidationError(f"Row {idx}: unknown {col} {_cell(row, col)!r}")

    # Absolute timestamps win; otherwise age_hours/resolution_hours are relative to load time.
    if _cell(row, "created_at"):
        created = _timestamp(_cell(row, "created_at"))
    elif _cell(row, "age_hours"):
        created = as_utc(now) - dt.timedelta(hours=float(_cell(row, "age_hours")))
    else:
        raise ValidationError(f"Row {idx}: created_at or age_hours is required")

    if _cell(row, "updated_at"):
        updated = _timestamp(_cell(row, "updated_at"))
    elif _cell(row, "resolution_hours"):
        updated = created + dt.timedelta(hours=float(_cell(row, "resolution_hours")))
    else:
        updated = created
    if updated < created:
        raise ValidationError(f"Row {idx}: updated_at precedes created_at")

    return Report(
        id=_cell(row, "id") or str(uuid.uuid4()),
        report_code=_cell(row, "report_code") or "",
        title=_cell(row, "title"),
        description=_cell(row, "description") or "",
        category=_cell(row, "category"),
        priority=_cell(row, "priority"),
        status=_cell(row, "status"),
        department=_cell(row, "department"),
        mandal_area=_cell(row, "mandal_area"),
        created_at=created,
        updated_at=updated,
        reported_by=_cell(row, "reported_by"),
        assigned_to=_cell(row, "assigned_to"),
        resolution_notes=_cell(row, "resolution_notes"),
    )


def load_reports_csv(path: str | Path, now: dt.datetime | None = None) -> list[Report]:
    """Parses a reports CSV into Report objects; blank cells become None."""
    now = now or dt.datetime.now(dt.timezone.utc)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    return [_row_to_report(row, i + 1, now) for i, row in enumerate(df.to_dict(orient="records"))]


def seed_users(db: Session) -> int:
    existing = int(db.execute(select(func.count()).select_from(UserRecord)).scalar_one() or 0)
    if existing:
        return 0
    for u in DEMO_USERS:
        db.add(
            UserRecord(
                id=u["id"],
                full_name=u["full_name"],
                email=u["email"],
                password_hash=hash_password(u["password"]),
                role=u["role"],
                department=u["department"],
                mandal_area=u["mandal_area"],
                is_active=True,
            )
        )
    db.flush()
    return len(DEMO_USERS)


def seed_reports(db: Session, reports: list[Report]) -> int:
    existing = int(db.execute(select(func.count()).select_from(ReportRecord)).scalar_one() or 0)
    if existing:
        return 0
    for r in reports:
        code = r.report_code or next_report_code(db, r.department, r.created_at.year)
        db.add(
            ReportRecord(
                id=r.id,
                report_code=code,
                title=r.title,
                description=r.description,
                category=r.category,
                priority=r.priority,
                status=r.status,
                department=r.department,
                mandal_area=r.mandal_area,
                reported_by=r.reported_by,
                assigned_to=r.assigned_to,
                resolution_notes=r.resolution_notes,
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
        )
    db.flush()
    return len(reports)


def seed_database(db: Session, csv_path: str | Path) -> dict:
    users = seed_users(db)
    reports = 0
    if Path(csv_path).exists():
        reports = seed_reports(db, load_reports_csv(csv_path))
    else:
        logger.warning("Sample CSV not found at %s; skipping report seed", csv_path)
    logger.info("Seeded %d users and %d reports", users, reports)
    return {"users": users, "reports": reports}
