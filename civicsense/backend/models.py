from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Closed enumerations shared by intake, scoping and aggregation.
STATUSES = ("submitted", "in_progress", "resolved", "closed")
PRIORITIES = ("low", "medium", "high", "urgent")
CATEGORIES = (
    "Infrastructure",
    "Water",
    "Roads",
    "Sanitation",
    "Traffic",
    "Parks",
    "Health",
    "Education",
    "Other",
)
DEPARTMENTS = (
    "Public Works",
    "Water Department",
    "Sanitation Department",
    "Traffic Department",
    "Parks & Recreation",
    "Health Department",
    "Education Department",
    "Administration",
)
MANDAL_AREAS = ("Central Zone", "North Zone", "South Zone", "East Zone", "West Zone", "All Zones")
ROLES = ("admin", "department", "mandal-admin", "citizen")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Base(DeclarativeBase):
    pass


class ReportRecord(Base):
    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    report_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium", index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="submitted", index=True)

    department: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    mandal_area: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    reported_by: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    assigned_to: Mapped[str | None] = mapped_column(String(128), nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)

    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)  # admin/department/mandal-admin/citizen
    department: Mapped[str | None] = mapped_column(String(128), nullable=True)
    mandal_area: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ReportCounter(Base):
    """
    Monotonic per-department sequence backing report codes (<DEPT>-<YEAR>-<seq>).
    """

    __tablename__ = "report_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("key", name="uq_report_counter_key"),)
