from __future__ import annotations

import datetime as dt
import enum
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db import Base

JsonDocument = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Persist the wire values ("check-in", "Pending") rather than member names.
    return Enum(enum_cls, name=name, values_callable=lambda members: [member.value for member in members])


class UserStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"


class LocationEventType(str, enum.Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    LOCATION_CHANGE = "location-change"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class JobPostStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class BranchStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# One PostgreSQL type shared by tasks, agent-branch tasks and tickets.
TASK_PRIORITY_TYPE = _enum_type(TaskPriority, "task_priority")
TASK_STATUS_TYPE = _enum_type(TaskStatus, "task_status")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email_address: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    user_role: Mapped[str] = mapped_column(String(64), nullable=False, default="user", server_default=text("'user'"))
    status: Mapped[UserStatus] = mapped_column(
        _enum_type(UserStatus, "user_status"),
        nullable=False,
        default=UserStatus.PENDING,
    )
    phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    designation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    profile: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)


class AttendanceRecord(TimestampMixin, Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("user_email", "date", name="uq_attendance_records_user_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")
    user_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        _enum_type(AttendanceStatus, "attendance_status"),
        nullable=False,
        default=AttendanceStatus.PRESENT,
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="Office")
    location_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_location_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_outside_office: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    check_out_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    check_out_location_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    check_out_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    work_hours: Mapped[str | None] = mapped_column(String(32), nullable=True)
    auto_check_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_absent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")


class LocationChange(Base):
    __tablename__ = "location_changes"
    __table_args__ = (Index("ix_location_changes_user_day", "user_email", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    location_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_outside_office: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[LocationEventType] = mapped_column(
        _enum_type(LocationEventType, "location_event_type"),
        nullable=False,
    )


class SalesEntry(TimestampMixin, Base):
    __tablename__ = "sales_entries"
    __table_args__ = (UniqueConstraint("user_email", "date", name="uq_sales_entries_user_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    savings_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    savings_account_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    pra_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pra_account_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    current_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_account_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    snd_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    snd_account_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    fdr_term_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fdr_term_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    dps_account_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dps_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    loans: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    qr_onboarding: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    apps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    card_activations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    today_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    today_net_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_accounts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_qr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day_end_hand_cash: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    day_end_mother_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    agent_booth_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Target(TimestampMixin, Base):
    __tablename__ = "targets"
    __table_args__ = (UniqueConstraint("user_email", "month", "year", name="uq_targets_user_month"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    manager_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    manager_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    savings_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    pra_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    current_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    snd_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    fdr_term_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    dps_account_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    deposits_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    loans_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    qr_onboarding_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    apps_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    card_activations_target: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    assignee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assignee: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assignee_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    assigner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assigner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigner_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        TASK_PRIORITY_TYPE,
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status: Mapped[TaskStatus] = mapped_column(
        TASK_STATUS_TYPE,
        nullable=False,
        default=TaskStatus.PENDING,
    )


class AgentBranch(TimestampMixin, Base):
    __tablename__ = "agent_branches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    address: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    agent_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    agent_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    manager_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    status: Mapped[BranchStatus] = mapped_column(
        _enum_type(BranchStatus, "branch_status"),
        nullable=False,
        default=BranchStatus.ACTIVE,
    )

    tasks: Mapped[list[AgentBranchTask]] = relationship(back_populates="branch", cascade="all, delete-orphan")


class AgentBranchTask(TimestampMixin, Base):
    __tablename__ = "agent_branch_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    branch_id: Mapped[int] = mapped_column(
        ForeignKey("agent_branches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    assignee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    assigner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        TASK_PRIORITY_TYPE,
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status: Mapped[TaskStatus] = mapped_column(
        TASK_STATUS_TYPE,
        nullable=False,
        default=TaskStatus.PENDING,
    )

    branch: Mapped[AgentBranch] = relationship(back_populates="tasks")


class TeamMember(TimestampMixin, Base):
    __tablename__ = "team_structure"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    manager_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    manager_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    manager_role: Mapped[str | None] = mapped_column(String(64), nullable=True)


class Leave(TimestampMixin, Base):
    __tablename__ = "leaves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    leave_type: Mapped[str] = mapped_column(String(64), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    status: Mapped[LeaveStatus] = mapped_column(
        _enum_type(LeaveStatus, "leave_status"),
        nullable=False,
        default=LeaveStatus.PENDING,
    )


class JobPost(TimestampMixin, Base):
    __tablename__ = "job_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    custom_fields: Mapped[list[Any]] = mapped_column(JsonDocument, nullable=False, default=list)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    posted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    posted_by_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    posted_by_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[JobPostStatus] = mapped_column(
        _enum_type(JobPostStatus, "job_post_status"),
        nullable=False,
        default=JobPostStatus.ACTIVE,
    )
    applications: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    application_rows: Mapped[list[JobApplication]] = relationship(back_populates="job_post")


class JobApplication(Base):
    __tablename__ = "job_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_post_id: Mapped[int] = mapped_column(ForeignKey("job_posts.id"), nullable=False, index=True)
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ApplicationStatus] = mapped_column(
        _enum_type(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    personal_info: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)
    educational_background: Mapped[list[Any]] = mapped_column(JsonDocument, nullable=False, default=list)
    employment_history: Mapped[list[Any]] = mapped_column(JsonDocument, nullable=False, default=list)
    skills_and_certifications: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)
    references: Mapped[list[Any]] = mapped_column(JsonDocument, nullable=False, default=list)
    additional_info: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False, default=dict)
    contact_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )

    job_post: Mapped[JobPost] = relationship(back_populates="application_rows")


class Notice(TimestampMixin, Base):
    __tablename__ = "notices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    posted_by_email: Mapped[str] = mapped_column(String(255), nullable=False)
    posted_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    audience_role: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_on: Mapped[date | None] = mapped_column(Date, nullable=True)


class Ticket(TimestampMixin, Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    raised_by_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    raised_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="general")
    priority: Mapped[TaskPriority] = mapped_column(
        TASK_PRIORITY_TYPE,
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status: Mapped[TicketStatus] = mapped_column(
        _enum_type(TicketStatus, "ticket_status"),
        nullable=False,
        default=TicketStatus.OPEN,
    )
    assignee_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
