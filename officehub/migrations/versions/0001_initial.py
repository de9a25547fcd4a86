"""Initial office management schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_status = postgresql.ENUM("pending", "approved", name="user_status", create_type=False)
attendance_status = postgresql.ENUM("present", "absent", name="attendance_status", create_type=False)
location_event_type = postgresql.ENUM(
    "check-in",
    "check-out",
    "location-change",
    name="location_event_type",
    create_type=False,
)
task_priority = postgresql.ENUM("low", "medium", "high", name="task_priority", create_type=False)
task_status = postgresql.ENUM("pending", "completed", name="task_status", create_type=False)
leave_status = postgresql.ENUM("Pending", "Approved", "Rejected", name="leave_status", create_type=False)
job_post_status = postgresql.ENUM("active", "closed", "archived", name="job_post_status", create_type=False)
application_status = postgresql.ENUM(
    "pending",
    "shortlisted",
    "rejected",
    "archived",
    name="application_status",
    create_type=False,
)
ticket_status = postgresql.ENUM(
    "open",
    "in_progress",
    "resolved",
    "closed",
    name="ticket_status",
    create_type=False,
)
branch_status = postgresql.ENUM("active", "inactive", name="branch_status", create_type=False)

ALL_ENUMS = (
    user_status,
    attendance_status,
    location_event_type,
    task_priority,
    task_status,
    leave_status,
    job_post_status,
    application_status,
    ticket_status,
    branch_status,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def _jsonb(name: str, default: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        nullable=False,
        server_default=sa.text(f"'{default}'::jsonb"),
    )


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default=sa.text("0"))


def _amount(name: str) -> sa.Column:
    return sa.Column(name, sa.Float(), nullable=False, server_default=sa.text("0"))


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email_address", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False, server_default=sa.text("''")),
        sa.Column("user_role", sa.String(length=64), nullable=False, server_default=sa.text("'user'")),
        sa.Column("status", user_status, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("phone_number", sa.String(length=64), nullable=True),
        sa.Column("designation", sa.String(length=255), nullable=True),
        _jsonb("profile", "{}"),
        *_timestamps(),
    )
    op.create_index("ix_users_email_address", "users", ["email_address"], unique=True)

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False, server_default=sa.text("'Unknown'")),
        sa.Column("user_role", sa.String(length=64), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", attendance_status, nullable=False, server_default=sa.text("'present'")),
        sa.Column("location", sa.String(length=255), nullable=False, server_default=sa.text("'Office'")),
        sa.Column("location_type", sa.String(length=64), nullable=True),
        sa.Column("last_location", sa.String(length=255), nullable=True),
        sa.Column("last_location_type", sa.String(length=64), nullable=True),
        sa.Column("is_outside_office", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("check_out_location", sa.String(length=255), nullable=True),
        sa.Column("check_out_location_type", sa.String(length=64), nullable=True),
        sa.Column("check_out_notes", sa.Text(), nullable=True),
        sa.Column("work_hours", sa.String(length=32), nullable=True),
        sa.Column("auto_check_out", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("auto_absent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.UniqueConstraint("user_email", "date", name="uq_attendance_records_user_day"),
    )
    op.create_index("ix_attendance_records_user_email", "attendance_records", ["user_email"])
    op.create_index("ix_attendance_records_date", "attendance_records", ["date"])

    op.create_table(
        "location_changes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("location_type", sa.String(length=64), nullable=True),
        sa.Column("is_outside_office", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("type", location_event_type, nullable=False),
    )
    op.create_index("ix_location_changes_user_day", "location_changes", ["user_email", "date"])

    op.create_table(
        "sales_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("user_role", sa.String(length=64), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        _counter("savings_account_opened"),
        _amount("savings_account_deposit"),
        _counter("pra_account_opened"),
        _amount("pra_account_deposit"),
        _counter("current_account_opened"),
        _amount("current_account_deposit"),
        _counter("snd_account_opened"),
        _amount("snd_account_deposit"),
        _counter("fdr_term_account_opened"),
        _amount("fdr_term_deposit"),
        _counter("dps_account_opened"),
        _amount("dps_deposit"),
        _amount("loans"),
        _counter("qr_onboarding"),
        _counter("apps"),
        _counter("card_activations"),
        _amount("today_deposit"),
        _amount("today_net_deposit"),
        _amount("total_deposit"),
        _counter("total_accounts"),
        _counter("total_qr"),
        _amount("day_end_hand_cash"),
        _amount("day_end_mother_balance"),
        sa.Column("agent_booth_name", sa.String(length=255), nullable=False, server_default=sa.text("''")),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.UniqueConstraint("user_email", "date", name="uq_sales_entries_user_day"),
    )
    op.create_index("ix_sales_entries_user_email", "sales_entries", ["user_email"])
    op.create_index("ix_sales_entries_date", "sales_entries", ["date"])

    op.create_table(
        "targets",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("user_role", sa.String(length=64), nullable=True),
        sa.Column("manager_email", sa.String(length=255), nullable=True),
        sa.Column("manager_name", sa.String(length=255), nullable=True),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        _amount("savings_account_target"),
        _amount("pra_account_target"),
        _amount("current_account_target"),
        _amount("snd_account_target"),
        _amount("fdr_term_account_target"),
        _amount("dps_account_target"),
        _amount("deposits_target"),
        _amount("loans_target"),
        _amount("qr_onboarding_target"),
        _amount("apps_target"),
        _amount("card_activations_target"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.UniqueConstraint("user_email", "month", "year", name="uq_targets_user_month"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_targets_month_range"),
    )
    op.create_index("ix_targets_user_email", "targets", ["user_email"])
    op.create_index("ix_targets_manager_email", "targets", ["manager_email"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("assignee_id", sa.String(length=64), nullable=False),
        sa.Column("assignee", sa.String(length=255), nullable=True),
        sa.Column("assignee_role", sa.String(length=64), nullable=True),
        sa.Column("assigner_id", sa.String(length=64), nullable=False),
        sa.Column("assigner", sa.String(length=255), nullable=True),
        sa.Column("assigner_role", sa.String(length=64), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("priority", task_priority, nullable=False, server_default=sa.text("'medium'")),
        sa.Column("status", task_status, nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
    )
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])
    op.create_index("ix_tasks_assigner_id", "tasks", ["assigner_id"])

    op.create_table(
        "agent_branches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("address", sa.String(length=1000), nullable=False, server_default=sa.text("''")),
        sa.Column("agent_name", sa.String(length=255), nullable=True),
        sa.Column("agent_email", sa.String(length=255), nullable=True),
        sa.Column("manager_email", sa.String(length=255), nullable=True),
        sa.Column("status", branch_status, nullable=False, server_default=sa.text("'active'")),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_agent_branches_code"),
    )
    op.create_index("ix_agent_branches_manager_email", "agent_branches", ["manager_email"])

    op.create_table(
        "agent_branch_tasks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("branch_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("assignee_id", sa.String(length=64), nullable=False),
        sa.Column("assigner_id", sa.String(length=64), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("priority", task_priority, nullable=False, server_default=sa.text("'medium'")),
        sa.Column("status", task_status, nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["branch_id"], ["agent_branches.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_agent_branch_tasks_branch_id", "agent_branch_tasks", ["branch_id"])

    op.create_table(
        "team_structure",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("user_role", sa.String(length=64), nullable=True),
        sa.Column("manager_email", sa.String(length=255), nullable=True),
        sa.Column("manager_name", sa.String(length=255), nullable=True),
        sa.Column("manager_role", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_email", name="uq_team_structure_user_email"),
    )
    op.create_index("ix_team_structure_manager_email", "team_structure", ["manager_email"])

    op.create_table(
        "leaves",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("user_role", sa.String(length=64), nullable=True),
        sa.Column("leave_type", sa.String(length=64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(length=1000), nullable=False, server_default=sa.text("''")),
        sa.Column("status", leave_status, nullable=False, server_default=sa.text("'Pending'")),
        *_timestamps(),
        sa.CheckConstraint("end_date >= start_date", name="ck_leaves_date_range"),
    )
    op.create_index("ix_leaves_email", "leaves", ["email"])

    op.create_table(
        "job_posts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _jsonb("custom_fields", "[]"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("posted_by", sa.String(length=255), nullable=True),
        sa.Column("posted_by_email", sa.String(length=255), nullable=False),
        sa.Column("posted_by_role", sa.String(length=64), nullable=True),
        sa.Column("status", job_post_status, nullable=False, server_default=sa.text("'active'")),
        _counter("applications"),
        *_timestamps(),
    )
    op.create_index("ix_job_posts_deadline", "job_posts", ["deadline"])
    op.create_index("ix_job_posts_posted_by_email", "job_posts", ["posted_by_email"])

    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("job_post_id", sa.Integer(), nullable=False),
        sa.Column("job_title", sa.String(length=255), nullable=False),
        sa.Column("status", application_status, nullable=False, server_default=sa.text("'pending'")),
        _jsonb("personal_info", "{}"),
        _jsonb("educational_background", "[]"),
        _jsonb("employment_history", "[]"),
        _jsonb("skills_and_certifications", "{}"),
        _jsonb("references", "[]"),
        _jsonb("additional_info", "{}"),
        sa.Column("contact_number", sa.String(length=64), nullable=True),
        sa.Column(
            "applied_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["job_post_id"], ["job_posts.id"]),
    )
    op.create_index("ix_job_applications_job_post_id", "job_applications", ["job_post_id"])

    op.create_table(
        "notices",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("posted_by_email", sa.String(length=255), nullable=False),
        sa.Column("posted_by_name", sa.String(length=255), nullable=True),
        sa.Column("audience_role", sa.String(length=64), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("expires_on", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notices_audience_role", "notices", ["audience_role"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("raised_by_email", sa.String(length=255), nullable=False),
        sa.Column("raised_by_name", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=False, server_default=sa.text("'general'")),
        sa.Column("priority", task_priority, nullable=False, server_default=sa.text("'medium'")),
        sa.Column("status", ticket_status, nullable=False, server_default=sa.text("'open'")),
        sa.Column("assignee_email", sa.String(length=255), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tickets_raised_by_email", "tickets", ["raised_by_email"])
    op.create_index("ix_tickets_assignee_email", "tickets", ["assignee_email"])


def downgrade() -> None:
    op.drop_index("ix_tickets_assignee_email", table_name="tickets")
    op.drop_index("ix_tickets_raised_by_email", table_name="tickets")
    op.drop_table("tickets")
    op.drop_index("ix_notices_audience_role", table_name="notices")
    op.drop_table("notices")
    op.drop_index("ix_job_applications_job_post_id", table_name="job_applications")
    op.drop_table("job_applications")
    op.drop_index("ix_job_posts_posted_by_email", table_name="job_posts")
    op.drop_index("ix_job_posts_deadline", table_name="job_posts")
    op.drop_table("job_posts")
    op.drop_index("ix_leaves_email", table_name="leaves")
    op.drop_table("leaves")
    op.drop_index("ix_team_structure_manager_email", table_name="team_structure")
    op.drop_table("team_structure")
    op.drop_index("ix_agent_branch_tasks_branch_id", table_name="agent_branch_tasks")
    op.drop_table("agent_branch_tasks")
    op.drop_index("ix_agent_branches_manager_email", table_name="agent_branches")
    op.drop_table("agent_branches")
    op.drop_index("ix_tasks_assigner_id", table_name="tasks")
    op.drop_index("ix_tasks_assignee_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_targets_manager_email", table_name="targets")
    op.drop_index("ix_targets_user_email", table_name="targets")
    op.drop_table("targets")
    op.drop_index("ix_sales_entries_date", table_name="sales_entries")
    op.drop_index("ix_sales_entries_user_email", table_name="sales_entries")
    op.drop_table("sales_entries")
    op.drop_index("ix_location_changes_user_day", table_name="location_changes")
    op.drop_table("location_changes")
    op.drop_index("ix_attendance_records_date", table_name="attendance_records")
    op.drop_index("ix_attendance_records_user_email", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_index("ix_users_email_address", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)
