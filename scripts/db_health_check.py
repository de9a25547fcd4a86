#!/usr/bin/env python
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, text


EXPECTED_HEAD = "0001_initial"

REQUIRED_TABLES = [
    "users",
    "attendance_records",
    "location_changes",
    "sales_entries",
    "targets",
    "tasks",
    "agent_branches",
    "agent_branch_tasks",
    "team_structure",
    "leaves",
    "job_posts",
    "job_applications",
    "notices",
    "tickets",
]


def load_env_if_exists() -> None:
    env_file = Path(".env")
    if not env_file.exists():
        return
    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def run() -> dict:
    load_env_if_exists()
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL not found (.env or env vars).")

    engine = create_engine(database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "database_url": database_url,
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    with engine.connect() as conn:
        tables = set(
            conn.execute(
                text(
                    """
                    select table_name
                    from information_schema.tables
                    where table_schema='public'
                    """
                )
            ).scalars()
        )

        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        missing = [table for table in REQUIRED_TABLES if table not in tables]
        add("missing_tables", "fail" if missing else "ok", {"tables": missing})

        if "attendance_records" in tables:
            reversed_times = conn.execute(
                text(
                    """
                    select id
                    from attendance_records
                    where check_out_time is not null
                      and check_in_time is not null
                      and check_out_time < check_in_time
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "attendance_checkout_before_checkin",
                "fail" if reversed_times else "ok",
                {"sample_ids": [row[0] for row in reversed_times]},
            )

            absent_with_checkin = conn.execute(
                text(
                    """
                    select id
                    from attendance_records
                    where status = 'absent'
                      and check_in_time is not null
                      and check_out_time is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "attendance_absent_with_open_checkin",
                "warn" if absent_with_checkin else "ok",
                {"sample_ids": [row[0] for row in absent_with_checkin]},
            )

        if "location_changes" in tables and "attendance_records" in tables:
            orphan_events = conn.execute(
                text(
                    """
                    select l.id
                    from location_changes l
                    left join attendance_records a
                      on a.user_email = l.user_email and a.date = l.date
                    where a.id is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "location_change_without_attendance",
                "warn" if orphan_events else "ok",
                {"sample_ids": [row[0] for row in orphan_events]},
            )

        if "job_posts" in tables and "job_applications" in tables:
            counter_drift = conn.execute(
                text(
                    """
                    select p.id, p.applications, count(a.id)
                    from job_posts p
                    left join job_applications a on a.job_post_id = p.id
                    group by p.id, p.applications
                    having p.applications <> count(a.id)
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "job_post_application_counter",
                "warn" if counter_drift else "ok",
                {"rows": [list(row) for row in counter_drift]},
            )

        if "team_structure" in tables:
            self_managed = conn.execute(
                text(
                    """
                    select id
                    from team_structure
                    where manager_email = user_email
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "team_member_self_managed",
                "fail" if self_managed else "ok",
                {"sample_ids": [row[0] for row in self_managed]},
            )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
