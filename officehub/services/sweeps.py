from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from officehub.db import SessionLocal
from officehub.services.attendance import auto_checkout_open_records, mark_absent_users
from officehub.services.attendance_state import (
    WorkdayPolicy,
    get_workday_policy,
    normalize_ts,
    parse_hhmm,
)
from officehub.services.jobs import close_expired_job_posts
from officehub.services.tasks import purge_completed_tasks
from officehub.settings import get_attendance_sweep_weekdays, get_settings

logger = logging.getLogger("officehub.sweeps")

ALL_WEEKDAYS = frozenset(range(7))


@dataclass(frozen=True, slots=True)
class SweepJob:
    name: str
    run_at: time
    weekdays: frozenset[int]
    run: Callable[[Session, datetime, WorkdayPolicy], object]


def _run_auto_checkout(db: Session, now_local: datetime, policy: WorkdayPolicy) -> int:
    return auto_checkout_open_records(db, day=now_local.date(), policy=policy)


def _run_auto_absence(db: Session, now_local: datetime, policy: WorkdayPolicy) -> int:
    return len(mark_absent_users(db, day=now_local.date()))


def _run_task_purge(db: Session, now_local: datetime, policy: WorkdayPolicy) -> dict[str, int]:
    return purge_completed_tasks(db)


def _run_job_post_closing(db: Session, now_local: datetime, policy: WorkdayPolicy) -> int:
    return close_expired_job_posts(db, now=now_local)


def build_sweep_jobs() -> tuple[SweepJob, ...]:
    settings = get_settings()
    attendance_at = parse_hhmm(settings.attendance_sweep_at)
    cleanup_at = parse_hhmm(settings.daily_cleanup_at)
    attendance_weekdays = get_attendance_sweep_weekdays()
    # Checkout runs before absence so a checked-in user is never marked absent.
    return (
        SweepJob("auto_checkout", attendance_at, attendance_weekdays, _run_auto_checkout),
        SweepJob("auto_absence", attendance_at, attendance_weekdays, _run_auto_absence),
        SweepJob("completed_task_purge", cleanup_at, ALL_WEEKDAYS, _run_task_purge),
        SweepJob("job_post_closing", cleanup_at, ALL_WEEKDAYS, _run_job_post_closing),
    )


def due_sweeps(
    now_local: datetime,
    last_runs: Mapping[str, date],
    jobs: tuple[SweepJob, ...] | None = None,
) -> list[SweepJob]:
    """Jobs whose run time has been reached today and that have not run today.

    A job missed while the process was down runs on the next tick of the same
    day; every sweep is idempotent.
    """
    jobs = jobs if jobs is not None else build_sweep_jobs()
    today = now_local.date()
    due: list[SweepJob] = []
    for job in jobs:
        if now_local.weekday() not in job.weekdays:
            continue
        if now_local.time() < job.run_at:
            continue
        if last_runs.get(job.name) == today:
            continue
        due.append(job)
    return due


def run_sweep(job: SweepJob, now_local: datetime, policy: WorkdayPolicy, db: Session | None = None) -> object:
    if db is None:
        with SessionLocal() as managed_db:
            return run_sweep(job, now_local, policy, managed_db)
    return job.run(db, now_local, policy)


def run_due_sweeps(
    now_utc: datetime,
    last_runs: dict[str, date],
    *,
    jobs: tuple[SweepJob, ...] | None = None,
    policy: WorkdayPolicy | None = None,
    db: Session | None = None,
) -> dict[str, object]:
    """Run every due job once and record today's date in ``last_runs``.

    A failing job is logged and marked as run so it is not retried until the
    next day.
    """
    policy = policy or get_workday_policy()
    jobs = jobs if jobs is not None else build_sweep_jobs()
    now_local = normalize_ts(now_utc).astimezone(policy.timezone)
    outcomes: dict[str, object] = {}
    for job in due_sweeps(now_local, last_runs, jobs):
        last_runs[job.name] = now_local.date()
        try:
            outcome = run_sweep(job, now_local, policy, db)
        except Exception:
            logger.exception(
                "sweep_failed",
                extra={"sweep": job.name, "date": now_local.date().isoformat()},
            )
            if db is not None:
                db.rollback()
            continue
        outcomes[job.name] = outcome
        logger.info(
            "sweep_completed",
            extra={"sweep": job.name, "date": now_local.date().isoformat(), "result": outcome},
        )
    return outcomes
