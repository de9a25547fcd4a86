from __future__ import annotations

import logging
from calendar import monthrange
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from math import floor
from typing import Any

from sqlalchemy.orm import Session

from officehub.errors import ApiError
from officehub.models import SalesEntry, Target, TeamMember
from officehub.repository import Repository
from officehub.schemas import PerformanceResponse, TargetRead, TeamPerformanceItem

logger = logging.getLogger("officehub.performance")


@dataclass(frozen=True, slots=True)
class Metric:
    percentage_key: str
    achievement_key: str
    target_field: str


# Achievement key -> SalesEntry column summed into it.
ACHIEVEMENT_SOURCES: dict[str, str] = {
    "savings_account_opened": "savings_account_opened",
    "pra_account_opened": "pra_account_opened",
    "current_account_opened": "current_account_opened",
    "snd_account_opened": "snd_account_opened",
    "fdr_term_account_opened": "fdr_term_account_opened",
    "dps_account_opened": "dps_account_opened",
    "savings_deposit": "savings_account_deposit",
    "pra_deposit": "pra_account_deposit",
    "current_deposit": "current_account_deposit",
    "snd_deposit": "snd_account_deposit",
    "fdr_term_deposit": "fdr_term_deposit",
    "dps_deposit": "dps_deposit",
    "total_deposit": "today_deposit",
    "loans": "loans",
    "qr_onboarding": "qr_onboarding",
    "apps": "apps",
    "card_activations": "card_activations",
}

METRICS: tuple[Metric, ...] = (
    Metric("savings_account_percentage", "savings_account_opened", "savings_account_target"),
    Metric("pra_account_percentage", "pra_account_opened", "pra_account_target"),
    Metric("current_account_percentage", "current_account_opened", "current_account_target"),
    Metric("snd_account_percentage", "snd_account_opened", "snd_account_target"),
    Metric("fdr_term_account_percentage", "fdr_term_account_opened", "fdr_term_account_target"),
    Metric("dps_account_percentage", "dps_account_opened", "dps_account_target"),
    Metric("deposits_percentage", "total_deposit", "deposits_target"),
    Metric("loans_percentage", "loans", "loans_target"),
    Metric("qr_onboarding_percentage", "qr_onboarding", "qr_onboarding_target"),
    Metric("apps_percentage", "apps", "apps_target"),
    Metric("card_activations_percentage", "card_activations", "card_activations_target"),
)

MANAGER_ROLE_WITH_SUBTEAM = "asm"


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def calculate_percentage(achieved: float, target: float | None) -> int:
    if not target:
        return 0
    return round_half_up(achieved / target * 100)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def aggregate_achievements(entries: Iterable[Any]) -> dict[str, float]:
    totals: dict[str, float] = {key: 0 for key in ACHIEVEMENT_SOURCES}
    for entry in entries:
        for key, column in ACHIEVEMENT_SOURCES.items():
            totals[key] += getattr(entry, column, 0) or 0
    return totals


def compute_scorecard(target: Any, achievements: dict[str, float]) -> tuple[dict[str, int], int]:
    """Per-metric percentages and the overall score for one target.

    The overall score is the rounded mean of the nonzero percentages, so a
    metric at 0% and a metric without a goal both drop out of the average.
    """
    percentages = {
        metric.percentage_key: calculate_percentage(
            achievements.get(metric.achievement_key, 0),
            getattr(target, metric.target_field, 0),
        )
        for metric in METRICS
    }
    nonzero = [value for value in percentages.values() if value > 0]
    overall = round_half_up(sum(nonzero) / len(nonzero)) if nonzero else 0
    return percentages, overall


def _sales_for_month(db: Session, user_email: str, month: int, year: int) -> list[SalesEntry]:
    start, end = month_bounds(month, year)
    return Repository(db, SalesEntry).find(
        SalesEntry.user_email == user_email,
        SalesEntry.date >= start,
        SalesEntry.date <= end,
    )


def _performance_for_target(db: Session, target: Target) -> PerformanceResponse:
    entries = _sales_for_month(db, target.user_email, target.month, target.year)
    achievements = aggregate_achievements(entries)
    percentages, overall = compute_scorecard(target, achievements)
    return PerformanceResponse(
        target=TargetRead.model_validate(target),
        achievements=achievements,
        percentages=percentages,
        overall_percentage=overall,
        sales_count=len(entries),
    )


def get_performance(db: Session, *, user_email: str, month: int, year: int) -> PerformanceResponse:
    target = Repository(db, Target).find_one(
        Target.user_email == user_email,
        Target.month == month,
        Target.year == year,
    )
    if target is None:
        raise ApiError(status_code=404, code="TARGET_NOT_FOUND", message="No target found for this month")
    return _performance_for_target(db, target)


def _team_member_emails(db: Session, manager_email: str, month: int, year: int) -> list[str]:
    """Users whose target names the manager, then the manager's team structure.

    Members reporting to one of the manager's ASMs are included as well.
    """
    emails: list[str] = []
    seen: set[str] = set()

    def _add(email: str) -> None:
        if email and email != manager_email and email not in seen:
            seen.add(email)
            emails.append(email)

    for target in Repository(db, Target).find(
        Target.manager_email == manager_email,
        Target.month == month,
        Target.year == year,
        order_by=(Target.id.asc(),),
    ):
        _add(target.user_email)

    members = Repository(db, TeamMember)
    direct_reports = members.find(TeamMember.manager_email == manager_email, order_by=(TeamMember.id.asc(),))
    for member in direct_reports:
        _add(member.user_email)

    asm_emails = [
        member.user_email
        for member in direct_reports
        if (member.user_role or "").lower() == MANAGER_ROLE_WITH_SUBTEAM
    ]
    if asm_emails:
        for member in members.find(TeamMember.manager_email.in_(asm_emails), order_by=(TeamMember.id.asc(),)):
            _add(member.user_email)
    return emails


def get_team_performance(
    db: Session,
    *,
    manager_email: str,
    month: int,
    year: int,
) -> list[TeamPerformanceItem]:
    targets = Repository(db, Target)
    results: list[TeamPerformanceItem] = []
    for email in _team_member_emails(db, manager_email, month, year):
        target = targets.find_one(Target.user_email == email, Target.month == month, Target.year == year)
        if target is None:
            continue
        performance = _performance_for_target(db, target)
        results.append(
            TeamPerformanceItem(
                target_id=target.id,
                user_email=target.user_email,
                user_name=target.user_name,
                user_role=target.user_role,
                **performance.model_dump(),
            )
        )

    if not results:
        raise ApiError(status_code=404, code="TARGETS_NOT_FOUND", message="No targets found for this month")

    results.sort(key=lambda item: item.overall_percentage, reverse=True)
    logger.info(
        "team_performance_computed",
        extra={"manager_email": manager_email, "month": month, "year": year, "member_count": len(results)},
    )
    return results
