from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from officehub.errors import bad_request
from officehub.models import ApplicationStatus, JobApplication, JobPost, JobPostStatus
from officehub.repository import DeleteResult, InsertResult, Repository, UpdateResult
from officehub.schemas import (
    ApplicationReportRequest,
    ApplicationReportResponse,
    ApplicationStatusUpdate,
    JobApplicationCreate,
    JobPostCreate,
    JobPostUpdate,
)
from officehub.services.attendance_state import normalize_ts

logger = logging.getLogger("officehub.jobs")

# Sort key -> (document column, path inside the JSON document).
APPLICATION_SORT_PATHS: dict[str, tuple[str, tuple[Any, ...]]] = {
    "age": ("personal_info", ("dateOfBirth",)),
    "prevCompany": ("employment_history", (0, "companyName")),
    "gender": ("personal_info", ("gender",)),
    "education": ("educational_background", (0, "subject")),
    "expectedSalary": ("additional_info", ("expectedSalary",)),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _posts(db: Session) -> Repository[JobPost]:
    return Repository(db, JobPost)


def _get_post(db: Session, post_id: int) -> JobPost:
    return _posts(db).get_or_raise(post_id, code="JOB_POST_NOT_FOUND", message="Job post not found")


def create_job_post(db: Session, payload: JobPostCreate) -> InsertResult:
    post = JobPost(**payload.model_dump(), applications=0)
    return _posts(db).insert(post)


def list_job_posts(
    db: Session,
    *,
    status: str | None = None,
    posted_by_email: str | None = None,
) -> list[JobPost]:
    criteria = []
    if status and status != "all":
        try:
            criteria.append(JobPost.status == JobPostStatus(status))
        except ValueError as exc:
            raise bad_request("INVALID_STATUS_FILTER", f"Unknown job post status: {status}") from exc
    if posted_by_email:
        criteria.append(JobPost.posted_by_email == posted_by_email)
    return _posts(db).find(*criteria, order_by=(JobPost.created_at.desc(), JobPost.id.desc()))


def get_job_post(db: Session, post_id: int) -> JobPost:
    return _get_post(db, post_id)


def update_job_post(db: Session, post_id: int, payload: JobPostUpdate) -> UpdateResult:
    post = _get_post(db, post_id)
    return _posts(db).update(post, payload.model_dump())


def delete_job_post(db: Session, post_id: int) -> DeleteResult:
    post = _get_post(db, post_id)
    if Repository(db, JobApplication).exists(JobApplication.job_post_id == post.id):
        raise bad_request(
            "JOB_POST_HAS_APPLICATIONS",
            "Cannot delete job post with existing applications. Archive it instead.",
        )
    return _posts(db).delete(post)


def archive_job_post(db: Session, post_id: int) -> UpdateResult:
    post = _get_post(db, post_id)
    return _posts(db).update(post, {"status": JobPostStatus.ARCHIVED})


def close_expired_job_posts(db: Session, *, now: datetime | None = None) -> int:
    """Close active posts whose deadline has passed."""
    now_utc = normalize_ts(now or _utcnow())
    result = _posts(db).update_where(
        (JobPost.status == JobPostStatus.ACTIVE, JobPost.deadline < now_utc),
        {"status": JobPostStatus.CLOSED},
    )
    return result.modified_count


def submit_application(
    db: Session,
    payload: JobApplicationCreate,
    *,
    now: datetime | None = None,
) -> InsertResult:
    post = _get_post(db, payload.job_post_id)
    if post.status != JobPostStatus.ACTIVE:
        raise bad_request("JOB_POST_NOT_ACTIVE", "This job post is no longer accepting applications")
    if normalize_ts(post.deadline) < normalize_ts(now or _utcnow()):
        raise bad_request("JOB_POST_DEADLINE_PASSED", "The deadline for this job post has passed")

    application = JobApplication(
        job_title=post.title,
        status=ApplicationStatus.PENDING,
        **payload.model_dump(),
    )
    result = Repository(db, JobApplication).insert(application)
    db.execute(update(JobPost).where(JobPost.id == post.id).values(applications=JobPost.applications + 1))
    db.commit()
    db.refresh(post)
    logger.info(
        "job_application_submitted",
        extra={"job_post_id": post.id, "application_id": result.inserted_id},
    )
    return result


def _document_value(application: JobApplication, sort_key: str) -> Any:
    column, path = APPLICATION_SORT_PATHS[sort_key]
    value: Any = getattr(application, column)
    for step in path:
        if isinstance(step, int):
            value = value[step] if isinstance(value, list) and len(value) > step else None
        else:
            value = value.get(step) if isinstance(value, dict) else None
        if value is None:
            return None
    return value


def _comparable(value: Any) -> tuple[int, float, str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, float(value), "")
    return (1, 0.0, str(value).lower())


def list_applications(
    db: Session,
    *,
    job_post_id: int,
    status: ApplicationStatus | None = None,
    sort: str | None = None,
    sort_direction: str = "asc",
) -> list[JobApplication]:
    criteria = [JobApplication.job_post_id == job_post_id]
    if status is not None:
        criteria.append(JobApplication.status == status)
    applications = Repository(db, JobApplication).find(
        *criteria,
        order_by=(JobApplication.applied_at.desc(), JobApplication.id.desc()),
    )
    if sort not in APPLICATION_SORT_PATHS:
        return applications

    # Applications missing the sort field stay at the end in either direction.
    keyed = [(application, _document_value(application, sort)) for application in applications]
    present = [item for item in keyed if item[1] is not None]
    missing = [application for application, value in keyed if value is None]
    present.sort(key=lambda item: _comparable(item[1]), reverse=sort_direction == "desc")
    return [application for application, _ in present] + missing


def get_application(db: Session, application_id: int) -> JobApplication:
    return Repository(db, JobApplication).get_or_raise(
        application_id,
        code="APPLICATION_NOT_FOUND",
        message="Application not found",
    )


def update_application_status(
    db: Session,
    application_id: int,
    payload: ApplicationStatusUpdate,
) -> UpdateResult:
    application = get_application(db, application_id)
    return Repository(db, JobApplication).update(application, {"status": payload.status})


def request_application_report(
    db: Session,
    payload: ApplicationReportRequest,
    *,
    now: datetime | None = None,
) -> ApplicationReportResponse:
    post = _get_post(db, payload.job_post_id)
    stamp = int(normalize_ts(now or _utcnow()).timestamp() * 1000)
    logger.info(
        "job_application_report_requested",
        extra={"job_post_id": post.id, "sort_by": payload.sort_by, "filters": payload.filters},
    )
    return ApplicationReportResponse(
        message="Report generation initiated",
        status="processing",
        report_url=f"/reports/{post.id}_{stamp}.pdf",
    )
