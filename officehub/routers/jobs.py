from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from officehub.db import get_db
from officehub.models import ApplicationStatus
from officehub.schemas import (
    ApplicationReportRequest,
    ApplicationReportResponse,
    ApplicationStatusUpdate,
    DeleteResultRead,
    InsertResultRead,
    JobApplicationCreate,
    JobApplicationRead,
    JobPostCreate,
    JobPostRead,
    JobPostUpdate,
    UpdateResultRead,
)
from officehub.services.jobs import (
    archive_job_post,
    create_job_post,
    delete_job_post,
    get_application,
    get_job_post,
    list_applications,
    list_job_posts,
    request_application_report,
    submit_application,
    update_application_status,
    update_job_post,
)

router = APIRouter(tags=["jobs"])


@router.post("/job-posts", response_model=InsertResultRead, status_code=status.HTTP_201_CREATED)
def job_posts_create(payload: JobPostCreate, db: Session = Depends(get_db)):
    return create_job_post(db, payload)


@router.get("/job-posts", response_model=list[JobPostRead])
def job_posts_list(
    status_filter: str | None = Query(default=None, alias="status"),
    posted_by_email: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_job_posts(db, status=status_filter, posted_by_email=posted_by_email)


@router.get("/job-posts/{post_id}", response_model=JobPostRead)
def job_posts_get(post_id: int, db: Session = Depends(get_db)):
    return get_job_post(db, post_id)


@router.put("/job-posts/{post_id}", response_model=UpdateResultRead)
def job_posts_update(post_id: int, payload: JobPostUpdate, db: Session = Depends(get_db)):
    return update_job_post(db, post_id, payload)


@router.delete("/job-posts/{post_id}", response_model=DeleteResultRead)
def job_posts_delete(post_id: int, db: Session = Depends(get_db)):
    return delete_job_post(db, post_id)


@router.patch("/job-posts/{post_id}/archive", response_model=UpdateResultRead)
def job_posts_archive(post_id: int, db: Session = Depends(get_db)):
    return archive_job_post(db, post_id)


@router.post("/job-applications", response_model=InsertResultRead, status_code=status.HTTP_201_CREATED)
def job_applications_submit(payload: JobApplicationCreate, db: Session = Depends(get_db)):
    return submit_application(db, payload)


@router.post("/job-applications/generate-report", response_model=ApplicationReportResponse)
def job_applications_report(payload: ApplicationReportRequest, db: Session = Depends(get_db)):
    return request_application_report(db, payload)


@router.get("/job-applications", response_model=list[JobApplicationRead])
def job_applications_list(
    job_post_id: int = Query(ge=1),
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    sort: str | None = Query(default=None),
    sort_direction: Literal["asc", "desc"] = Query(default="asc"),
    db: Session = Depends(get_db),
):
    return list_applications(
        db,
        job_post_id=job_post_id,
        status=status_filter,
        sort=sort,
        sort_direction=sort_direction,
    )


@router.get("/job-applications/{application_id}", response_model=JobApplicationRead)
def job_applications_get(application_id: int, db: Session = Depends(get_db)):
    return get_application(db, application_id)


@router.patch("/job-applications/{application_id}/status", response_model=UpdateResultRead)
def job_applications_update_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
):
    return update_application_status(db, application_id, payload)
