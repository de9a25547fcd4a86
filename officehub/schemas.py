import datetime as dt
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from officehub.models import (
    ApplicationStatus,
    AttendanceStatus,
    BranchStatus,
    JobPostStatus,
    LeaveStatus,
    LocationEventType,
    TaskPriority,
    TaskStatus,
    TicketStatus,
    UserStatus,
)
from officehub.services.attendance_state import AttendanceState


class InsertResultRead(BaseModel):
    acknowledged: bool = True
    inserted_id: int


class UpdateResultRead(BaseModel):
    acknowledged: bool = True
    matched_count: int
    modified_count: int


class DeleteResultRead(BaseModel):
    acknowledged: bool = True
    deleted_count: int


class StatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1)


# Users


class UserCreate(BaseModel):
    email_address: str = Field(min_length=3, max_length=255)
    full_name: str = ""
    user_role: str = "user"
    status: UserStatus = UserStatus.PENDING
    phone_number: str | None = None
    designation: str | None = None
    profile: dict[str, Any] = Field(default_factory=dict)


class UserUpdate(BaseModel):
    email_address: str | None = Field(default=None, min_length=3, max_length=255)
    full_name: str | None = None
    user_role: str | None = None
    status: UserStatus | None = None
    phone_number: str | None = None
    designation: str | None = None
    profile: dict[str, Any] | None = None


class UserApproveRequest(BaseModel):
    user_role: str = Field(min_length=1)


class UserRead(BaseModel):
    id: int
    email_address: str
    full_name: str
    user_role: str
    status: UserStatus
    phone_number: str | None = None
    designation: str | None = None
    profile: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Attendance


class CheckInRequest(BaseModel):
    user_email: str = Field(min_length=1)
    user_name: str = Field(min_length=1)
    user_role: str | None = None
    check_in_time: datetime
    is_outside_office: bool = False
    location: str | None = None
    location_type: str | None = None
    notes: str | None = None
    status: AttendanceStatus | None = None


class CheckInResponse(BaseModel):
    acknowledged: bool = True
    inserted_id: int | None = None
    modified_count: int | None = None
    message: str | None = None


class CheckOutRequest(BaseModel):
    user_email: str = Field(min_length=1)
    check_out_time: datetime
    date: dt.date | None = None
    location: str | None = None
    location_type: str | None = None
    notes: str | None = None


class LocationChangeRequest(BaseModel):
    user_email: str = Field(min_length=1)
    user_name: str | None = None
    timestamp: datetime
    location: str = Field(min_length=1)
    location_type: str | None = None
    notes: str | None = None
    is_outside_office: bool | None = None


class LocationChangeRead(BaseModel):
    id: int
    user_email: str
    user_name: str | None = None
    date: date
    timestamp: datetime
    location: str
    location_type: str | None = None
    is_outside_office: bool
    notes: str
    type: LocationEventType

    model_config = ConfigDict(from_attributes=True)


class AttendanceRecordRead(BaseModel):
    id: int
    user_email: str
    user_name: str
    user_role: str | None = None
    date: date
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    status: AttendanceStatus
    location: str
    location_type: str | None = None
    last_location: str | None = None
    last_location_type: str | None = None
    is_outside_office: bool
    check_out_location: str | None = None
    check_out_location_type: str | None = None
    check_out_notes: str | None = None
    work_hours: str | None = None
    auto_check_out: bool
    auto_absent: bool
    notes: str
    location_changes: list[LocationChangeRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class AttendanceStatusResponse(BaseModel):
    state: AttendanceState
    is_checked_in: bool
    is_checked_out: bool = False
    record_id: int | None = None
    date: dt.date | None = None
    status: AttendanceStatus | None = None
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    location: str | None = None
    last_location: str | None = None
    check_out_location: str | None = None
    is_outside_office: bool | None = None
    notes: str | None = None
    work_hours: str | None = None
    auto_absent: bool = False
    auto_check_out: bool = False
    location_changes: list[LocationChangeRead] = Field(default_factory=list)


class AutoAbsentCheckResponse(BaseModel):
    marked: bool
    message: str | None = None
    record: AttendanceRecordRead | None = None


class MonthlyAttendanceSummary(BaseModel):
    month: str
    year: int
    month_num: int
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0


class MarkAbsentRequest(BaseModel):
    date: dt.date | None = None


class MarkedAbsentUser(BaseModel):
    user: str
    inserted_id: int


class MarkAbsentResponse(BaseModel):
    message: str
    results: list[MarkedAbsentUser]


class AutoOutRequest(BaseModel):
    user_email: str = Field(min_length=1)
    date: dt.date | None = None


class AutoOutResponse(BaseModel):
    message: str
    already_checked_out: bool = False
    result: UpdateResultRead | None = None


# Sales and targets


class SalesFigures(BaseModel):
    savings_account_opened: int = Field(default=0, ge=0)
    savings_account_deposit: float = Field(default=0, ge=0)
    pra_account_opened: int = Field(default=0, ge=0)
    pra_account_deposit: float = Field(default=0, ge=0)
    current_account_opened: int = Field(default=0, ge=0)
    current_account_deposit: float = Field(default=0, ge=0)
    snd_account_opened: int = Field(default=0, ge=0)
    snd_account_deposit: float = Field(default=0, ge=0)
    fdr_term_account_opened: int = Field(default=0, ge=0)
    fdr_term_deposit: float = Field(default=0, ge=0)
    dps_account_opened: int = Field(default=0, ge=0)
    dps_deposit: float = Field(default=0, ge=0)
    loans: float = Field(default=0, ge=0)
    qr_onboarding: int = Field(default=0, ge=0)
    apps: int = Field(default=0, ge=0)
    card_activations: int = Field(default=0, ge=0)
    today_deposit: float | None = None
    today_net_deposit: float = 0
    total_deposit: float = 0
    total_accounts: int | None = None
    total_qr: int = 0
    day_end_hand_cash: float = 0
    day_end_mother_balance: float = 0
    agent_booth_name: str = ""
    notes: str = ""


class SalesEntryCreate(SalesFigures):
    user_email: str = Field(min_length=1)
    user_name: str | None = None
    user_role: str | None = None
    date: date


class SalesEntryUpdate(SalesFigures):
    pass


class SalesEntryRead(BaseModel):
    id: int
    user_email: str
    user_name: str | None = None
    user_role: str | None = None
    date: date
    savings_account_opened: int
    savings_account_deposit: float
    pra_account_opened: int
    pra_account_deposit: float
    current_account_opened: int
    current_account_deposit: float
    snd_account_opened: int
    snd_account_deposit: float
    fdr_term_account_opened: int
    fdr_term_deposit: float
    dps_account_opened: int
    dps_deposit: float
    loans: float
    qr_onboarding: int
    apps: int
    card_activations: int
    today_deposit: float
    today_net_deposit: float
    total_deposit: float
    total_accounts: int
    total_qr: int
    day_end_hand_cash: float
    day_end_mother_balance: float
    agent_booth_name: str
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TargetGoals(BaseModel):
    savings_account_target: float = Field(default=0, ge=0)
    pra_account_target: float = Field(default=0, ge=0)
    current_account_target: float = Field(default=0, ge=0)
    snd_account_target: float = Field(default=0, ge=0)
    fdr_term_account_target: float = Field(default=0, ge=0)
    dps_account_target: float = Field(default=0, ge=0)
    deposits_target: float = Field(default=0, ge=0)
    loans_target: float = Field(default=0, ge=0)
    qr_onboarding_target: float = Field(default=0, ge=0)
    apps_target: float = Field(default=0, ge=0)
    card_activations_target: float = Field(default=0, ge=0)
    notes: str = ""


class TargetCreate(TargetGoals):
    user_email: str = Field(min_length=1)
    user_name: str | None = None
    user_role: str | None = None
    manager_email: str | None = None
    manager_name: str | None = None
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class TargetUpdate(TargetGoals):
    pass


class TargetRead(BaseModel):
    id: int
    user_email: str
    user_name: str | None = None
    user_role: str | None = None
    manager_email: str | None = None
    manager_name: str | None = None
    month: int
    year: int
    savings_account_target: float
    pra_account_target: float
    current_account_target: float
    snd_account_target: float
    fdr_term_account_target: float
    dps_account_target: float
    deposits_target: float
    loans_target: float
    qr_onboarding_target: float
    apps_target: float
    card_activations_target: float
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PerformanceResponse(BaseModel):
    target: TargetRead
    achievements: dict[str, float]
    percentages: dict[str, int]
    overall_percentage: int
    sales_count: int


class TeamPerformanceItem(PerformanceResponse):
    target_id: int
    user_email: str
    user_name: str | None = None
    user_role: str | None = None


# Team structure


class TeamMemberUpsert(BaseModel):
    user_email: str = Field(min_length=1)
    user_name: str = Field(min_length=1)
    user_role: str = Field(min_length=1)
    manager_email: str | None = None
    manager_name: str | None = None
    manager_role: str | None = None


class TeamBatchUpdateRequest(BaseModel):
    user_ids: list[int] = Field(min_length=1)
    manager_email: str
    manager_name: str | None = None
    manager_role: str | None = None


class TeamBatchError(BaseModel):
    user_email: str
    error: str


class TeamBatchResults(BaseModel):
    updated: int = 0
    created: int = 0
    errors: list[TeamBatchError] = Field(default_factory=list)


class TeamBatchUpdateResponse(BaseModel):
    message: str
    results: TeamBatchResults


class TeamMemberRead(BaseModel):
    id: int
    user_email: str
    user_name: str | None = None
    user_role: str | None = None
    manager_email: str | None = None
    manager_name: str | None = None
    manager_role: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeamMemberDeleteResponse(BaseModel):
    message: str
    result: DeleteResultRead


# Tasks


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    assignee_id: str = Field(min_length=1)
    assignee: str | None = None
    assignee_role: str | None = None
    assigner_id: str = Field(min_length=1)
    assigner: str | None = None
    assigner_role: str | None = None
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM


class TaskUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskRead(BaseModel):
    id: int
    title: str
    description: str
    assignee_id: str
    assignee: str | None = None
    assignee_role: str | None = None
    assigner_id: str
    assigner: str | None = None
    assigner_role: str | None = None
    due_date: date
    priority: TaskPriority
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Leaves


class LeaveCreate(BaseModel):
    email: str = Field(min_length=1)
    user_name: str | None = None
    user_role: str | None = None
    leave_type: str = Field(min_length=1, max_length=64)
    start_date: date
    end_date: date
    reason: str = Field(default="", max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "LeaveCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be greater than or equal to start_date")
        return self


class LeaveRead(BaseModel):
    id: int
    email: str
    user_name: str | None = None
    user_role: str | None = None
    leave_type: str
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Jobs


class JobPostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    custom_fields: list[Any] = Field(default_factory=list)
    deadline: datetime
    posted_by: str | None = None
    posted_by_email: str = Field(min_length=1)
    posted_by_role: str | None = None
    status: JobPostStatus = JobPostStatus.ACTIVE


class JobPostUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    custom_fields: list[Any] = Field(default_factory=list)
    deadline: datetime
    status: JobPostStatus


class JobPostRead(BaseModel):
    id: int
    title: str
    description: str
    custom_fields: list[Any]
    deadline: datetime
    posted_by: str | None = None
    posted_by_email: str
    posted_by_role: str | None = None
    status: JobPostStatus
    applications: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobApplicationCreate(BaseModel):
    job_post_id: int = Field(ge=1)
    personal_info: dict[str, Any]
    educational_background: list[Any] = Field(default_factory=list)
    employment_history: list[Any] = Field(default_factory=list)
    skills_and_certifications: dict[str, Any] = Field(default_factory=dict)
    references: list[Any] = Field(default_factory=list)
    additional_info: dict[str, Any] = Field(default_factory=dict)
    contact_number: str | None = None


class JobApplicationRead(BaseModel):
    id: int
    job_post_id: int
    job_title: str
    status: ApplicationStatus
    personal_info: dict[str, Any]
    educational_background: list[Any]
    employment_history: list[Any]
    skills_and_certifications: dict[str, Any]
    references: list[Any]
    additional_info: dict[str, Any]
    contact_number: str | None = None
    applied_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationReportRequest(BaseModel):
    job_post_id: int = Field(ge=1)
    filters: dict[str, Any] = Field(default_factory=dict)
    sort_by: str | None = None
    sort_direction: str | None = None


class ApplicationReportResponse(BaseModel):
    message: str
    status: str
    report_url: str


# Notices, tickets and agent branches


class NoticeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    posted_by_email: str = Field(min_length=1)
    posted_by_name: str | None = None
    audience_role: str | None = None
    is_pinned: bool = False
    expires_on: date | None = None


class NoticeUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    body: str | None = Field(default=None, min_length=1)
    audience_role: str | None = None
    is_pinned: bool | None = None
    expires_on: date | None = None


class NoticeRead(BaseModel):
    id: int
    title: str
    body: str
    posted_by_email: str
    posted_by_name: str | None = None
    audience_role: str | None = None
    is_pinned: bool
    expires_on: date | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketCreate(BaseModel):
    subject: str = Field(min_length=1, max_length=255)
    description: str = ""
    raised_by_email: str = Field(min_length=1)
    raised_by_name: str | None = None
    category: str = "general"
    priority: TaskPriority = TaskPriority.MEDIUM


class TicketUpdate(BaseModel):
    subject: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    priority: TaskPriority | None = None
    status: TicketStatus | None = None
    assignee_email: str | None = None
    resolution_notes: str | None = None


class TicketRead(BaseModel):
    id: int
    subject: str
    description: str
    raised_by_email: str
    raised_by_name: str | None = None
    category: str
    priority: TaskPriority
    status: TicketStatus
    assignee_email: str | None = None
    resolution_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgentBranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=64)
    address: str = ""
    agent_name: str | None = None
    agent_email: str | None = None
    manager_email: str | None = None
    status: BranchStatus = BranchStatus.ACTIVE


class AgentBranchUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = None
    agent_name: str | None = None
    agent_email: str | None = None
    manager_email: str | None = None
    status: BranchStatus | None = None


class AgentBranchRead(BaseModel):
    id: int
    name: str
    code: str
    address: str
    agent_name: str | None = None
    agent_email: str | None = None
    manager_email: str | None = None
    status: BranchStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgentBranchTaskCreate(BaseModel):
    branch_id: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    assignee_id: str = Field(min_length=1)
    assigner_id: str = Field(min_length=1)
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM


class AgentBranchTaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    assignee_id: str | None = None
    due_date: date | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None


class AgentBranchTaskRead(BaseModel):
    id: int
    branch_id: int
    title: str
    description: str
    assignee_id: str
    assigner_id: str
    due_date: date
    priority: TaskPriority
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
