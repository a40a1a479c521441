import re
from datetime import datetime
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from smartfit import config

T = TypeVar("T")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ResponseSchema(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: Optional[str] = None
    count: Optional[int] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def _check_email(value: str) -> str:
    if value != value.strip() or not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email")
    return value.lower()


def _check_allowed_email(value: str) -> str:
    value = _check_email(value)
    domain = config.ALLOWED_EMAIL_DOMAIN
    if domain and not value.endswith("@" + domain.lower()):
        raise ValueError(f"Must be an @{domain} email address")
    return value


# ---------------------------------------------------------------- auth / users


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    goals: list[str] = []

    @field_validator("name")
    @classmethod
    def name_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("email")
    @classmethod
    def allowed_email(cls, value: str) -> str:
        return _check_allowed_email(value)

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class LoginRequest(CamelModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        return _check_email(value)


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    year: Optional[str] = None
    major: Optional[str] = None
    fitness_level: Optional[str] = None
    preferred_gym: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResponse(ResponseSchema[UserOut]):
    token: str


class UserUpdateRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    year: Optional[str] = None
    major: Optional[str] = None
    fitness_level: Optional[str] = None
    preferred_gym: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("email")
    @classmethod
    def allowed_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_allowed_email(value) if value is not None else value


class PasswordChangeRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return value


class RemovedRecords(CamelModel):
    queues: int = 0
    goals: int = 0
    history: int = 0
    notifications: int = 0
    support_issues: int = 0


class DeletedUser(CamelModel):
    id: int
    email: str
    name: str


class AccountDeletion(CamelModel):
    user: DeletedUser
    removed_records: RemovedRecords


# ---------------------------------------------------------------- facilities


class FacilityOut(CamelModel):
    id: int
    name: str
    address: str
    capacity: int
    hours_weekdays: Optional[str] = None
    hours_weekends: Optional[str] = None
    amenities: list[str] = []
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class ZoneOut(CamelModel):
    id: int
    facility_id: int
    name: str
    equipment: list[str] = []
    capacity: int
    current_occupancy: int = 0
    queue_length: int = 0
    average_wait_time: int = 0
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LineEntry(CamelModel):
    queue_id: int
    user_id: int
    position: int


# ---------------------------------------------------------------- queues


QueueStatusName = Literal["active", "in_use", "completed", "cancelled"]


class QueueJoinRequest(CamelModel):
    user_id: int
    zone_id: int
    facility_id: Optional[int] = None
    # accepted for compatibility, the server assigns both
    position: Optional[int] = None
    estimated_wait: Optional[int] = None


class QueueUpdateRequest(CamelModel):
    position: Optional[int] = Field(default=None, ge=0)
    estimated_wait: Optional[int] = Field(default=None, ge=0)
    status: Optional[QueueStatusName] = None


class QueueOut(CamelModel):
    id: int
    user_id: int
    zone_id: int
    facility_id: Optional[int] = None
    position: int
    estimated_wait: int
    status: str
    joined_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- goals


class GoalCreateRequest(CamelModel):
    goal: str = Field(min_length=1)
    progress: int = 0


class GoalUpdateRequest(CamelModel):
    progress: int


class GoalOut(CamelModel):
    id: int
    user_id: int
    goal: str
    progress: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- history


class WorkoutCreateRequest(CamelModel):
    user_id: int
    facility_id: int
    zone_id: int
    zone_name: str = ""
    duration: int = Field(gt=0)
    type: str = Field(min_length=1)
    exercises: list[str] = []
    calories_burned: int = 0
    notes: str = ""


class WorkoutOut(CamelModel):
    id: int
    user_id: int
    facility_id: int
    zone_id: int
    zone_name: str = ""
    exercises: list[str] = []
    date: datetime
    duration: int
    type: str
    notes: Optional[str] = ""
    calories_burned: Optional[int] = 0
    created_at: Optional[datetime] = None


class WorkoutStats(CamelModel):
    total_workouts: int
    total_minutes: int
    total_calories: int
    most_frequent_gym: Optional[str] = None
    most_frequent_exercise: Optional[str] = None
    workout_type_breakdown: dict[str, int] = {}


class HistoryResponse(ResponseSchema[list[WorkoutOut]]):
    stats: WorkoutStats


# ---------------------------------------------------------------- notifications


class NotificationOut(CamelModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    is_read: bool
    priority: str
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(ResponseSchema[list[NotificationOut]]):
    model_config = ConfigDict(populate_by_name=True)

    unread_count: int = Field(default=0, alias="unreadCount")


# ---------------------------------------------------------------- support


class FaqOut(CamelModel):
    id: int
    category: str
    question: str
    answer: str
    order: int


class SupportIssueRequest(CamelModel):
    user_id: int
    message: str = Field(min_length=1)
    subject: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[Literal["low", "medium", "high"]] = None


class SupportIssueOut(CamelModel):
    id: int
    user_id: int
    subject: str
    description: str
    category: str
    status: str
    priority: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
