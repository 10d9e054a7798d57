"""Core domain models for workers, jobs, matches and dialog sessions.

Enumerations use their display text as the value: the same strings appear in
USSD menus, SMS messages, the database and the HTTP API.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from yaya.utils.timestamps import ensure_utc


class Skill(str, Enum):
    """Construction skills a worker can register with."""

    MASON = "Mason"
    CARPENTER = "Carpenter"
    ELECTRICIAN = "Electrician"
    PLUMBER = "Plumber"
    PAINTER = "Painter"
    WELDER = "Welder"
    GENERAL_LABOR = "General Labor"


class Location(str, Enum):
    """Areas covered by the service."""

    PIPELINE = "Pipeline"
    GIKAMBURA = "Gikambura"
    KAWANGWARE = "Kawangware"
    KASARANI = "Kasarani"
    RONGAI = "Rongai"
    KITENGELA = "Kitengela"


class ProjectDuration(str, Enum):
    """How long a posted job is expected to last."""

    ONE_DAY = "1 day"
    TWO_TO_THREE_DAYS = "2-3 days"
    ONE_WEEK = "1 week"
    TWO_WEEKS = "2 weeks"
    ONE_MONTH = "1 month"
    THREE_PLUS_MONTHS = "3+ months"


# Menu order is the enum declaration order
SKILLS: List[str] = [skill.value for skill in Skill]
LOCATIONS: List[str] = [location.value for location in Location]
DURATIONS: List[str] = [duration.value for duration in ProjectDuration]


def _strip_required(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Field cannot be empty or whitespace-only")
    return v.strip()


class WorkerCreate(BaseModel):
    """Fields needed to register a worker (USSD flow or HTTP API)."""

    name: str = Field(..., max_length=120, description="Worker's full name")
    phone: str = Field(..., max_length=32, description="Phone number, unique per worker")
    skill: Skill
    location: Location
    is_available: bool = True

    @field_validator("name", "phone")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank values."""
        return _strip_required(v)


class Worker(WorkerCreate):
    """A registered worker."""

    id: int
    registered_at: datetime

    @field_validator("registered_at")
    @classmethod
    def registered_at_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class JobCreate(BaseModel):
    """Fields supplied by a contractor posting a job."""

    contact_phone: str = Field(..., max_length=32, description="Who workers should call")
    skill_required: Skill
    location: Location
    daily_rate: int = Field(..., gt=0, description="Daily pay in KSh")
    project_duration: ProjectDuration
    additional_notes: Optional[str] = Field(None, max_length=500)
    is_active: bool = True

    @field_validator("contact_phone")
    @classmethod
    def strip_contact_phone(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("additional_notes")
    @classmethod
    def blank_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat whitespace-only notes as absent."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    model_config = {"json_schema_extra": {"example": {
        "contact_phone": "0799888777",
        "skill_required": "Electrician",
        "location": "Gikambura",
        "daily_rate": 1500,
        "project_duration": "1 day",
        "additional_notes": "Need wiring installation for a new kitchen.",
    }}}


class Job(JobCreate):
    """A posted job."""

    id: int
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Match(BaseModel):
    """Pairing of one job with one worker, plus its notification status.

    Only the notification fields change after creation. worker_responded is
    reserved for inbound replies and is never set by the core.
    """

    id: int
    job_id: int
    worker_id: int
    notification_sent: bool = False
    notification_time: Optional[datetime] = None
    worker_responded: bool = False

    @field_validator("notification_time")
    @classmethod
    def notification_time_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class MatchDetails(BaseModel):
    """A match resolved together with its worker and job."""

    match: Match
    worker: Worker
    job: Job


class DialogSessionRecord(BaseModel):
    """Raw session row as held by a SessionStore.

    ``step`` and ``data`` are decoded into a typed dialog state by
    yaya.dialog.states; the store itself treats them as opaque.
    """

    session_id: str
    phone_number: str
    step: str
    data: str = "{}"
    input_position: Optional[int] = None
    created_at: Optional[datetime] = None
