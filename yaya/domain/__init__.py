"""Domain models shared by the dialog, matching and notification layers."""

from .models import (
    DURATIONS,
    LOCATIONS,
    SKILLS,
    DialogSessionRecord,
    Job,
    JobCreate,
    Location,
    Match,
    MatchDetails,
    ProjectDuration,
    Skill,
    Worker,
    WorkerCreate,
)

__all__ = [
    "Skill",
    "Location",
    "ProjectDuration",
    "SKILLS",
    "LOCATIONS",
    "DURATIONS",
    "Worker",
    "WorkerCreate",
    "Job",
    "JobCreate",
    "Match",
    "MatchDetails",
    "DialogSessionRecord",
]
