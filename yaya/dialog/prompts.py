"""Response texts for the USSD dialog.

Every response starts with "CON " (the gateway keeps the session open and
prompts for more input) or "END " (the session is closed).
"""

from typing import List, Sequence

from yaya.domain.models import LOCATIONS, SKILLS, Job, Worker
from yaya.utils.timestamps import format_date

CONTINUE = "CON "
END = "END "

MAIN_MENU_OPTIONS = "1. Register as a Worker\n2. View Available Job Matches\n3. Update Profile"
UPDATE_MENU_OPTIONS = "1. Skill\n2. Location\n3. Back to Main Menu"
INVALID_OPTION = "Invalid option. Please choose:"

GENERIC_ERROR = END + "An error occurred. Please try again later."
NOT_REGISTERED = END + "You are not registered yet. Please register first."
ALREADY_REGISTERED = END + "You are already registered."
REGISTRATION_REJECTED = END + "Registration failed. Your phone number cannot be registered with this service."
NO_JOB_MATCHES = (
    END + "No job matches found. We'll notify you when new matching jobs are available."
)
NAME_PROMPT = CONTINUE + "Enter your full name:"


def numbered(options: Sequence[str]) -> str:
    return "\n".join(f"{i}. {option}" for i, option in enumerate(options, 1))


def main_menu(invalid: bool = False) -> str:
    if invalid:
        return f"{CONTINUE}{INVALID_OPTION}\n{MAIN_MENU_OPTIONS}"
    return f"{CONTINUE}Welcome to Yaya - Construction Jobs\nChoose an option:\n{MAIN_MENU_OPTIONS}"


def update_menu(invalid: bool = False) -> str:
    if invalid:
        return f"{CONTINUE}{INVALID_OPTION}\n{UPDATE_MENU_OPTIONS}"
    return f"{CONTINUE}Update Profile\nWhat would you like to update?\n{UPDATE_MENU_OPTIONS}"


def skill_list(invalid: bool = False, new: bool = False) -> str:
    if invalid:
        header = "Invalid selection. Please select a skill:"
    elif new:
        header = "Select your new skill:"
    else:
        header = "Select your skill:"
    return f"{CONTINUE}{header}\n{numbered(SKILLS)}"


def location_list(invalid: bool = False, new: bool = False) -> str:
    if invalid:
        header = "Invalid selection. Please select a location:"
    elif new:
        header = "Select your new location:"
    else:
        header = "Select your location:"
    return f"{CONTINUE}{header}\n{numbered(LOCATIONS)}"


def registration_success(worker: Worker, service_code: str) -> str:
    return (
        f"{END}Registration successful!\n\n"
        f"Your profile:\n"
        f"Name: {worker.name}\n"
        f"Phone: {worker.phone}\n"
        f"Skill: {worker.skill.value}\n"
        f"Location: {worker.location.value}\n\n"
        f"You will receive SMS notifications when matching jobs are posted. "
        f"Dial {service_code} to check your job matches at any time."
    )


def skill_updated(skill: str) -> str:
    return f"{END}Your skill has been updated to: {skill}\n\nYou will now receive job matches for {skill} jobs."


def location_updated(location: str) -> str:
    return (
        f"{END}Your location has been updated to: {location}\n\n"
        f"You will now receive job matches for jobs in {location}."
    )


def update_failed(field_name: str) -> str:
    return f"{END}Failed to update your {field_name}. Please try again later."


def job_detail(job: Job, reply_number: str) -> str:
    """Full description of a single matching job."""
    details = f"\nDetails: {job.additional_notes}" if job.additional_notes else ""
    return (
        f"{END}JOB OPPORTUNITY\n\n"
        f"Skill: {job.skill_required.value}\n"
        f"Location: {job.location.value}\n"
        f"Payment: KSh {job.daily_rate}/day\n"
        f"Duration: {job.project_duration.value}{details}\n"
        f"Posted: {format_date(job.created_at)}\n\n"
        f"To apply, call: {job.contact_phone}\n\n"
        f"Reply YES to {reply_number} if interested."
    )


def job_list(jobs: List[Job], service_code: str) -> str:
    """Short summaries of several jobs, in the order given."""
    lines = [f"{END}Your available job matches:\n\n"]
    for i, job in enumerate(jobs, 1):
        lines.append(
            f"{i}. {job.skill_required.value} in {job.location.value}\n"
            f"   Pay: KSh {job.daily_rate}/day, {job.project_duration.value}\n"
            f"   Call: {job.contact_phone}\n"
            f"   Posted: {format_date(job.created_at)}\n\n"
        )
    lines.append(f"Dial {service_code} and select option 2 to view again.")
    return "".join(lines)
