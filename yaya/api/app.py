"""FastAPI application exposing the USSD callback and the job/worker API.

Endpoints:

  POST /api/ussd                               USSD gateway callback (text/plain)
  POST /api/sms                                Inbound SMS webhook (acknowledged only)
  POST /api/jobs                               Post a job, match and notify workers
  GET  /api/jobs/{job_id}/matches              Notification status per match
  POST /api/workers/register                   Register a worker directly
  GET  /api/workers/count                      Available workers for skill + location
  GET  /api/skills, /api/locations, /api/durations
  POST /api/notifications/job-match/{match_id} (Re)send one match notification
  GET  /health                                 Health check

Collaborators are passed in to create_app(); the app holds no global state.
"""

import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from yaya import __version__
from yaya.dialog.machine import DialogStateMachine
from yaya.dialog.prompts import END, GENERIC_ERROR
from yaya.domain.models import (
    DURATIONS,
    LOCATIONS,
    SKILLS,
    JobCreate,
    Location,
    Skill,
    WorkerCreate,
)
from yaya.logging import get_logger, mask_phone
from yaya.matching.engine import WorkerMatcher
from yaya.notifications.service import NotificationService
from yaya.persistence.exceptions import DataIntegrityError, PersistenceError
from yaya.persistence.store import DirectoryStore
from yaya.pipeline.runner import JobPostingPipeline

logger = get_logger(__name__, component="api")

MISSING_SESSION_FIELDS = END + "Session ID and phone number are required"

# Request bodies whose validation errors get a resource-specific message
_INVALID_BODY_MESSAGES = {
    "/api/jobs": "Invalid job data",
    "/api/workers/register": "Invalid worker data",
}


def _error(status_code: int, message: str, **fields) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **fields})


def create_app(
    directory: DirectoryStore,
    dialog: DialogStateMachine,
    pipeline: JobPostingPipeline,
    matcher: WorkerMatcher,
    notification_service: NotificationService,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Yaya Labor",
        description="USSD job matching for construction workers",
        version=__version__,
    )
    started_at = time.time()

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _INVALID_BODY_MESSAGES.get(request.url.path, "Invalid request")
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return _error(400, message, errors=errors)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "uptime": round(time.time() - started_at, 1)}

    # USSD

    @app.post("/api/ussd", response_class=PlainTextResponse)
    async def ussd_callback(request: Request) -> PlainTextResponse:
        """Gateway callback. Always answers 200 with a CON/END body."""
        form = await request.form()
        params = request.query_params

        def field(name: str) -> Optional[str]:
            value = form.get(name)
            if value is None:
                value = params.get(name)
            return value if isinstance(value, str) else None

        session_id = field("sessionId")
        phone_number = field("phoneNumber")
        text = field("text") or field("ussdString") or ""

        if not session_id or not phone_number:
            logger.warning(
                "USSD request missing session id or phone number",
                extra={"event": "api.ussd.invalid_request"},
            )
            return PlainTextResponse(MISSING_SESSION_FIELDS)

        try:
            response = await run_in_threadpool(dialog.handle, session_id, phone_number, text)
        except Exception as e:
            logger.error(
                f"USSD handling failed: {e}",
                extra={"event": "api.ussd.failed", "phone": mask_phone(phone_number)},
                exc_info=True,
            )
            response = GENERIC_ERROR
        return PlainTextResponse(response)

    @app.post("/api/sms")
    async def sms_callback(request: Request) -> JSONResponse:
        """Inbound SMS from workers. Replies are logged; no state changes."""
        form = await request.form()
        sender = form.get("from")
        text = form.get("text")
        if not sender or not text:
            return _error(400, "From and text parameters are required")

        logger.info(
            "Inbound SMS received",
            extra={"event": "api.sms.received", "phone": mask_phone(str(sender)), "length": len(str(text))},
        )
        return JSONResponse({"message": "SMS processed successfully"})

    # Jobs

    @app.post("/api/jobs", status_code=201)
    def create_job(job: JobCreate):
        try:
            result = pipeline.post_job(job)
        except PersistenceError as e:
            logger.error(f"Failed to create job: {e}", extra={"event": "api.job.failed"})
            return _error(500, "Failed to create job")

        body = result.job.model_dump(mode="json")
        body["matched_workers"] = result.matched_workers
        return JSONResponse(status_code=201, content=body)

    @app.get("/api/jobs/{job_id}/matches")
    def job_matches(job_id: int):
        try:
            job = directory.get_job(job_id)
            if job is None:
                return _error(404, f"Job {job_id} not found")
            matches = directory.list_matches_for_job(job_id)
        except PersistenceError as e:
            logger.error(f"Failed to list matches: {e}", extra={"event": "api.matches.failed"})
            return _error(500, "Failed to list matches")

        return {
            "job_id": job_id,
            "matches": [match.model_dump(mode="json") for match in matches],
        }

    # Workers

    @app.post("/api/workers/register", status_code=201)
    def register_worker(worker: WorkerCreate):
        try:
            if directory.get_worker_by_phone(worker.phone) is not None:
                return _error(409, "Phone number already registered")
            created = directory.create_worker(worker)
        except DataIntegrityError:
            return _error(409, "Phone number already registered")
        except PersistenceError as e:
            logger.error(f"Failed to register worker: {e}", extra={"event": "api.worker.failed"})
            return _error(500, "Failed to register worker")

        logger.info(
            "Worker registered via API",
            extra={"event": "api.worker.registered", "worker_id": created.id},
        )
        return JSONResponse(status_code=201, content=created.model_dump(mode="json"))

    @app.get("/api/workers/count")
    def worker_count(skill: Optional[str] = None, location: Optional[str] = None):
        if not skill or not location:
            return _error(400, "Skill and location are required")
        try:
            count = matcher.count_workers(Skill(skill), Location(location))
        except ValueError:
            return _error(400, "Unknown skill or location")
        except PersistenceError as e:
            logger.error(f"Failed to count workers: {e}", extra={"event": "api.count.failed"})
            return _error(500, "Failed to get worker count")
        return {"count": count}

    # Reference data

    @app.get("/api/skills")
    def skills() -> dict:
        return {"skills": SKILLS}

    @app.get("/api/locations")
    def locations() -> dict:
        return {"locations": LOCATIONS}

    @app.get("/api/durations")
    def durations() -> dict:
        return {"durations": DURATIONS}

    # Notifications

    @app.post("/api/notifications/job-match/{match_id}")
    def send_job_match(match_id: int):
        result = notification_service.send_job_match(match_id)
        if result.status == "not_found":
            return _error(404, "Match not found or missing related data")
        if not result.is_success():
            return _error(502, "Failed to send SMS notification", error=result.error)
        return {
            "message": "SMS notification sent successfully",
            "result": result.provider_result,
        }

    return app
