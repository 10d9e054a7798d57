"""USSD dialog state machine.

Each request carries the session id, the caller's phone number and the full
``*``-delimited history. The machine loads the session, decodes the new
token, applies one transition and saves the resulting state before the
response is returned, so a duplicated request sees the post-transition state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Type

from pydantic import ValidationError

from yaya.config.models import DialogConfig
from yaya.domain.models import (
    DialogSessionRecord,
    Job,
    Location,
    Skill,
    WorkerCreate,
)
from yaya.logging import get_logger, mask_phone
from yaya.logging.context import log_context
from yaya.persistence.exceptions import DataIntegrityError, PersistenceError
from yaya.persistence.store import DirectoryStore, SessionStore

from . import prompts
from .decoder import DecodedInput, decode_input
from .states import (
    DialogState,
    MainMenu,
    RegisterName,
    RegisterSkill,
    SelectLocation,
    StateDecodeError,
    UpdateLocation,
    UpdateProfileMenu,
    UpdateSkill,
    decode_state,
    encode_state,
)

logger = get_logger(__name__, component="dialog")

MAX_NAME_LENGTH = 120


@dataclass
class Transition:
    """Next state and the text returned to the gateway."""

    state: DialogState
    response: str

    @property
    def is_terminal(self) -> bool:
        return self.response.startswith(prompts.END)


def pick_option(options: Sequence[Enum], token: str) -> Optional[Enum]:
    """Resolve a 1-based menu choice, or None if it is not a valid index."""
    # isdigit() also accepts superscripts and other Unicode digits int() rejects
    if not (token.isascii() and token.isdigit()):
        return None
    index = int(token)
    if 1 <= index <= len(options):
        return options[index - 1]
    return None


class DialogStateMachine:
    """Drives the registration, job listing and profile update menus.

    Example:
        >>> machine = DialogStateMachine(store, store, DialogConfig())
        >>> machine.handle("s1", "0712345678", "")
        'CON Welcome to Yaya - Construction Jobs\\n...'
    """

    def __init__(
        self,
        directory: DirectoryStore,
        sessions: SessionStore,
        config: Optional[DialogConfig] = None,
    ):
        self.directory = directory
        self.sessions = sessions
        self.config = config or DialogConfig()
        self._handlers: Dict[Type, Callable[..., Transition]] = {
            MainMenu: self._on_main_menu,
            RegisterName: self._on_register_name,
            RegisterSkill: self._on_register_skill,
            SelectLocation: self._on_select_location,
            UpdateProfileMenu: self._on_update_menu,
            UpdateSkill: self._on_update_skill,
            UpdateLocation: self._on_update_location,
        }

    def handle(self, session_id: str, phone_number: str, text: Optional[str]) -> str:
        """Process one gateway request and return a "CON ..." or "END ..." response.

        Never raises: any fault ends the dialog with a generic error message.
        """
        with log_context(session_id=session_id):
            try:
                return self._handle(session_id, phone_number, text or "")
            except Exception as e:
                logger.error(
                    f"Dialog request failed: {e}",
                    extra={
                        "event": "dialog.request.failed",
                        "phone": mask_phone(phone_number),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                return prompts.GENERIC_ERROR

    def _handle(self, session_id: str, phone_number: str, text: str) -> str:
        record = self.sessions.load_dialog_session(session_id)
        decoded = decode_input(text, record.input_position if record else None)

        if decoded.is_initial:
            logger.info(
                "Dialog started",
                extra={"event": "dialog.started", "phone": mask_phone(phone_number)},
            )
            return self._commit(session_id, phone_number, decoded, Transition(MainMenu(), prompts.main_menu()))

        state = self._restore_state(record)
        if state is None:
            return self._commit(session_id, phone_number, decoded, Transition(MainMenu(), prompts.main_menu()))

        if decoded.is_repeat:
            logger.info(
                "Duplicate request, repeating current prompt",
                extra={"event": "dialog.request.repeated", "step": state.step},
            )
            if isinstance(state, MainMenu) and state.closing:
                return state.closing
            return self.prompt_for(state)

        handler = self._handlers[type(state)]
        transition = handler(state, decoded.token.strip(), phone_number)

        logger.debug(
            "Dialog step handled",
            extra={
                "event": "dialog.step.handled",
                "from_step": state.step,
                "to_step": transition.state.step,
                "terminal": transition.is_terminal,
            },
        )
        return self._commit(session_id, phone_number, decoded, transition)

    def _restore_state(self, record: Optional[DialogSessionRecord]) -> Optional[DialogState]:
        """Decode the stored state; None when it is unknown or corrupt."""
        if record is None:
            return MainMenu()
        try:
            return decode_state(record.step, record.data)
        except StateDecodeError as e:
            logger.warning(
                f"Resetting unreadable dialog state: {e}",
                extra={"event": "dialog.state.reset", "step": record.step},
            )
            return None

    def _commit(
        self,
        session_id: str,
        phone_number: str,
        decoded: DecodedInput,
        transition: Transition,
    ) -> str:
        state = transition.state
        if transition.is_terminal and isinstance(state, MainMenu):
            state = MainMenu(closing=transition.response)
        step, data = encode_state(state)
        self.sessions.save_dialog_session(
            DialogSessionRecord(
                session_id=session_id,
                phone_number=phone_number,
                step=step,
                data=data,
                input_position=decoded.position,
            )
        )
        return transition.response

    def prompt_for(self, state: DialogState) -> str:
        """The prompt shown while waiting for input in ``state``."""
        if isinstance(state, RegisterName):
            return prompts.NAME_PROMPT
        if isinstance(state, RegisterSkill):
            return prompts.skill_list()
        if isinstance(state, SelectLocation):
            return prompts.location_list()
        if isinstance(state, UpdateProfileMenu):
            return prompts.update_menu()
        if isinstance(state, UpdateSkill):
            return prompts.skill_list(new=True)
        if isinstance(state, UpdateLocation):
            return prompts.location_list(new=True)
        return prompts.main_menu()

    # Transition handlers

    def _on_main_menu(self, state: MainMenu, token: str, phone_number: str) -> Transition:
        if token == "1":
            return Transition(RegisterName(), prompts.NAME_PROMPT)

        if token == "2":
            worker = self.directory.get_worker_by_phone(phone_number)
            if worker is None:
                return Transition(MainMenu(), prompts.NOT_REGISTERED)
            jobs = self.directory.find_active_jobs(worker.skill, worker.location)
            return Transition(MainMenu(), self._render_jobs(jobs))

        if token == "3":
            worker = self.directory.get_worker_by_phone(phone_number)
            if worker is None:
                return Transition(MainMenu(), prompts.NOT_REGISTERED)
            return Transition(UpdateProfileMenu(worker_id=worker.id), prompts.update_menu())

        return Transition(MainMenu(), prompts.main_menu(invalid=True))

    def _on_register_name(self, state: RegisterName, token: str, phone_number: str) -> Transition:
        if not token:
            return Transition(state, prompts.NAME_PROMPT)
        return Transition(RegisterSkill(name=token[:MAX_NAME_LENGTH]), prompts.skill_list())

    def _on_register_skill(self, state: RegisterSkill, token: str, phone_number: str) -> Transition:
        skill = pick_option(list(Skill), token)
        if skill is None:
            return Transition(state, prompts.skill_list(invalid=True))
        return Transition(SelectLocation(name=state.name, skill=skill), prompts.location_list())

    def _on_select_location(self, state: SelectLocation, token: str, phone_number: str) -> Transition:
        location = pick_option(list(Location), token)
        if location is None:
            return Transition(state, prompts.location_list(invalid=True))

        if self.directory.get_worker_by_phone(phone_number) is not None:
            return Transition(MainMenu(), prompts.ALREADY_REGISTERED)

        try:
            new_worker = WorkerCreate(
                name=state.name,
                phone=phone_number,
                skill=state.skill,
                location=location,
                is_available=True,
            )
        except ValidationError as e:
            logger.warning(
                f"Rejected registration details: {e.error_count()} invalid field(s)",
                extra={"event": "dialog.worker.invalid", "phone": mask_phone(phone_number)},
            )
            return Transition(MainMenu(), prompts.REGISTRATION_REJECTED)

        try:
            worker = self.directory.create_worker(new_worker)
        except DataIntegrityError:
            # Lost a race with another session registering the same phone
            return Transition(MainMenu(), prompts.ALREADY_REGISTERED)

        logger.info(
            "Worker registered",
            extra={
                "event": "dialog.worker.registered",
                "worker_id": worker.id,
                "skill": worker.skill.value,
                "location": worker.location.value,
            },
        )
        return Transition(MainMenu(), prompts.registration_success(worker, self.config.service_code))

    def _on_update_menu(self, state: UpdateProfileMenu, token: str, phone_number: str) -> Transition:
        if token == "1":
            return Transition(UpdateSkill(worker_id=state.worker_id), prompts.skill_list(new=True))
        if token == "2":
            return Transition(UpdateLocation(worker_id=state.worker_id), prompts.location_list(new=True))
        if token == "3":
            return Transition(MainMenu(), prompts.main_menu())
        return Transition(state, prompts.update_menu(invalid=True))

    def _on_update_skill(self, state: UpdateSkill, token: str, phone_number: str) -> Transition:
        skill = pick_option(list(Skill), token)
        if skill is None:
            return Transition(state, prompts.skill_list(invalid=True))

        try:
            self.directory.update_worker_skill(state.worker_id, skill)
        except PersistenceError as e:
            logger.error(
                f"Failed to update worker skill: {e}",
                extra={"event": "dialog.worker.update_failed", "worker_id": state.worker_id},
            )
            return Transition(MainMenu(), prompts.update_failed("skill"))

        logger.info(
            "Worker skill updated",
            extra={"event": "dialog.worker.updated", "worker_id": state.worker_id, "skill": skill.value},
        )
        return Transition(MainMenu(), prompts.skill_updated(skill.value))

    def _on_update_location(self, state: UpdateLocation, token: str, phone_number: str) -> Transition:
        location = pick_option(list(Location), token)
        if location is None:
            return Transition(state, prompts.location_list(invalid=True))

        try:
            self.directory.update_worker_location(state.worker_id, location)
        except PersistenceError as e:
            logger.error(
                f"Failed to update worker location: {e}",
                extra={"event": "dialog.worker.update_failed", "worker_id": state.worker_id},
            )
            return Transition(MainMenu(), prompts.update_failed("location"))

        logger.info(
            "Worker location updated",
            extra={
                "event": "dialog.worker.updated",
                "worker_id": state.worker_id,
                "location": location.value,
            },
        )
        return Transition(MainMenu(), prompts.location_updated(location.value))

    def _render_jobs(self, jobs: List[Job]) -> str:
        if not jobs:
            return prompts.NO_JOB_MATCHES
        if len(jobs) == 1:
            return prompts.job_detail(jobs[0], self.config.reply_number)
        # Stored oldest first; show the newest few, newest first
        recent = list(reversed(jobs[-self.config.max_listed_jobs:]))
        return prompts.job_list(recent, self.config.service_code)
