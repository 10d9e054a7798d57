"""Typed dialog states.

Each state carries only the fields its step needs. A state is stored as its
``step`` name plus a JSON object holding the remaining fields.
"""

import json
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from yaya.domain.models import Skill


class MainMenu(BaseModel):
    step: Literal["main_menu"] = "main_menu"
    # END text of the request that closed the dialog, replayed for a retried copy
    closing: Optional[str] = None


class RegisterName(BaseModel):
    step: Literal["register_name"] = "register_name"


class RegisterSkill(BaseModel):
    step: Literal["register_skill"] = "register_skill"
    name: str


class SelectLocation(BaseModel):
    step: Literal["select_location"] = "select_location"
    name: str
    skill: Skill


class UpdateProfileMenu(BaseModel):
    step: Literal["update_profile_menu"] = "update_profile_menu"
    worker_id: int


class UpdateSkill(BaseModel):
    step: Literal["update_skill"] = "update_skill"
    worker_id: int


class UpdateLocation(BaseModel):
    step: Literal["update_location"] = "update_location"
    worker_id: int


DialogState = Annotated[
    Union[
        MainMenu,
        RegisterName,
        RegisterSkill,
        SelectLocation,
        UpdateProfileMenu,
        UpdateSkill,
        UpdateLocation,
    ],
    Field(discriminator="step"),
]

_state_adapter = TypeAdapter(DialogState)


class StateDecodeError(ValueError):
    """Raised when a stored step/data pair is not a valid dialog state."""

    pass


def encode_state(state: DialogState) -> Tuple[str, str]:
    """Split a state into its stored ``(step, data)`` pair."""
    return state.step, state.model_dump_json(exclude={"step"}, exclude_none=True)


def decode_state(step: str, data: str) -> DialogState:
    """Rebuild a state from its stored ``(step, data)`` pair.

    Raises:
        StateDecodeError: If the step is unknown or the data does not fit it
    """
    try:
        payload = json.loads(data or "{}")
    except json.JSONDecodeError as e:
        raise StateDecodeError(f"Step data for '{step}' is not valid JSON") from e

    if not isinstance(payload, dict):
        raise StateDecodeError(f"Step data for '{step}' must be a JSON object")

    payload["step"] = step
    try:
        return _state_adapter.validate_python(payload)
    except ValidationError as e:
        raise StateDecodeError(f"Invalid stored state '{step}': {e}") from e
