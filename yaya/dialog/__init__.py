"""USSD dialog: input decoding, typed states and the menu state machine."""

from .decoder import DELIMITER, DecodedInput, InputKind, decode_input
from .machine import DialogStateMachine, Transition, pick_option
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

__all__ = [
    "DialogStateMachine",
    "Transition",
    "pick_option",
    "decode_input",
    "DecodedInput",
    "InputKind",
    "DELIMITER",
    "DialogState",
    "MainMenu",
    "RegisterName",
    "RegisterSkill",
    "SelectLocation",
    "UpdateProfileMenu",
    "UpdateSkill",
    "UpdateLocation",
    "StateDecodeError",
    "encode_state",
    "decode_state",
]
