"""Extracts the newest user input from the accumulated USSD history.

The gateway resends the whole interaction on every request as a
``*``-delimited path ("1*John Mwangi*3"). The session remembers how many
segments it has already consumed, so the new input is whatever follows that
position. Free text containing ``*`` therefore survives intact.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DELIMITER = "*"


class InputKind(str, Enum):
    """How a request relates to what the session has already seen."""

    INITIAL = "initial"
    REPEAT = "repeat"
    TOKEN = "token"


@dataclass(frozen=True)
class DecodedInput:
    """Result of decoding one request.

    Attributes:
        kind: INITIAL for an empty history, REPEAT for a duplicated request,
            TOKEN when there is new input
        token: The new input (empty unless kind is TOKEN)
        position: Number of history segments consumed once this request is handled
    """

    kind: InputKind
    token: str = ""
    position: int = 0

    @property
    def is_initial(self) -> bool:
        return self.kind == InputKind.INITIAL

    @property
    def is_repeat(self) -> bool:
        return self.kind == InputKind.REPEAT


def decode_input(text: Optional[str], consumed: Optional[int] = None) -> DecodedInput:
    """Decode the newest token from the history string.

    Args:
        text: Accumulated history as sent by the gateway (may be empty)
        consumed: Segments already consumed by the session, or None when unknown

    Examples:
        >>> decode_input("", 3).kind
        <InputKind.INITIAL: 'initial'>
        >>> decode_input("1*John*Doe", 1).token
        'John*Doe'
        >>> decode_input("1*John", 2).kind
        <InputKind.REPEAT: 'repeat'>
        >>> decode_input("1*2*3").token
        '3'
    """
    if not text:
        return DecodedInput(kind=InputKind.INITIAL, position=0)

    segments = text.split(DELIMITER)
    total = len(segments)

    if consumed is not None and 0 <= consumed <= total:
        if consumed == total:
            return DecodedInput(kind=InputKind.REPEAT, position=total)
        return DecodedInput(
            kind=InputKind.TOKEN,
            token=DELIMITER.join(segments[consumed:]),
            position=total,
        )

    # Unknown session or history shorter than the stored position
    return DecodedInput(kind=InputKind.TOKEN, token=segments[-1], position=total)
