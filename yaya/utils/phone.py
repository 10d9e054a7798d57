"""Phone number normalisation for the SMS gateway."""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: str, default_country_code: Optional[str] = None) -> str:
    """Normalise a phone number to the international ``+<digits>`` form.

    Whitespace is removed everywhere. A local number with a leading ``0`` is
    rewritten with ``default_country_code`` when one is given. A ``+`` prefix
    is added once, so already-normalised numbers come back unchanged.

    Args:
        phone: Phone number as entered or as received from the USSD gateway
        default_country_code: Dialling code without '+', e.g. "254"

    Returns:
        Normalised phone number

    Raises:
        ValueError: If the number is empty

    Example:
        >>> normalize_phone("0712 345 678", "254")
        '+254712345678'
        >>> normalize_phone("+254712345678", "254")
        '+254712345678'
    """
    cleaned = _WHITESPACE.sub("", phone or "")
    if not cleaned:
        raise ValueError("Phone number cannot be empty")

    if cleaned.startswith("+"):
        return cleaned

    if default_country_code and cleaned.startswith("0"):
        cleaned = default_country_code.lstrip("+") + cleaned[1:]

    return "+" + cleaned
