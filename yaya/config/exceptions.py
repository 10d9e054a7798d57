"""Custom exceptions for configuration management."""

from typing import List, Optional


class ConfigurationError(Exception):
    """Raised when the config file or the environment cannot be used.

    ``source`` names where the problem was found (a file path or
    "environment") and prefixes the rendered message.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        source: Optional[str] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        self.source = source
        super().__init__(str(self))

    def __str__(self) -> str:
        lines = [f"[{self.source}] {self.message}" if self.source else self.message]
        if self.errors:
            lines += ["", "Validation Errors:"]
            lines += [f"  {n}. {err}" for n, err in enumerate(self.errors, start=1)]
        if self.suggestions:
            lines += ["", "Suggestions:"]
            lines += [f"  - {tip}" for tip in self.suggestions]
        return "\n".join(lines)
