"""Errors raised while translating Brainfuck to Piet."""
from typing import Optional


class TranslationError(RuntimeError):
    pass


class MalformedProgramError(TranslationError):
    """Unbalanced `[` / `]` in the source program."""

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class LayoutError(TranslationError):
    """The painted geometry no longer matches the loop bookkeeping."""


class ConfigError(ValueError):
    pass
