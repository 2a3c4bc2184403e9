from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class AgendaError(Exception):
    message: str
    code: int

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class UsageError(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 2)


class ValidationError(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 3)


class ReferentialError(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 4)


class IntegrityViolation(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 5)


class ConflictError(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 6)


class IOErrorWithCode(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 7)


class InternalError(AgendaError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 8)
