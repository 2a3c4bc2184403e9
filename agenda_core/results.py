from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .errors import AgendaError

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class OperationResult:
    """Sinal de sucesso/falha devolvido pelas operacoes de escrita."""

    success: bool
    created_ids: tuple[int, ...] = ()
    record: Any = None
    error: AgendaError | None = None

    def __bool__(self) -> bool:
        return self.success

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    @classmethod
    def ok(cls, *, created_ids: tuple[int, ...] = (), record: Any = None) -> "OperationResult":
        return cls(success=True, created_ids=tuple(created_ids), record=record)

    @classmethod
    def fail(cls, error: AgendaError) -> "OperationResult":
        return cls(success=False, error=error)


def returns_result(label: str) -> Callable[[F], F]:
    """Converte AgendaError levantado pela operacao em OperationResult de falha."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
            try:
                return func(*args, **kwargs)
            except AgendaError as exc:
                logger.info("%s recusado (%s): %s", label, type(exc).__name__, exc.message)
                return OperationResult.fail(exc)

        return wrapper  # type: ignore[return-value]

    return decorator
