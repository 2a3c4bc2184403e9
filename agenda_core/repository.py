from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .errors import IOErrorWithCode, ValidationError
from .models import State

STATE_FILE_DEFAULT = Path("agenda.json")
HISTORY_LIMIT_DEFAULT = 64

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Snapshot:
    label: str
    timestamp: datetime
    state: State


class StateRepository:
    """Armazenamento em memoria do estado, com historico para desfazer."""

    def __init__(self, state: State | None = None, *, history_limit: int = HISTORY_LIMIT_DEFAULT) -> None:
        self.state: State = state or State()
        self.history: List[Snapshot] = []
        self.history_limit = history_limit

    @property
    def persistent(self) -> bool:
        return False

    def load(self, path: Path | None = None) -> None:
        raise IOErrorWithCode("Repositorio em memoria nao carrega arquivos.")

    def save(self, path: Path | None = None) -> None:
        raise IOErrorWithCode("Repositorio em memoria nao grava arquivos.")

    def push_history(self, label: str) -> None:
        snapshot = Snapshot(label=label, timestamp=datetime.now(timezone.utc), state=self.state.clone())
        self.history.append(snapshot)
        if len(self.history) > self.history_limit:
            self.history.pop(0)

    def undo(self) -> Snapshot:
        if not self.history:
            raise ValidationError("Nada para desfazer.")
        snapshot = self.history.pop()
        self.state = snapshot.state.clone()
        logger.info("Desfeito: %s", snapshot.label)
        return snapshot


class JsonStateRepository(StateRepository):
    def __init__(self, path: Path | None = None, *, history_limit: int = HISTORY_LIMIT_DEFAULT) -> None:
        super().__init__(history_limit=history_limit)
        self.path = path or STATE_FILE_DEFAULT
        if self.path.exists():
            self.load()

    @property
    def persistent(self) -> bool:
        return True

    def load(self, path: Path | None = None) -> None:
        target = path or self.path
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise IOErrorWithCode(f"Arquivo nao encontrado: {target}") from exc
        except json.JSONDecodeError as exc:
            raise IOErrorWithCode(f"JSON invalido em {target}: {exc}") from exc
        try:
            self.state = State.from_dict(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise IOErrorWithCode(f"Estado invalido em {target}: {exc}") from exc
        self.path = target
        logger.debug("Estado carregado de %s", target)

    def save(self, path: Path | None = None) -> None:
        target = path or self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(self.state.to_dict(), indent=2, ensure_ascii=False)
        target.write_text(data, encoding="utf-8")
        self.path = target
        logger.debug("Estado salvo em %s", target)
