from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Optional

from .errors import ValidationError
from .integrity import IntegrityGuard
from .models import EDUCADOR, RESOURCE_KINDS, RESOURCE_LABELS, RESOURCE_TYPES
from .repository import StateRepository
from .results import OperationResult, returns_result
from .utils import require_text, sort_key_name

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "oficina": ("nome",),
    "educador": ("nome", "email", "telefone"),
    "turma": ("nome",),
}


class ResourceRegistry:
    """Cadastros de oficinas, educadores e turmas."""

    def __init__(self, repository: StateRepository, guard: IntegrityGuard) -> None:
        self.repository = repository
        self.guard = guard

    def _table(self, kind: str) -> dict:
        if kind not in RESOURCE_KINDS:
            raise KeyError(kind)
        return self.repository.state.table(kind)

    # leitura -----------------------------------------------------------
    def exists(self, kind: str, resource_id: int) -> bool:
        return resource_id in self._table(kind)

    def get(self, kind: str, resource_id: int) -> Optional[Any]:
        record = self._table(kind).get(resource_id)
        return replace(record) if record else None

    def require(self, kind: str, resource_id: int) -> Any:
        record = self.get(kind, resource_id)
        if record is None:
            raise ValidationError(f"{RESOURCE_LABELS[kind]} nao encontrado(a): {resource_id}")
        return record

    def list(self, kind: str) -> List[Any]:
        items = (replace(record) for record in self._table(kind).values())
        return sorted(items, key=lambda record: (sort_key_name(record.nome), record.id))

    def display_name(self, kind: str, resource_id: int) -> str:
        record = self._table(kind).get(resource_id)
        return record.nome if record else "?"

    # escrita -----------------------------------------------------------
    @returns_result("recurso.adicionar")
    def add(self, kind: str, **fields: Any) -> OperationResult:
        self._check_fields(kind, fields)
        state = self.repository.state
        record = RESOURCE_TYPES[kind](id=0, **{key: fields.get(key) for key in EDITABLE_FIELDS[kind]})
        record.normalize()
        self._check_record(kind, record)
        self.repository.push_history(f"{kind}.add")
        record.id = state.next_id(kind)
        table = self._table(kind)
        assert record.id not in table, f"colisao de id em {kind}: {record.id}"
        table[record.id] = record
        logger.info("%s %s criado(a): %s", RESOURCE_LABELS[kind], record.id, record.nome)
        return OperationResult.ok(created_ids=(record.id,), record=replace(record))

    @returns_result("recurso.atualizar")
    def update(self, kind: str, resource_id: int, **fields: Any) -> OperationResult:
        self._check_fields(kind, fields)
        current = self._table(kind).get(resource_id)
        if current is None:
            raise ValidationError(f"{RESOURCE_LABELS[kind]} nao encontrado(a): {resource_id}")
        changes = {key: value for key, value in fields.items() if value is not None}
        updated = replace(current, **changes)
        updated.normalize()
        self._check_record(kind, updated)
        self.repository.push_history(f"{kind}.update")
        self._table(kind)[resource_id] = updated
        logger.info("%s %s atualizado(a)", RESOURCE_LABELS[kind], resource_id)
        return OperationResult.ok(record=replace(updated))

    @returns_result("recurso.remover")
    def remove(self, kind: str, resource_id: int) -> OperationResult:
        if resource_id not in self._table(kind):
            raise ValidationError(f"{RESOURCE_LABELS[kind]} nao encontrado(a): {resource_id}")
        self.guard.ensure_can_delete(kind, resource_id)
        self.repository.push_history(f"{kind}.remove")
        del self._table(kind)[resource_id]
        logger.info("%s %s removido(a)", RESOURCE_LABELS[kind], resource_id)
        return OperationResult.ok()

    @staticmethod
    def _check_fields(kind: str, fields: dict) -> None:
        unknown = set(fields) - set(EDITABLE_FIELDS[kind])
        if unknown:
            raise ValidationError(f"Campos desconhecidos para {kind}: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            require_text(value, key)

    @staticmethod
    def _check_record(kind: str, record: Any) -> None:
        if not record.nome:
            raise ValidationError(f"Preencha o nome do(a) {RESOURCE_LABELS[kind].lower()}.")
        if kind == EDUCADOR and record.email and "@" not in record.email:
            raise ValidationError(f"E-mail invalido: {record.email}")
