from __future__ import annotations

from typing import List

from .errors import IntegrityViolation
from .models import RESOURCE_LABELS, RESOURCE_KINDS
from .repository import StateRepository


class IntegrityGuard:
    """Impede a remocao de recursos ainda referenciados por agendamentos.

    A verificacao e consultiva: quem remove (o registro) chama o guarda
    antes de efetivar. Seguro apenas com um unico escritor por vez; o
    container web serializa as chamadas com um lock.
    """

    def __init__(self, repository: StateRepository) -> None:
        self.repository = repository

    def referencias(self, kind: str, resource_id: int) -> List[int]:
        if kind not in RESOURCE_KINDS:
            raise KeyError(kind)
        return sorted(
            agendamento.id
            for agendamento in self.repository.state.agendamentos.values()
            if agendamento.references(kind, resource_id)
        )

    def can_delete(self, kind: str, resource_id: int) -> bool:
        return not self.referencias(kind, resource_id)

    def ensure_can_delete(self, kind: str, resource_id: int) -> None:
        refs = self.referencias(kind, resource_id)
        if refs:
            raise IntegrityViolation(
                f"{RESOURCE_LABELS[kind]} {resource_id} possui {len(refs)} agendamento(s) associado(s); "
                "remova-os antes de excluir."
            )
