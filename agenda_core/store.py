from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Sequence

from .errors import ConflictError, ReferentialError, ValidationError
from .models import (
    FOREIGN_KEYS,
    RESOURCE_KINDS,
    RESOURCE_LABELS,
    AGENDAMENTO,
    Agendamento,
    AgendamentoBase,
)
from .registry import ResourceRegistry
from .repository import StateRepository
from .results import OperationResult, returns_result
from .utils import blank_to_none, parse_hhmm, parse_iso_date, require_text, times_overlap

logger = logging.getLogger(__name__)


def clean_dates(dates: Iterable[str | date | None]) -> List[date]:
    """Descarta entradas vazias ou invalidas, preservando ordem e repeticoes."""
    result: List[date] = []
    for raw in dates:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        try:
            result.append(parse_iso_date(raw))
        except ValidationError:
            logger.warning("Data ignorada no lote: %r", raw)
    return result


class AgendamentoStore:
    """Cria, altera e remove agendamentos validando contra os cadastros."""

    def __init__(
        self,
        repository: StateRepository,
        registry: ResourceRegistry,
        *,
        detectar_conflitos: bool = False,
        max_datas_por_lote: int = 0,
    ) -> None:
        self.repository = repository
        self.registry = registry
        self.detectar_conflitos = detectar_conflitos
        self.max_datas_por_lote = max_datas_por_lote

    # leitura -----------------------------------------------------------
    def list_all(self) -> List[Agendamento]:
        return [replace(item) for item in self.repository.state.agendamentos.values()]

    def get(self, agendamento_id: int) -> Agendamento | None:
        item = self.repository.state.agendamentos.get(agendamento_id)
        return replace(item) if item else None

    # escrita -----------------------------------------------------------
    @returns_result("agendamento.criar")
    def create(self, base: AgendamentoBase, dates: Sequence[str | date | None]) -> OperationResult:
        valid_dates = clean_dates(dates)
        self._require_fields(base)
        if not valid_dates:
            raise ValidationError("Informe ao menos uma data valida.")
        if self.max_datas_por_lote and len(valid_dates) > self.max_datas_por_lote:
            raise ValidationError(f"Limite de {self.max_datas_por_lote} datas por lote excedido.")
        inicio, fim = self._check_times(base.hora_inicio, base.hora_fim)
        self._check_references(base.oficina_id, base.educador_id, base.turma_id)
        drafts = [
            Agendamento(
                id=0,
                oficina_id=base.oficina_id,
                educador_id=base.educador_id,
                turma_id=base.turma_id,
                data=when,
                hora_inicio=inicio,
                hora_fim=fim,
                observacoes=blank_to_none(base.observacoes),
            )
            for when in valid_dates
        ]
        if self.detectar_conflitos:
            self._check_conflicts(drafts)

        state = self.repository.state
        self.repository.push_history("agendamento.create")
        created: List[int] = []
        for draft in drafts:
            draft.id = state.next_id(AGENDAMENTO)
            assert draft.id not in state.agendamentos, f"colisao de id de agendamento: {draft.id}"
            state.agendamentos[draft.id] = draft
            created.append(draft.id)
        logger.info("%d agendamento(s) criado(s): %s", len(created), created)
        return OperationResult.ok(created_ids=tuple(created))

    @returns_result("agendamento.atualizar")
    def update(self, record: Agendamento) -> OperationResult:
        state = self.repository.state
        if record.id not in state.agendamentos:
            raise ValidationError(f"Agendamento nao encontrado: {record.id}")
        self._require_fields(record)
        if record.data is None or record.data == "":
            raise ValidationError("Preencha a data do agendamento.")
        when = parse_iso_date(record.data)
        inicio, fim = self._check_times(record.hora_inicio, record.hora_fim)
        self._check_references(record.oficina_id, record.educador_id, record.turma_id)
        updated = Agendamento(
            id=record.id,
            oficina_id=record.oficina_id,
            educador_id=record.educador_id,
            turma_id=record.turma_id,
            data=when,
            hora_inicio=inicio,
            hora_fim=fim,
            observacoes=blank_to_none(record.observacoes),
        )
        if self.detectar_conflitos:
            self._check_conflicts([updated])
        self.repository.push_history("agendamento.update")
        state.agendamentos[updated.id] = updated
        logger.info("Agendamento %s atualizado", updated.id)
        return OperationResult.ok(record=replace(updated))

    def delete(self, agendamento_id: int) -> None:
        state = self.repository.state
        if agendamento_id not in state.agendamentos:
            return
        self.repository.push_history("agendamento.remove")
        del state.agendamentos[agendamento_id]
        logger.info("Agendamento %s removido", agendamento_id)

    # validacoes --------------------------------------------------------
    @staticmethod
    def _require_fields(base: AgendamentoBase | Agendamento) -> None:
        missing = [
            label
            for label, value in (
                ("oficina", base.oficina_id),
                ("educador", base.educador_id),
                ("turma", base.turma_id),
                ("hora de inicio", base.hora_inicio),
                ("hora de termino", base.hora_fim),
            )
            if value is None or value == "" or value == 0
        ]
        if missing:
            raise ValidationError(f"Preencha todos os campos obrigatorios: {', '.join(missing)}.")
        require_text(base.observacoes, "observacoes")

    @staticmethod
    def _check_times(hora_inicio: str, hora_fim: str) -> tuple[str, str]:
        inicio = parse_hhmm(hora_inicio)
        fim = parse_hhmm(hora_fim)
        if inicio >= fim:
            raise ValidationError("O horario de termino deve ser posterior ao horario de inicio.")
        return inicio, fim

    def _check_references(self, oficina_id: int, educador_id: int, turma_id: int) -> None:
        ids = {"oficina": oficina_id, "educador": educador_id, "turma": turma_id}
        for kind in RESOURCE_KINDS:
            if not self.registry.exists(kind, ids[kind]):
                raise ReferentialError(f"{RESOURCE_LABELS[kind]} inexistente: {ids[kind]}")

    def _check_conflicts(self, drafts: Sequence[Agendamento]) -> None:
        """Recusa sobreposicao de horario para o mesmo educador ou a mesma turma."""
        draft_ids = {draft.id for draft in drafts if draft.id}
        checked: List[Agendamento] = [
            item for item in self.repository.state.agendamentos.values() if item.id not in draft_ids
        ]
        for draft in drafts:
            for other in checked:
                if other.data != draft.data:
                    continue
                if not times_overlap(draft.hora_inicio, draft.hora_fim, other.hora_inicio, other.hora_fim):
                    continue
                for kind in ("educador", "turma"):
                    field_name = FOREIGN_KEYS[kind]
                    if getattr(draft, field_name) == getattr(other, field_name):
                        raise ConflictError(
                            f"{RESOURCE_LABELS[kind]} ja agendado(a) em {draft.data.isoformat()} "
                            f"das {other.hora_inicio} as {other.hora_fim}."
                        )
            checked.append(draft)
