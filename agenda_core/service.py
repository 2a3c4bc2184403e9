from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Sequence

from .calendario import CalendarMonth, montar_mes
from .config import Config
from .errors import UsageError, ValidationError
from .integrity import IntegrityGuard
from .models import (
    EDUCADOR,
    OFICINA,
    RESOURCE_KINDS,
    TURMA,
    Agendamento,
    AgendamentoBase,
    normalize_kind,
)
from .query import AgendamentoFiltro, filtrar
from .registry import EDITABLE_FIELDS, ResourceRegistry
from .repository import StateRepository
from .results import OperationResult, returns_result
from .store import AgendamentoStore
from .utils import parse_id, parse_iso_date, require_text, today_in

logger = logging.getLogger(__name__)


class AgendaService:
    """Raiz da aplicacao: cadastros, agendamentos e projecoes de leitura."""

    def __init__(self, repository: StateRepository, config: Config) -> None:
        self.repository = repository
        self.config = config
        self.guard = IntegrityGuard(repository)
        self.registry = ResourceRegistry(repository, self.guard)
        self.store = AgendamentoStore(
            repository,
            self.registry,
            detectar_conflitos=config.agenda.detectar_conflitos,
            max_datas_por_lote=config.agenda.max_datas_por_lote,
        )
        self._operations: Dict[str, Callable[[Mapping[str, Any]], OperationResult]] = {
            "agendamento.criar": self._op_criar_agendamento,
            "agendamento.atualizar": self._op_atualizar_agendamento,
            "agendamento.remover": self._op_remover_agendamento,
        }
        for kind in RESOURCE_KINDS:
            self._operations[f"{kind}.adicionar"] = self._resource_op(kind, "adicionar")
            self._operations[f"{kind}.atualizar"] = self._resource_op(kind, "atualizar")
            self._operations[f"{kind}.remover"] = self._resource_op(kind, "remover")

    def hoje(self) -> date:
        return today_in(self.config.general.timezone)

    # cadastros ---------------------------------------------------------
    def list_resources(self, kind: str) -> List[Any]:
        return self.registry.list(normalize_kind(kind))

    def get_resource(self, kind: str, resource_id: int) -> Any:
        return self.registry.require(normalize_kind(kind), resource_id)

    @returns_result("recurso.adicionar")
    def add_resource(self, kind: str, **fields: Any) -> OperationResult:
        return self.registry.add(normalize_kind(kind), **fields)

    @returns_result("recurso.atualizar")
    def update_resource(self, kind: str, resource_id: int, **fields: Any) -> OperationResult:
        return self.registry.update(normalize_kind(kind), resource_id, **fields)

    @returns_result("recurso.remover")
    def remove_resource(self, kind: str, resource_id: int) -> OperationResult:
        return self.registry.remove(normalize_kind(kind), resource_id)

    def can_delete(self, kind: str, resource_id: int) -> bool:
        return self.guard.can_delete(normalize_kind(kind), resource_id)

    # agendamentos ------------------------------------------------------
    def criar_agendamentos(self, base: AgendamentoBase, datas: Sequence[str | date | None]) -> OperationResult:
        return self.store.create(base, datas)

    def atualizar_agendamento(self, record: Agendamento) -> OperationResult:
        return self.store.update(record)

    def remover_agendamento(self, agendamento_id: int) -> None:
        self.store.delete(agendamento_id)

    def get_agendamento(self, agendamento_id: int) -> Agendamento:
        item = self.store.get(agendamento_id)
        if item is None:
            raise ValidationError(f"Agendamento nao encontrado: {agendamento_id}")
        return item

    def filtrar(self, filtro: AgendamentoFiltro | None = None, *, hoje: date | None = None) -> List[Agendamento]:
        return filtrar(self.store.list_all(), filtro or AgendamentoFiltro(), hoje or self.hoje())

    def calendario(
        self,
        ano: int,
        mes: int,
        filtro: AgendamentoFiltro | None = None,
        *,
        hoje: date | None = None,
    ) -> CalendarMonth:
        reference = hoje or self.hoje()
        return montar_mes(self.filtrar(filtro, hoje=reference), ano, mes, reference)

    # projecoes com nomes -----------------------------------------------
    def agendamento_row(self, item: Agendamento) -> dict:
        return {
            "id": item.id,
            "data": item.data.isoformat(),
            "inicio": item.hora_inicio,
            "fim": item.hora_fim,
            "oficina": self.registry.display_name(OFICINA, item.oficina_id),
            "educador": self.registry.display_name(EDUCADOR, item.educador_id),
            "turma": self.registry.display_name(TURMA, item.turma_id),
            "obs": item.observacoes,
        }

    def list_agendamentos(self, filtro: AgendamentoFiltro | None = None, *, hoje: date | None = None) -> List[dict]:
        return [self.agendamento_row(item) for item in self.filtrar(filtro, hoje=hoje)]

    def resumo(self, *, hoje: date | None = None, proximos: int = 5) -> dict:
        reference = hoje or self.hoje()
        state = self.repository.state
        futuros = self.filtrar(AgendamentoFiltro(periodo="futuro"), hoje=reference)
        semana = self.filtrar(AgendamentoFiltro(periodo="semana"), hoje=reference)
        por_educador = Counter(item.educador_id for item in futuros)
        return {
            "hoje": reference.isoformat(),
            "oficinas": len(state.oficinas),
            "educadores": len(state.educadores),
            "turmas": len(state.turmas),
            "agendamentos": len(state.agendamentos),
            "futuros": len(futuros),
            "semana": len(semana),
            "proximos": [self.agendamento_row(item) for item in futuros[:proximos]],
            "carga_educadores": [
                {"educador": self.registry.display_name(EDUCADOR, eid), "total": total}
                for eid, total in por_educador.most_common()
            ],
        }

    # contrato de operacoes ---------------------------------------------
    @returns_result("operacao")
    def executar(self, operacao: str, payload: Mapping[str, Any]) -> OperationResult:
        """Executa uma operacao nomeada com payload bruto (formulario/JSON)."""
        handler = self._operations.get(operacao.strip().lower())
        if handler is None:
            raise UsageError(f"Operacao desconhecida: {operacao}")
        if not isinstance(payload, Mapping):
            raise ValidationError(f"Payload deve ser um objeto: {payload!r}")
        logger.debug("Executando %s", operacao)
        return handler(payload)

    @property
    def operacoes(self) -> List[str]:
        return sorted(self._operations)

    def _op_criar_agendamento(self, payload: Mapping[str, Any]) -> OperationResult:
        datas = payload.get("datas")
        if datas is None and payload.get("data"):
            datas = [payload["data"]]
        if isinstance(datas, str):
            datas = [datas]
        if datas is not None and not isinstance(datas, (list, tuple)):
            raise ValidationError(f"datas deve ser uma lista: {datas!r}")
        return self.store.create(_base_from_payload(payload), list(datas or []))

    def _op_atualizar_agendamento(self, payload: Mapping[str, Any]) -> OperationResult:
        base = _base_from_payload(payload)
        data_raw = payload.get("data")
        record = Agendamento(
            id=parse_id(payload.get("id"), "id"),
            oficina_id=base.oficina_id,
            educador_id=base.educador_id,
            turma_id=base.turma_id,
            data=parse_iso_date(data_raw) if data_raw else None,
            hora_inicio=base.hora_inicio,
            hora_fim=base.hora_fim,
            observacoes=base.observacoes,
        )
        return self.store.update(record)

    def _op_remover_agendamento(self, payload: Mapping[str, Any]) -> OperationResult:
        self.store.delete(parse_id(payload.get("id"), "id"))
        return OperationResult.ok()

    def _resource_op(self, kind: str, action: str) -> Callable[[Mapping[str, Any]], OperationResult]:
        def handler(payload: Mapping[str, Any]) -> OperationResult:
            fields = {key: payload[key] for key in EDITABLE_FIELDS[kind] if key in payload}
            if action == "adicionar":
                return self.registry.add(kind, **fields)
            resource_id = parse_id(payload.get("id"), "id")
            if action == "atualizar":
                return self.registry.update(kind, resource_id, **fields)
            return self.registry.remove(kind, resource_id)

        return handler

    # persistencia ------------------------------------------------------
    def save_state(self, path: str | None = None) -> Path:
        target = Path(path) if path else getattr(self.repository, "path", None)
        self.repository.save(target)
        return self.repository.path

    def load_state(self, path: str) -> Path:
        target = Path(path)
        self.repository.load(target)
        return target

    def undo(self) -> str:
        return self.repository.undo().label


def _optional_id(payload: Mapping[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    return parse_id(value, key)


def _base_from_payload(payload: Mapping[str, Any]) -> AgendamentoBase:
    return AgendamentoBase(
        oficina_id=_optional_id(payload, "oficina_id"),
        educador_id=_optional_id(payload, "educador_id"),
        turma_id=_optional_id(payload, "turma_id"),
        hora_inicio=require_text(payload.get("hora_inicio"), "hora_inicio") or "",
        hora_fim=require_text(payload.get("hora_fim"), "hora_fim") or "",
        observacoes=require_text(payload.get("observacoes"), "observacoes"),
    )
