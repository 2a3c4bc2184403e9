from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ... import errors
from ...calendario import CalendarMonth
from ...models import Agendamento, AgendamentoBase
from ...query import AgendamentoFiltro
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import (
    AgendamentoCreate,
    AgendamentoOut,
    AgendamentoUpdate,
    CalendarCellOut,
    CalendarOut,
    CreatedResponse,
    Message,
)
from .common import http_error, raise_for_result

router = APIRouter()


def _to_schema(container: ServiceContainer, item: Agendamento) -> AgendamentoOut:
    row = container.service.agendamento_row(item)
    return AgendamentoOut(
        **item.to_dict(),
        oficina=row["oficina"],
        educador=row["educador"],
        turma=row["turma"],
    )


def _filtro(
    oficina_id: Optional[str] = Query(default=None),
    educador_id: Optional[str] = Query(default=None),
    turma_id: Optional[str] = Query(default=None),
    periodo: Optional[str] = Query(default=None, description="todos|futuro|passado|semana|mes"),
) -> AgendamentoFiltro:
    try:
        return AgendamentoFiltro.from_raw(
            oficina_id=oficina_id,
            educador_id=educador_id,
            turma_id=turma_id,
            periodo=periodo,
        )
    except errors.ValidationError as exc:
        raise http_error(exc) from exc


def _calendar_to_schema(container: ServiceContainer, month: CalendarMonth) -> CalendarOut:
    semanas = [
        [
            None
            if cell.vazio
            else CalendarCellOut(
                dia=cell.dia,
                data=cell.data,
                hoje=cell.hoje,
                agendamentos=[_to_schema(container, item) for item in cell.agendamentos],
            )
            for cell in week
        ]
        for week in month.semanas
    ]
    return CalendarOut(
        titulo=month.titulo,
        ano=month.ano,
        mes=month.mes,
        inicio_em_branco=month.inicio_em_branco,
        fim_em_branco=month.fim_em_branco,
        semanas=semanas,
    )


@router.get("/", response_model=List[AgendamentoOut])
def list_agendamentos(
    filtro: AgendamentoFiltro = Depends(_filtro),
    hoje: Optional[date] = Query(default=None),
    container: ServiceContainer = Depends(get_container),
) -> List[AgendamentoOut]:
    def _run() -> List[AgendamentoOut]:
        items = container.service.filtrar(filtro, hoje=hoje)
        return [_to_schema(container, item) for item in items]

    return container.read(_run)


@router.post("/", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_agendamentos(payload: AgendamentoCreate, container: ServiceContainer = Depends(get_container)) -> CreatedResponse:
    base = AgendamentoBase(
        oficina_id=payload.oficina_id,
        educador_id=payload.educador_id,
        turma_id=payload.turma_id,
        hora_inicio=payload.hora_inicio,
        hora_fim=payload.hora_fim,
        observacoes=payload.observacoes,
    )
    result = raise_for_result(container.mutate(container.service.criar_agendamentos, base, payload.datas))
    return CreatedResponse(
        detail=container.localizer.text("agendamento.created", count=len(result.created_ids)),
        ids=list(result.created_ids),
    )


@router.get("/calendario", response_model=CalendarOut)
def calendario(
    ano: Optional[int] = Query(default=None, ge=1, le=9999),
    mes: Optional[int] = Query(default=None, ge=1, le=12),
    hoje: Optional[date] = Query(default=None),
    filtro: AgendamentoFiltro = Depends(_filtro),
    container: ServiceContainer = Depends(get_container),
) -> CalendarOut:
    def _run() -> CalendarOut:
        reference = hoje or container.service.hoje()
        month = container.service.calendario(ano or reference.year, mes or reference.month, filtro, hoje=reference)
        return _calendar_to_schema(container, month)

    return container.read(_run)


@router.get("/{agendamento_id}", response_model=AgendamentoOut)
def get_agendamento(agendamento_id: int, container: ServiceContainer = Depends(get_container)) -> AgendamentoOut:
    try:
        item = container.read(container.service.get_agendamento, agendamento_id)
    except errors.ValidationError as exc:
        raise http_error(exc, status_code=404) from exc
    return _to_schema(container, item)


@router.put("/{agendamento_id}", response_model=AgendamentoOut)
def update_agendamento(
    agendamento_id: int,
    payload: AgendamentoUpdate,
    container: ServiceContainer = Depends(get_container),
) -> AgendamentoOut:
    if container.read(container.service.store.get, agendamento_id) is None:
        raise http_error(errors.ValidationError(f"Agendamento nao encontrado: {agendamento_id}"), status_code=404)
    record = Agendamento(id=agendamento_id, **payload.model_dump())
    result = raise_for_result(container.mutate(container.service.atualizar_agendamento, record))
    return _to_schema(container, result.record)


@router.delete("/{agendamento_id}", response_model=Message)
def remove_agendamento(agendamento_id: int, container: ServiceContainer = Depends(get_container)) -> Message:
    container.mutate(container.service.remover_agendamento, agendamento_id)
    return Message(detail=container.localizer.text("agendamento.removed"))
