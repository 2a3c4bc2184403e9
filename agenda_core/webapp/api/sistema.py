from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ... import errors
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import (
    OperationRequest,
    OperationResponse,
    SaveStateResponse,
    StateLoadRequest,
    StateSaveRequest,
    UndoResponse,
)
from .common import http_error

router = APIRouter()


@router.post("/salvar", response_model=SaveStateResponse)
def save_state(payload: StateSaveRequest, container: ServiceContainer = Depends(get_container)) -> SaveStateResponse:
    try:
        target = container.save_state(payload.path)
    except errors.AgendaError as exc:
        raise http_error(exc) from exc
    return SaveStateResponse(path=str(target))


@router.post("/carregar", response_model=SaveStateResponse)
def load_state(payload: StateLoadRequest, container: ServiceContainer = Depends(get_container)) -> SaveStateResponse:
    try:
        target = container.load_state(payload.path)
    except errors.AgendaError as exc:
        raise http_error(exc, status_code=400) from exc
    return SaveStateResponse(path=str(target))


@router.post("/undo", response_model=UndoResponse)
def undo(container: ServiceContainer = Depends(get_container)) -> UndoResponse:
    try:
        label = container.undo()
    except errors.ValidationError as exc:
        raise http_error(exc) from exc
    return UndoResponse(message=container.localizer.text("undo.applied", label=label))


@router.get("/resumo")
def resumo(
    hoje: Optional[date] = Query(default=None),
    proximos: int = Query(default=5, ge=0, le=50),
    container: ServiceContainer = Depends(get_container),
) -> dict:
    return container.read(lambda: container.service.resumo(hoje=hoje, proximos=proximos))


@router.get("/operacoes", response_model=List[str])
def list_operations(container: ServiceContainer = Depends(get_container)) -> List[str]:
    return container.service.operacoes


@router.post("/operacoes/{operacao}", response_model=OperationResponse)
def run_operation(
    operacao: str,
    payload: OperationRequest,
    container: ServiceContainer = Depends(get_container),
) -> OperationResponse:
    """Contrato generico: sempre 200, com o sinal de sucesso no corpo."""
    result = container.mutate(container.service.executar, operacao, payload.payload)
    return OperationResponse(
        success=result.success,
        created_ids=list(result.created_ids),
        error=result.message or None,
        error_type=type(result.error).__name__ if result.error else None,
    )
