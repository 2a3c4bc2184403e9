from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        return None
    return value


class Message(BaseModel):
    detail: str


class OficinaIn(BaseModel):
    nome: str


class OficinaUpdate(BaseModel):
    nome: Optional[str] = None


class OficinaOut(OficinaIn):
    id: int


class TurmaIn(BaseModel):
    nome: str


class TurmaUpdate(BaseModel):
    nome: Optional[str] = None


class TurmaOut(TurmaIn):
    id: int


class EducadorIn(BaseModel):
    nome: str
    email: Optional[str] = None
    telefone: Optional[str] = None

    @field_validator("email", "telefone")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class EducadorUpdate(BaseModel):
    nome: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None


class EducadorOut(EducadorIn):
    id: int


class AgendamentoCreate(BaseModel):
    oficina_id: int = Field(gt=0)
    educador_id: int = Field(gt=0)
    turma_id: int = Field(gt=0)
    datas: List[str] = Field(default_factory=list, description="Datas YYYY-MM-DD; vazias sao ignoradas")
    hora_inicio: str
    hora_fim: str
    observacoes: Optional[str] = None

    @field_validator("observacoes")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class AgendamentoUpdate(BaseModel):
    oficina_id: int = Field(gt=0)
    educador_id: int = Field(gt=0)
    turma_id: int = Field(gt=0)
    data: date
    hora_inicio: str
    hora_fim: str
    observacoes: Optional[str] = None


class AgendamentoOut(BaseModel):
    id: int
    oficina_id: int
    educador_id: int
    turma_id: int
    data: date
    hora_inicio: str
    hora_fim: str
    observacoes: Optional[str] = None
    oficina: str
    educador: str
    turma: str


class CreatedResponse(BaseModel):
    detail: str
    ids: List[int]


class CalendarCellOut(BaseModel):
    dia: int
    data: date
    hoje: bool
    agendamentos: List[AgendamentoOut] = Field(default_factory=list)


class CalendarOut(BaseModel):
    titulo: str
    ano: int
    mes: int
    inicio_em_branco: int
    fim_em_branco: int
    semanas: List[List[Optional[CalendarCellOut]]]


class OperationRequest(BaseModel):
    payload: Dict[str, Any] = Field(default_factory=dict)


class OperationResponse(BaseModel):
    success: bool
    created_ids: List[int] = Field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None


class StateSaveRequest(BaseModel):
    path: Optional[str] = None


class StateLoadRequest(BaseModel):
    path: str


class SaveStateResponse(BaseModel):
    path: str


class UndoResponse(BaseModel):
    message: str
