from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional

from .errors import UsageError
from .utils import blank_to_none, to_nfc

OFICINA = "oficina"
EDUCADOR = "educador"
TURMA = "turma"
AGENDAMENTO = "agendamento"

RESOURCE_KINDS: tuple[str, ...] = (OFICINA, EDUCADOR, TURMA)

RESOURCE_LABELS: Dict[str, str] = {
    OFICINA: "Oficina",
    EDUCADOR: "Educador",
    TURMA: "Turma",
}

# campo do Agendamento que referencia cada registro
FOREIGN_KEYS: Dict[str, str] = {
    OFICINA: "oficina_id",
    EDUCADOR: "educador_id",
    TURMA: "turma_id",
}


def normalize_kind(value: str) -> str:
    token = value.strip().lower()
    if token.endswith("s") and token[:-1] in RESOURCE_KINDS:
        token = token[:-1]
    if token.endswith("es") and token[:-2] in RESOURCE_KINDS:
        token = token[:-2]
    if token not in RESOURCE_KINDS:
        raise UsageError(f"Tipo de recurso desconhecido: {value}")
    return token


def normalize_name(value: str | None) -> str:
    return to_nfc((value or "").strip())


@dataclass(slots=True)
class Oficina:
    id: int
    nome: str

    def normalize(self) -> None:
        self.nome = normalize_name(self.nome)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "nome": self.nome}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Oficina":
        return cls(id=int(data["id"]), nome=str(data["nome"]))


@dataclass(slots=True)
class Educador:
    id: int
    nome: str
    email: str | None = None
    telefone: str | None = None

    def normalize(self) -> None:
        self.nome = normalize_name(self.nome)
        self.email = blank_to_none(self.email)
        self.telefone = blank_to_none(self.telefone)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "nome": self.nome,
            "email": self.email,
            "telefone": self.telefone,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Educador":
        return cls(
            id=int(data["id"]),
            nome=str(data["nome"]),
            email=data.get("email"),
            telefone=data.get("telefone"),
        )


@dataclass(slots=True)
class Turma:
    id: int
    nome: str

    def normalize(self) -> None:
        self.nome = normalize_name(self.nome)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "nome": self.nome}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Turma":
        return cls(id=int(data["id"]), nome=str(data["nome"]))


RESOURCE_TYPES: Dict[str, type] = {
    OFICINA: Oficina,
    EDUCADOR: Educador,
    TURMA: Turma,
}


@dataclass(slots=True)
class AgendamentoBase:
    """Campos compartilhados por todos os agendamentos de um lote."""

    oficina_id: Optional[int]
    educador_id: Optional[int]
    turma_id: Optional[int]
    hora_inicio: str
    hora_fim: str
    observacoes: str | None = None


@dataclass(slots=True)
class Agendamento:
    id: int
    oficina_id: int
    educador_id: int
    turma_id: int
    data: date
    hora_inicio: str
    hora_fim: str
    observacoes: str | None = None

    def references(self, kind: str, resource_id: int) -> bool:
        return getattr(self, FOREIGN_KEYS[kind]) == resource_id

    def sort_key(self) -> tuple[date, str]:
        return (self.data, self.hora_inicio)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "oficina_id": self.oficina_id,
            "educador_id": self.educador_id,
            "turma_id": self.turma_id,
            "data": self.data.isoformat(),
            "hora_inicio": self.hora_inicio,
            "hora_fim": self.hora_fim,
            "observacoes": self.observacoes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Agendamento":
        return cls(
            id=int(data["id"]),
            oficina_id=int(data["oficina_id"]),
            educador_id=int(data["educador_id"]),
            turma_id=int(data["turma_id"]),
            data=date.fromisoformat(str(data["data"])),
            hora_inicio=str(data["hora_inicio"]),
            hora_fim=str(data["hora_fim"]),
            observacoes=data.get("observacoes"),
        )


@dataclass(slots=True)
class State:
    oficinas: Dict[int, Oficina] = field(default_factory=dict)
    educadores: Dict[int, Educador] = field(default_factory=dict)
    turmas: Dict[int, Turma] = field(default_factory=dict)
    agendamentos: Dict[int, Agendamento] = field(default_factory=dict)
    # ultimo id emitido por tipo; ids removidos nunca voltam a ser usados
    sequences: Dict[str, int] = field(default_factory=dict)

    def table(self, kind: str) -> Dict[int, Any]:
        if kind == OFICINA:
            return self.oficinas
        if kind == EDUCADOR:
            return self.educadores
        if kind == TURMA:
            return self.turmas
        if kind == AGENDAMENTO:
            return self.agendamentos
        raise KeyError(kind)

    def next_id(self, kind: str) -> int:
        current = max(self.sequences.get(kind, 0), max(self.table(kind), default=0))
        new_id = current + 1
        self.sequences[kind] = new_id
        return new_id

    def clone(self) -> "State":
        return State(
            oficinas={oid: replace(item) for oid, item in self.oficinas.items()},
            educadores={eid: replace(item) for eid, item in self.educadores.items()},
            turmas={tid: replace(item) for tid, item in self.turmas.items()},
            agendamentos={aid: replace(item) for aid, item in self.agendamentos.items()},
            sequences=dict(self.sequences),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "oficinas": [item.to_dict() for item in self.oficinas.values()],
            "educadores": [item.to_dict() for item in self.educadores.values()],
            "turmas": [item.to_dict() for item in self.turmas.values()],
            "agendamentos": [item.to_dict() for item in self.agendamentos.values()],
            "sequences": dict(sorted(self.sequences.items())),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "State":
        oficinas = {item.id: item for item in (Oficina.from_dict(raw) for raw in data.get("oficinas", []))}
        educadores = {item.id: item for item in (Educador.from_dict(raw) for raw in data.get("educadores", []))}
        turmas = {item.id: item for item in (Turma.from_dict(raw) for raw in data.get("turmas", []))}
        agendamentos = {
            item.id: item for item in (Agendamento.from_dict(raw) for raw in data.get("agendamentos", []))
        }
        sequences = {str(key): int(value) for key, value in (data.get("sequences") or {}).items()}
        return cls(
            oficinas=oficinas,
            educadores=educadores,
            turmas=turmas,
            agendamentos=agendamentos,
            sequences=sequences,
        )
