from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List

from .errors import ValidationError
from .models import Agendamento
from .utils import Period, month_of, parse_optional_id, week_of

TODOS = "todos"
FUTURO = "futuro"
PASSADO = "passado"
SEMANA = "semana"
MES = "mes"

PERIODOS: tuple[str, ...] = (TODOS, FUTURO, PASSADO, SEMANA, MES)


def normalize_periodo(value: str | None) -> str:
    token = (value or TODOS).strip().lower()
    if token == "mês":
        token = MES
    if token not in PERIODOS:
        raise ValidationError(f"Periodo desconhecido: {value} (use {'|'.join(PERIODOS)})")
    return token


@dataclass(slots=True, frozen=True)
class AgendamentoFiltro:
    oficina_id: int | None = None
    educador_id: int | None = None
    turma_id: int | None = None
    periodo: str = TODOS

    @classmethod
    def from_raw(
        cls,
        *,
        oficina_id: Any = None,
        educador_id: Any = None,
        turma_id: Any = None,
        periodo: str | None = None,
    ) -> "AgendamentoFiltro":
        """Monta o filtro a partir de valores de formulario ou query string."""
        return cls(
            oficina_id=parse_optional_id(oficina_id, "oficina_id"),
            educador_id=parse_optional_id(educador_id, "educador_id"),
            turma_id=parse_optional_id(turma_id, "turma_id"),
            periodo=normalize_periodo(periodo),
        )


def period_window(periodo: str, hoje: date) -> Period | None:
    if periodo == SEMANA:
        return week_of(hoje)
    if periodo == MES:
        return month_of(hoje)
    return None


def _matches_periodo(item: Agendamento, periodo: str, hoje: date, window: Period | None) -> bool:
    if periodo == FUTURO:
        return item.data >= hoje
    if periodo == PASSADO:
        return item.data < hoje
    if window is not None:
        return window.contains(item.data)
    return True


def filtrar(snapshot: Iterable[Agendamento], filtro: AgendamentoFiltro, hoje: date) -> List[Agendamento]:
    """Filtra e ordena por (data, hora_inicio) sem alterar o snapshot."""
    periodo = normalize_periodo(filtro.periodo)
    window = period_window(periodo, hoje)
    selected = [
        item
        for item in snapshot
        if (filtro.oficina_id is None or item.oficina_id == filtro.oficina_id)
        and (filtro.educador_id is None or item.educador_id == filtro.educador_id)
        and (filtro.turma_id is None or item.turma_id == filtro.turma_id)
        and _matches_periodo(item, periodo, hoje, window)
    ]
    return sorted(selected, key=Agendamento.sort_key)
