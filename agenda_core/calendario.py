from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from .errors import ValidationError
from .models import Agendamento
from .utils import MONTH_NAMES, shift_month, sunday_based_weekday

DIAS_DA_SEMANA: tuple[str, ...] = ("Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sab")


@dataclass(slots=True, frozen=True)
class CalendarCell:
    dia: int | None
    data: date | None
    agendamentos: tuple[Agendamento, ...] = ()
    hoje: bool = False

    @property
    def vazio(self) -> bool:
        return self.dia is None


@dataclass(slots=True, frozen=True)
class CalendarMonth:
    ano: int
    mes: int
    inicio_em_branco: int
    fim_em_branco: int
    celulas: tuple[CalendarCell, ...]

    @property
    def titulo(self) -> str:
        return f"{MONTH_NAMES[self.mes - 1]} {self.ano}"

    @property
    def semanas(self) -> List[tuple[CalendarCell, ...]]:
        return [self.celulas[idx : idx + 7] for idx in range(0, len(self.celulas), 7)]

    def celula(self, dia: int) -> CalendarCell:
        return self.celulas[self.inicio_em_branco + dia - 1]

    def mes_anterior(self) -> tuple[int, int]:
        return shift_month(self.ano, self.mes, -1)

    def proximo_mes(self) -> tuple[int, int]:
        return shift_month(self.ano, self.mes, 1)


def montar_mes(agendamentos: Iterable[Agendamento], ano: int, mes: int, hoje: date | None = None) -> CalendarMonth:
    """Distribui os agendamentos (ja filtrados e ordenados) nos dias do mes."""
    if not 1 <= mes <= 12:
        raise ValidationError(f"Mes invalido: {mes}")
    if not 1 <= ano <= 9999:
        raise ValidationError(f"Ano invalido: {ano}")
    first = date(ano, mes, 1)
    last_day = calendar.monthrange(ano, mes)[1]
    leading = sunday_based_weekday(first)
    trailing = (7 - (leading + last_day) % 7) % 7

    buckets: Dict[str, List[Agendamento]] = defaultdict(list)
    for item in agendamentos:
        buckets[item.data.isoformat()].append(item)

    cells: List[CalendarCell] = [CalendarCell(dia=None, data=None) for _ in range(leading)]
    for day in range(1, last_day + 1):
        current = date(ano, mes, day)
        cells.append(
            CalendarCell(
                dia=day,
                data=current,
                agendamentos=tuple(buckets.get(current.isoformat(), ())),
                hoje=current == hoje,
            )
        )
    cells.extend(CalendarCell(dia=None, data=None) for _ in range(trailing))
    return CalendarMonth(
        ano=ano,
        mes=mes,
        inicio_em_branco=leading,
        fim_em_branco=trailing,
        celulas=tuple(cells),
    )
