from __future__ import annotations

import calendar
import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from .errors import ValidationError

ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MONTH_NAMES: tuple[str, ...] = (
    "Janeiro",
    "Fevereiro",
    "Marco",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


def to_nfc(value: str) -> str:
    return unicodedata.normalize("NFC", value)


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    filtered = [c for c in decomposed if not unicodedata.combining(c)]
    return unicodedata.normalize("NFC", "".join(filtered))


def sort_key_name(value: str) -> str:
    return strip_diacritics(value).upper()


def require_text(value: Any, label: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{label} deve ser texto: {value!r}")


def _ascii_digits(raw: str) -> bool:
    # isdigit aceita "²" e outros digitos que int() recusa
    return raw.isascii() and raw.isdigit()


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def detect_timezone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # pragma: no cover
        raise ValidationError(f"Fuso horario invalido: {tz_name}") from exc


def today_in(tz_name: str) -> date:
    return datetime.now(detect_timezone(tz_name)).date()


def parse_iso_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    # fromisoformat tambem aceita 20240612 e 2024-W24-3
    if not ISO_DATE.fullmatch(raw):
        raise ValidationError(f"Data invalida (use YYYY-MM-DD): {value}")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"Data invalida (use YYYY-MM-DD): {value}") from exc


def parse_hhmm(value: str | time) -> str:
    """Valida um horario e devolve a forma canonica HH:MM."""
    if isinstance(value, time):
        return value.strftime("%H:%M")
    raw = str(value).strip()
    hours, sep, minutes = raw.partition(":")
    if not sep or not _ascii_digits(hours) or not _ascii_digits(minutes) or len(minutes) != 2 or len(hours) > 2:
        raise ValidationError(f"Hora invalida (use HH:MM): {value}")
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        raise ValidationError(f"Hora invalida (use HH:MM): {value}")
    return f"{h:02d}:{m:02d}"


def parse_id(value: Any, label: str) -> int:
    """Converte um identificador vindo de formulario; nunca substitui por zero."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} invalido: {value}")
    if isinstance(value, int):
        result = value
    else:
        raw = str(value).strip() if value is not None else ""
        if not _ascii_digits(raw):
            raise ValidationError(f"{label} invalido: {value!r}")
        result = int(raw)
    if result <= 0:
        raise ValidationError(f"{label} deve ser positivo: {value}")
    return result


def parse_optional_id(value: Any, label: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_id(value, label)


@dataclass(slots=True, frozen=True)
class Period:
    start: date
    end: date

    def contains(self, target: date) -> bool:
        return self.start <= target <= self.end


def week_of(today: date) -> Period:
    # date.weekday(): segunda=0; a semana aqui comeca no domingo
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return Period(start, start + timedelta(days=6))


def month_of(today: date) -> Period:
    last = calendar.monthrange(today.year, today.month)[1]
    return Period(today.replace(day=1), today.replace(day=last))


def sunday_based_weekday(target: date) -> int:
    return (target.weekday() + 1) % 7


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def times_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    return start_a < end_b and start_b < end_a


def comma_split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [token.strip() for token in raw.split(',') if token.strip()]
