from __future__ import annotations

import csv
import io
import json
from typing import Any, Mapping, Sequence

import yaml

from .calendario import DIAS_DA_SEMANA, CalendarMonth

ELLIPSIS = "..."
FORMATS = ("table", "json", "csv", "yaml")
CELL_WIDTH = 14


def truncate(value: str, width: int) -> str:
    if width <= 0 or len(value) <= width:
        return value
    if width <= len(ELLIPSIS):
        return value[:width]
    return value[: width - len(ELLIPSIS)] + ELLIPSIS


def format_cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "sim" if value else "nao"
    return str(value)


def render_table(rows: Sequence[Mapping[str, Any]], columns: Sequence[str], widths: Mapping[str, int] | None = None) -> str:
    widths = widths or {}
    col_widths: list[int] = []
    for column in columns:
        cells = [truncate(format_cell(row.get(column)), widths.get(column, 0)) for row in rows]
        col_widths.append(max([len(column), *(len(cell) for cell in cells)]))
    header = " | ".join(column.ljust(col_widths[idx]) for idx, column in enumerate(columns))
    divider = "-+-".join("-" * width for width in col_widths)
    body_lines = []
    for row in rows:
        cells = [
            truncate(format_cell(row.get(column)), widths.get(column, 0)).ljust(col_widths[idx])
            for idx, column in enumerate(columns)
        ]
        body_lines.append(" | ".join(cells))
    if not body_lines:
        body_lines.append("(sem registros)")
    return "\n".join([header, divider, *body_lines])


def render_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=str)


def render_yaml(data: Any) -> str:
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)


def render_csv(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({column: row.get(column, "") for column in columns})
    return buffer.getvalue()


def render_output(rows: Sequence[Mapping[str, Any]], columns: Sequence[str], fmt: str, *, width_overrides: Mapping[str, int] | None = None) -> str:
    fmt = fmt.lower()
    if fmt == "table":
        return render_table(rows, columns, widths=width_overrides)
    data = [{column: row.get(column) for column in columns} for row in rows]
    if fmt == "json":
        return render_json(data)
    if fmt == "yaml":
        return render_yaml(data)
    if fmt == "csv":
        return render_csv(data, columns)
    raise ValueError(f"Formato nao suportado: {fmt}")


def calendar_to_dict(month: CalendarMonth, labels: Mapping[int, str] | None = None) -> dict:
    labels = labels or {}
    return {
        "titulo": month.titulo,
        "ano": month.ano,
        "mes": month.mes,
        "inicio_em_branco": month.inicio_em_branco,
        "fim_em_branco": month.fim_em_branco,
        "semanas": [
            [
                None
                if cell.vazio
                else {
                    "dia": cell.dia,
                    "data": cell.data.isoformat(),
                    "hoje": cell.hoje,
                    "agendamentos": [labels.get(item.id, str(item.id)) for item in cell.agendamentos],
                }
                for cell in week
            ]
            for week in month.semanas
        ],
    }


def render_calendar(month: CalendarMonth, labels: Mapping[int, str] | None = None, *, width: int = CELL_WIDTH) -> str:
    """Desenha o mes em grade de texto; cada agendamento ocupa uma linha da celula."""
    labels = labels or {}
    border = "+" + "+".join("-" * width for _ in DIAS_DA_SEMANA) + "+"
    lines = [month.titulo.center(len(border)).rstrip(), border]
    lines.append("|" + "|".join(name.center(width) for name in DIAS_DA_SEMANA) + "|")
    lines.append(border)
    for week in month.semanas:
        height = max(1, *(len(cell.agendamentos) for cell in week))
        heading = []
        for cell in week:
            if cell.vazio:
                heading.append(" " * width)
            else:
                marker = "*" if cell.hoje else " "
                heading.append(f"{marker}{cell.dia:>2}".ljust(width))
        lines.append("|" + "|".join(heading) + "|")
        for row in range(height):
            parts = []
            for cell in week:
                if row < len(cell.agendamentos):
                    item = cell.agendamentos[row]
                    text = labels.get(item.id, f"{item.hora_inicio} #{item.id}")
                    parts.append(truncate(" " + text, width).ljust(width))
                else:
                    parts.append(" " * width)
            lines.append("|" + "|".join(parts) + "|")
        lines.append(border)
    return "\n".join(lines)
