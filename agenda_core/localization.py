from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

DEFAULT_LOCALE = "pt-BR"


MESSAGES: Mapping[str, Mapping[str, str]] = {
    "pt-BR": {
        "resource.added": "[OK] {label} cadastrado(a) (id {id}).",
        "resource.updated": "[EDIT] {label} atualizado(a).",
        "resource.removed": "[DEL] {label} removido(a).",
        "agendamento.created": "[OK] {count} agendamento(s) criado(s).",
        "agendamento.updated": "[EDIT] Agendamento atualizado.",
        "agendamento.removed": "[DEL] Agendamento removido.",
        "state.saved": "[SAVE] Estado salvo em {path}.",
        "state.loaded": "[LOAD] Estado carregado de {path}.",
        "undo.applied": "[UNDO] Restauracao aplicada ({label}).",
        "undo.empty": "[ERR] Nada para desfazer.",
        "calendar.empty": "(sem agendamentos)",
    },
    "en-US": {
        "resource.added": "[OK] {label} added (id {id}).",
        "resource.updated": "[EDIT] {label} updated.",
        "resource.removed": "[DEL] {label} removed.",
        "agendamento.created": "[OK] {count} booking(s) created.",
        "agendamento.updated": "[EDIT] Booking updated.",
        "agendamento.removed": "[DEL] Booking removed.",
        "state.saved": "[SAVE] State saved to {path}.",
        "state.loaded": "[LOAD] State loaded from {path}.",
        "undo.applied": "[UNDO] Restore applied ({label}).",
        "undo.empty": "[ERR] Nothing to undo.",
        "calendar.empty": "(no bookings)",
    },
}


def resolve_locale(value: str | None) -> str:
    """Aceita "pt_BR", "en" etc.; cai no padrao quando nao ha tabela."""
    token = (value or DEFAULT_LOCALE).replace("_", "-").lower()
    for locale in MESSAGES:
        if locale.lower() == token or locale.lower().split("-")[0] == token:
            return locale
    return DEFAULT_LOCALE


@dataclass(slots=True)
class Localizer:
    locale: str = DEFAULT_LOCALE

    def __post_init__(self) -> None:
        self.locale = resolve_locale(self.locale)

    def text(self, key: str, **kwargs) -> str:
        template = MESSAGES[self.locale].get(key, key)
        return template.format(**kwargs) if kwargs else template
