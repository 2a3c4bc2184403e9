from __future__ import annotations

import logging
import tomllib
from copy import deepcopy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping

from .errors import IOErrorWithCode, ValidationError

CONFIG_ENV_PREFIX = "AGENDA_"
DEFAULT_CONFIG_PATH = Path("config.toml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class GeneralConfig:
    timezone: str = "America/Sao_Paulo"
    default_locale: str = "pt-BR"
    name_width: int = 24
    log_level: str = "WARNING"


@dataclass(slots=True)
class AgendaConfig:
    detectar_conflitos: bool = False
    history_limit: int = 64
    max_datas_por_lote: int = 0


SECTIONS = ("general", "agenda")


@dataclass(slots=True)
class Config:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    agenda: AgendaConfig = field(default_factory=AgendaConfig)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> "Config":
        cfg = cls()
        cfg_path = path or DEFAULT_CONFIG_PATH
        if cfg_path.exists():
            try:
                data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                raise IOErrorWithCode(f"TOML invalido em {cfg_path}: {exc}") from exc
            cfg = cfg.merge_dict(data)
        if env:
            cfg = cfg.apply_env(env)
        if overrides:
            cfg = cfg.apply_overrides(overrides)
        cfg.validate()
        return cfg

    def merge_dict(self, data: Mapping[str, Any]) -> "Config":
        cfg = deepcopy(self)
        for section in SECTIONS:
            if section in data:
                cfg._assign_dataclass(getattr(cfg, section), data[section])
        return cfg

    def apply_env(self, env: Mapping[str, str]) -> "Config":
        """Le AGENDA_<SECAO>__<CAMPO>; outras variaveis AGENDA_* (HOST, PORT) sao ignoradas."""
        payload: Dict[str, Dict[str, str]] = {}
        for key, value in env.items():
            section, sep, field_name = key.removeprefix(CONFIG_ENV_PREFIX).partition("__")
            if not key.startswith(CONFIG_ENV_PREFIX) or not sep or section.lower() not in SECTIONS:
                continue
            payload.setdefault(section.lower(), {})[field_name.lower()] = value
        return self.merge_dict(payload)

    def apply_overrides(self, overrides: Mapping[str, Any]) -> "Config":
        cfg = deepcopy(self)
        for key, value in overrides.items():
            section, _, _ = key.partition(".")
            if section not in SECTIONS:
                raise ValidationError(f"Override desconhecido: {key}")
            cfg._set_with_prefix(getattr(cfg, section), key, value)
        return cfg

    def _assign_dataclass(self, instance: Any, data: Mapping[str, Any]) -> None:
        for field_obj in fields(instance):
            name = field_obj.name
            if name not in data:
                continue
            setattr(instance, name, self._convert_value(field_obj.type, data[name]))

    def _set_with_prefix(self, instance: Any, dotted_key: str, value: Any) -> None:
        _, field_name = dotted_key.split(".", 1)
        field_obj = next((f for f in fields(instance) if f.name == field_name), None)
        if field_obj is None:
            raise ValidationError(f"Campo desconhecido: {dotted_key}")
        setattr(instance, field_name, self._convert_value(field_obj.type, value))

    @staticmethod
    def _convert_value(expected_type: Any, value: Any) -> Any:
        # com "from __future__ import annotations" os tipos chegam como texto
        name = expected_type if isinstance(expected_type, str) else getattr(expected_type, "__name__", "")
        try:
            if name == "bool":
                if isinstance(value, str):
                    return value.strip().lower() in {"1", "true", "yes", "sim"}
                return bool(value)
            if name == "int":
                return int(value)
            if name == "float":
                return float(value)
            if name == "str":
                return str(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Valor invalido: {value!r}") from exc
        return value

    def validate(self) -> None:
        if self.general.name_width < 8:
            raise ValidationError("name_width minimo e 8")
        if self.general.log_level.upper() not in LOG_LEVELS:
            raise ValidationError(f"log_level invalido: {self.general.log_level}")
        if self.agenda.history_limit < 1:
            raise ValidationError("history_limit deve ser >= 1")
        if self.agenda.max_datas_por_lote < 0:
            raise ValidationError("max_datas_por_lote nao pode ser negativo")

    @property
    def log_level(self) -> int:
        return getattr(logging, self.general.log_level.upper())

    def to_toml(self) -> str:
        lines: list[str] = []
        for section in SECTIONS:
            instance = getattr(self, section)
            lines.append(f"[{section}]")
            lines.extend(f"{f.name} = {_toml_value(getattr(instance, f.name))}" for f in fields(instance))
            lines.append("")
        return "\n".join(lines)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'
