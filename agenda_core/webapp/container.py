from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Optional, TypeVar

from ..config import Config, DEFAULT_CONFIG_PATH
from ..localization import Localizer
from ..repository import JsonStateRepository, STATE_FILE_DEFAULT, StateRepository
from ..service import AgendaService

T = TypeVar("T")

DEFAULT_STATE_PATH = STATE_FILE_DEFAULT


@dataclass(slots=True)
class ContainerSettings:
    config_path: Path = DEFAULT_CONFIG_PATH
    state_path: Path | None = DEFAULT_STATE_PATH
    auto_save: bool = True


class ServiceContainer:
    """Mantem instancias compartilhadas de configuracao, repositorio e servico.

    Toda leitura e escrita passa pelo mesmo RLock: a verificacao de
    integridade e a remocao de um recurso acontecem sem outro escritor
    no meio.
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        state_path: Path | str | None = DEFAULT_STATE_PATH,
        *,
        auto_save: bool = True,
        config: Config | None = None,
    ) -> None:
        cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        st_path = Path(state_path) if state_path else None
        self.settings = ContainerSettings(config_path=cfg_path, state_path=st_path, auto_save=auto_save and st_path is not None)
        self._lock = RLock()
        self.config: Config
        self.repo: StateRepository
        self.service: AgendaService
        self.localizer: Localizer
        self._initialise(config)

    def _initialise(self, config: Config | None) -> None:
        config = config or Config.load(path=self.settings.config_path, env=os.environ)
        if self.settings.state_path is None:
            repo: StateRepository = StateRepository(history_limit=config.agenda.history_limit)
        else:
            repo = JsonStateRepository(self.settings.state_path, history_limit=config.agenda.history_limit)
        self.config = config
        self.repo = repo
        self.service = AgendaService(repo, config)
        self.localizer = Localizer(config.general.default_locale)

    @property
    def config_path(self) -> Path:
        return self.settings.config_path

    @property
    def state_path(self) -> Path | None:
        return self.settings.state_path

    def read(self, func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
        with self._lock:
            return func(*args, **kwargs)

    def mutate(self, func: Callable[..., T], /, *args: Any, auto_save: Optional[bool] = None, **kwargs: Any) -> T:
        with self._lock:
            result = func(*args, **kwargs)
            should_save = self.settings.auto_save if auto_save is None else auto_save
            # resultados de falha nao alteram o estado
            if should_save and result is not False and getattr(result, "success", True):
                self.repo.save(self.settings.state_path)
            return result

    def save_state(self, path: Path | str | None = None) -> Path:
        with self._lock:
            target = self.service.save_state(str(path) if path else None)
            self.settings.state_path = target
            return target

    def load_state(self, path: Path | str) -> Path:
        with self._lock:
            loaded = self.service.load_state(str(path))
            self.settings.state_path = loaded
            return loaded

    def undo(self) -> str:
        with self._lock:
            label = self.service.undo()
            if self.settings.auto_save:
                self.repo.save(self.settings.state_path)
            return label


__all__ = ["ServiceContainer", "ContainerSettings", "DEFAULT_STATE_PATH"]
