from __future__ import annotations

import pytest

from agenda_core.config import Config
from agenda_core.models import AgendamentoBase
from agenda_core.repository import StateRepository
from agenda_core.service import AgendaService


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def service(config: Config) -> AgendaService:
    return AgendaService(StateRepository(), config)


@pytest.fixture
def cadastros(service: AgendaService) -> dict:
    """Uma oficina, dois educadores e duas turmas ja cadastrados."""
    oficina = service.add_resource("oficina", nome="Robotica").created_ids[0]
    ana = service.add_resource("educador", nome="Ana Souza", email="ana@escola.org").created_ids[0]
    bruno = service.add_resource("educador", nome="Bruno Lima").created_ids[0]
    turma_a = service.add_resource("turma", nome="5o Ano A").created_ids[0]
    turma_b = service.add_resource("turma", nome="5o Ano B").created_ids[0]
    return {"oficina": oficina, "ana": ana, "bruno": bruno, "turma_a": turma_a, "turma_b": turma_b}


@pytest.fixture
def base(cadastros: dict) -> AgendamentoBase:
    return AgendamentoBase(
        oficina_id=cadastros["oficina"],
        educador_id=cadastros["ana"],
        turma_id=cadastros["turma_a"],
        hora_inicio="09:00",
        hora_fim="10:30",
        observacoes="Trazer kits",
    )
