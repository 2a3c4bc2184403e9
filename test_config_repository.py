from __future__ import annotations

import json
import logging
import tomllib

import pytest

from agenda_core.config import Config
from agenda_core.errors import IOErrorWithCode, ValidationError
from agenda_core.localization import Localizer
from agenda_core.models import AGENDAMENTO, OFICINA, State
from agenda_core.repository import JsonStateRepository, StateRepository
from agenda_core.service import AgendaService


def test_defaults():
    cfg = Config()
    assert cfg.general.timezone == "America/Sao_Paulo"
    assert cfg.agenda.detectar_conflitos is False
    assert cfg.log_level == logging.WARNING


def test_load_toml_env_and_overrides(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[general]\nname_width = 30\nlog_level = "info"\n\n[agenda]\nhistory_limit = 5\n',
        encoding="utf-8",
    )
    env = {
        "AGENDA_AGENDA__DETECTAR_CONFLITOS": "true",
        "AGENDA_GENERAL__NAME_WIDTH": "40",
        "AGENDA_HOST": "0.0.0.0",
        "PATH": "/usr/bin",
    }

    cfg = Config.load(path, env=env, overrides={"general.timezone": "UTC"})

    assert cfg.general.name_width == 40
    assert cfg.general.timezone == "UTC"
    assert cfg.agenda.history_limit == 5
    assert cfg.agenda.detectar_conflitos is True
    assert cfg.log_level == logging.INFO


def test_missing_file_uses_defaults(tmp_path):
    assert Config.load(tmp_path / "nada.toml") == Config()


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[general\n", encoding="utf-8")
    with pytest.raises(IOErrorWithCode):
        Config.load(path)


@pytest.mark.parametrize(
    "override",
    [
        {"general.name_width": 3},
        {"general.log_level": "loud"},
        {"agenda.history_limit": 0},
        {"agenda.max_datas_por_lote": -1},
        {"agenda.inexistente": 1},
        {"outra.coisa": 1},
        {"general.name_width": "largo"},
    ],
)
def test_invalid_values(tmp_path, override):
    with pytest.raises(ValidationError):
        Config.load(tmp_path / "nada.toml", overrides=override)


def test_to_toml_round_trip():
    cfg = Config()
    cfg.agenda.detectar_conflitos = True
    cfg.agenda.max_datas_por_lote = 10
    loaded = Config().merge_dict(tomllib.loads(cfg.to_toml()))
    assert loaded == cfg


def test_memory_repository_has_no_files():
    repo = StateRepository()
    assert not repo.persistent
    with pytest.raises(IOErrorWithCode):
        repo.save()


def test_json_save_and_load_keep_sequences(tmp_path, service, base):
    ids = service.criar_agendamentos(base, ["2024-06-10", "2024-06-11"]).created_ids
    service.remover_agendamento(ids[-1])
    path = tmp_path / "estado" / "agenda.json"
    repo = JsonStateRepository(path)
    repo.state = service.repository.state.clone()
    repo.save()

    reopened = JsonStateRepository(path)

    assert reopened.state.to_dict() == service.repository.state.to_dict()
    assert reopened.state.sequences[AGENDAMENTO] == ids[-1]
    assert reopened.state.next_id(AGENDAMENTO) == ids[-1] + 1


def test_saved_file_is_plain_json(tmp_path, service, cadastros):
    path = tmp_path / "agenda.json"
    repo = JsonStateRepository(path)
    repo.state = service.repository.state
    repo.save()

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert [item["nome"] for item in payload["oficinas"]] == ["Robotica"]
    assert payload["sequences"][OFICINA] == 1


def test_load_missing_or_broken_file(tmp_path):
    repo = JsonStateRepository(tmp_path / "agenda.json")
    with pytest.raises(IOErrorWithCode):
        repo.load(tmp_path / "faltando.json")

    broken = tmp_path / "quebrado.json"
    broken.write_text("{nao e json", encoding="utf-8")
    with pytest.raises(IOErrorWithCode):
        repo.load(broken)

    wrong = tmp_path / "lista.json"
    wrong.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(IOErrorWithCode):
        repo.load(wrong)


def test_next_id_respects_existing_records_without_sequence():
    state = State.from_dict({"oficinas": [{"id": 7, "nome": "Arte"}]})
    assert state.next_id(OFICINA) == 8


def test_history_is_bounded(config):
    config.agenda.history_limit = 2
    service = AgendaService(StateRepository(history_limit=config.agenda.history_limit), config)
    for nome in ("A", "B", "C"):
        service.add_resource("turma", nome=nome)

    assert [snap.label for snap in service.repository.history] == ["turma.add", "turma.add"]
    service.undo()
    service.undo()
    assert [t.nome for t in service.list_resources("turma")] == ["A"]
    with pytest.raises(ValidationError):
        service.undo()


def test_localizer_resolves_locale():
    assert Localizer("en").text("undo.empty") == "[ERR] Nothing to undo."
    assert Localizer("pt_BR").locale == "pt-BR"
    assert Localizer("fr-FR").locale == "pt-BR"
    assert Localizer().text("resource.added", label="Turma", id=3) == "[OK] Turma cadastrado(a) (id 3)."
