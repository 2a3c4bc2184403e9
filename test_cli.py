from __future__ import annotations

import json
from datetime import date

import pytest
from typer.testing import CliRunner

from agenda_core.cli import app
from agenda_core.service import AgendaService

runner = CliRunner()


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setattr(AgendaService, "hoje", lambda self: date(2024, 7, 4))
    state = tmp_path / "agenda.json"
    config = tmp_path / "config.toml"

    def _run(*args: str):
        return runner.invoke(app, ["--config", str(config), "--state", str(state), *args])

    _run.state = state
    return _run


@pytest.fixture
def cadastrado(run):
    run("oficina", "adicionar", "--nome", "Robotica")
    run("educador", "adicionar", "--nome", "Ana", "--email", "ana@escola.org")
    run("turma", "adicionar", "--nome", "5o Ano")
    return run


def criar(run, *datas: str, inicio: str = "09:00", fim: str = "10:00", oficina: str = "1"):
    args = ["agendamento", "criar", "--oficina", oficina, "--educador", "1", "--turma", "1"]
    args += ["--inicio", inicio, "--fim", fim]
    for data in datas:
        args += ["-d", data]
    return run(*args)


def test_add_and_list_resources(cadastrado):
    result = cadastrado("educador", "listar", "--format", "json")

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"id": 1, "nome": "Ana", "email": "ana@escola.org", "telefone": None}]


def test_state_is_saved_between_runs(cadastrado):
    payload = json.loads(cadastrado.state.read_text(encoding="utf-8"))
    assert [item["nome"] for item in payload["turmas"]] == ["5o Ano"]


def test_no_autosave(run):
    result = run("--no-autosave", "oficina", "adicionar", "--nome", "Robotica")
    assert result.exit_code == 0
    assert not run.state.exists()


def test_create_batch_and_list(cadastrado):
    result = criar(cadastrado, "2024-07-15", "", "2024-07-08")
    assert result.exit_code == 0
    assert "2 agendamento(s)" in result.stdout

    listed = cadastrado("agendamento", "listar", "--format", "json")
    rows = json.loads(listed.stdout)
    assert [row["data"] for row in rows] == ["2024-07-08", "2024-07-15"]
    assert rows[0]["oficina"] == "Robotica"

    futuro = cadastrado("agendamento", "listar", "--periodo", "futuro", "--format", "json")
    assert len(json.loads(futuro.stdout)) == 2


def test_validation_exit_code(cadastrado):
    assert criar(cadastrado, "2024-07-15", inicio="10:00", fim="09:00").exit_code == 3
    assert criar(cadastrado, "2024-07-15", oficina="abc").exit_code == 3
    assert criar(cadastrado, "2024-07-15", oficina="9").exit_code == 4
    assert cadastrado("agendamento", "listar", "--periodo", "ano").exit_code == 3


def test_integrity_exit_code(cadastrado):
    criar(cadastrado, "2024-07-15")

    refused = cadastrado("educador", "remover", "1")
    assert refused.exit_code == 5
    assert "agendamento" in refused.output.lower()

    assert cadastrado("agendamento", "remover", "1").exit_code == 0
    assert cadastrado("educador", "remover", "1").exit_code == 0


def test_edit_agendamento(cadastrado):
    criar(cadastrado, "2024-07-15")
    result = cadastrado("agendamento", "editar", "1", "--fim", "11:30", "--obs", "sala 3")
    assert result.exit_code == 0

    shown = json.loads(cadastrado("agendamento", "mostrar", "1", "--format", "json").stdout)
    assert shown[0]["fim"] == "11:30"
    assert shown[0]["obs"] == "sala 3"
    assert cadastrado("agendamento", "mostrar", "7").exit_code == 3


def test_calendar(cadastrado):
    criar(cadastrado, "2024-07-15")

    result = cadastrado("agendamento", "calendario")

    assert result.exit_code == 0
    assert "Julho 2024" in result.stdout
    assert "* 4" in result.stdout
    assert "09:00 Robo" in result.stdout


def test_calendar_json(cadastrado):
    data = json.loads(cadastrado("agendamento", "calendario", "--ano", "2024", "--mes", "2", "--format", "json").stdout)
    assert data["titulo"] == "Fevereiro 2024"
    assert sum(len(week) for week in data["semanas"]) % 7 == 0


def test_undo(cadastrado):
    assert "Nada para desfazer" in cadastrado("sistema", "undo").stdout


def test_resumo_and_config(cadastrado):
    criar(cadastrado, "2024-07-05", "2024-06-01")

    resumo = cadastrado("sistema", "resumo", "--format", "json")
    assert resumo.exit_code == 0
    assert '"futuros": 1' in resumo.stdout

    shown = cadastrado("config", "mostrar")
    assert "[agenda]" in shown.stdout
    assert cadastrado("sistema", "hoje").stdout.strip() == "2024-07-04"


def test_save_and_load(cadastrado, tmp_path):
    copia = tmp_path / "copia.json"
    assert cadastrado("arquivo", "salvar", str(copia)).exit_code == 0
    assert copia.exists()
    assert cadastrado("arquivo", "carregar", str(tmp_path / "nada.json")).exit_code == 7


def test_create_accepts_comma_separated_dates(cadastrado):
    result = criar(cadastrado, "2024-07-15,2024-07-22", "2024-07-29")
    assert "3 agendamento(s)" in result.stdout


def test_english_messages(cadastrado):
    result = cadastrado("--locale", "en-US", "turma", "adicionar", "--nome", "6o Ano")
    assert "Turma added (id 2)" in result.stdout
