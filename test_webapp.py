from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from agenda_core.config import Config
from agenda_core.webapp.app import create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(state_path=None, config=Config()))


@pytest.fixture
def ids(client: TestClient) -> dict:
    oficina = client.post("/api/oficinas/", json={"nome": "Robotica"}).json()["id"]
    educador = client.post("/api/educadores/", json={"nome": "Ana", "email": "ana@escola.org"}).json()["id"]
    turma = client.post("/api/turmas/", json={"nome": "5o Ano"}).json()["id"]
    return {"oficina_id": oficina, "educador_id": educador, "turma_id": turma}


def agendar(client: TestClient, ids: dict, datas: list[str], **extra):
    payload = {**ids, "hora_inicio": "09:00", "hora_fim": "10:00", "datas": datas, **extra}
    return client.post("/api/agendamentos/", json=payload)


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_resource_crud(client):
    created = client.post("/api/educadores/", json={"nome": " Eva ", "telefone": ""})
    assert created.status_code == 201
    body = created.json()
    assert body["nome"] == "Eva"
    assert body["telefone"] is None

    eid = body["id"]
    updated = client.put(f"/api/educadores/{eid}", json={"email": "eva@escola.org"})
    assert updated.status_code == 200
    assert updated.json()["nome"] == "Eva"
    assert updated.json()["email"] == "eva@escola.org"

    assert [item["id"] for item in client.get("/api/educadores/").json()] == [eid]
    assert client.delete(f"/api/educadores/{eid}").status_code == 200
    assert client.get(f"/api/educadores/{eid}").status_code == 404


def test_resource_errors(client):
    assert client.post("/api/turmas/", json={"nome": "  "}).status_code == 400
    assert client.put("/api/turmas/9", json={"nome": "X"}).status_code == 404
    assert client.delete("/api/turmas/9").status_code == 404


def test_create_batch(client, ids):
    response = agendar(client, ids, ["2024-06-10", "", "2024-06-17"])

    assert response.status_code == 201
    assert len(response.json()["ids"]) == 2
    rows = client.get("/api/agendamentos/").json()
    assert [row["data"] for row in rows] == ["2024-06-10", "2024-06-17"]
    assert rows[0]["oficina"] == "Robotica"


def test_create_rejections(client, ids):
    assert agendar(client, ids, []).status_code == 400
    assert agendar(client, ids, ["2024-06-10"], hora_fim="08:00").status_code == 400
    assert agendar(client, {**ids, "turma_id": 99}, ["2024-06-10"]).status_code == 422
    assert agendar(client, {**ids, "oficina_id": "abc"}, ["2024-06-10"]).status_code == 422
    assert client.get("/api/agendamentos/").json() == []


def test_delete_referenced_resource_conflicts(client, ids):
    aid = agendar(client, ids, ["2024-06-10"]).json()["ids"][0]

    response = client.delete(f"/api/educadores/{ids['educador_id']}")
    assert response.status_code == 409
    assert client.get(f"/api/educadores/{ids['educador_id']}").status_code == 200

    assert client.delete(f"/api/agendamentos/{aid}").status_code == 200
    assert client.delete(f"/api/agendamentos/{aid}").status_code == 200
    assert client.delete(f"/api/educadores/{ids['educador_id']}").status_code == 200


def test_update_agendamento(client, ids):
    aid = agendar(client, ids, ["2024-06-10"]).json()["ids"][0]
    payload = {**ids, "data": "2024-06-11", "hora_inicio": "8:30", "hora_fim": "09:30", "observacoes": "sala 2"}

    response = client.put(f"/api/agendamentos/{aid}", json=payload)

    assert response.status_code == 200
    assert response.json()["hora_inicio"] == "08:30"
    assert client.get(f"/api/agendamentos/{aid}").json()["data"] == "2024-06-11"
    assert client.put("/api/agendamentos/999", json=payload).status_code == 404
    assert client.get("/api/agendamentos/999").status_code == 404


def test_filters(client, ids):
    agendar(client, ids, ["2024-06-08", "2024-06-12", "2024-06-20"])

    semana = client.get("/api/agendamentos/", params={"periodo": "semana", "hoje": "2024-06-12"}).json()
    assert [row["data"] for row in semana] == ["2024-06-12"]
    outra_turma = client.get("/api/agendamentos/", params={"turma_id": ids["turma_id"] + 1}).json()
    assert outra_turma == []
    assert client.get("/api/agendamentos/", params={"periodo": "ano"}).status_code == 400
    assert client.get("/api/agendamentos/", params={"oficina_id": "abc"}).status_code == 400


def test_calendar(client, ids):
    agendar(client, ids, ["2024-07-15"])

    response = client.get("/api/agendamentos/calendario", params={"ano": 2024, "mes": 7, "hoje": "2024-07-04"})

    assert response.status_code == 200
    body = response.json()
    assert body["titulo"] == "Julho 2024"
    assert body["inicio_em_branco"] == 1
    cells = [cell for week in body["semanas"] for cell in week]
    assert len(cells) % 7 == 0
    assert cells[0] is None
    dia_15 = next(cell for cell in cells if cell and cell["dia"] == 15)
    assert [item["data"] for item in dia_15["agendamentos"]] == ["2024-07-15"]
    assert [cell["dia"] for cell in cells if cell and cell["hoje"]] == [4]
    assert client.get("/api/agendamentos/calendario", params={"ano": 2024, "mes": 13}).status_code == 422


def test_operation_contract(client, ids):
    response = client.post(
        "/api/sistema/operacoes/agendamento.criar",
        json={"payload": {**ids, "hora_inicio": "09:00", "hora_fim": "08:00", "datas": ["2024-06-10"]}},
    )
    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error_type"] == "ValidationError"

    ok = client.post(
        "/api/sistema/operacoes/agendamento.criar",
        json={"payload": {**ids, "hora_inicio": "09:00", "hora_fim": "10:00", "data": "2024-06-10"}},
    )
    assert ok.json()["success"] is True
    assert len(ok.json()["created_ids"]) == 1

    unknown = client.post("/api/sistema/operacoes/nada", json={"payload": {}})
    assert unknown.json()["error_type"] == "UsageError"
    assert "agendamento.criar" in client.get("/api/sistema/operacoes").json()


@pytest.mark.parametrize(
    ("operacao", "payload"),
    [
        ("agendamento.criar", {"hora_inicio": "09:00", "hora_fim": "10:00", "datas": 5}),
        ("agendamento.criar", {"hora_inicio": "09:00", "hora_fim": "10:00", "datas": ["2024-06-10"], "observacoes": 5}),
        ("oficina.adicionar", {"nome": 5}),
        ("oficina.remover", {"id": "²"}),
    ],
)
def test_operation_with_wrong_types_is_a_validation_failure(client, ids, operacao, payload):
    response = client.post(f"/api/sistema/operacoes/{operacao}", json={"payload": {**ids, **payload}})

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error_type"] == "ValidationError"
    assert client.get("/api/agendamentos/").json() == []


def test_undo_and_resumo(client, ids):
    agendar(client, ids, ["2024-06-12"])
    resumo = client.get("/api/sistema/resumo", params={"hoje": "2024-06-12"}).json()
    assert resumo["agendamentos"] == 1
    assert resumo["semana"] == 1

    assert client.post("/api/sistema/undo").status_code == 200
    assert client.get("/api/agendamentos/").json() == []


def test_save_without_file_fails(client):
    assert client.post("/api/sistema/salvar", json={}).status_code == 500


def test_file_backed_app_autosaves(tmp_path):
    target = tmp_path / "agenda.json"
    fresh = TestClient(create_app(state_path=str(target), auto_save=True, config=Config()))
    fresh.post("/api/oficinas/", json={"nome": "Xadrez"})
    assert target.exists()
    reloaded = TestClient(create_app(state_path=str(target), config=Config()))
    assert [item["nome"] for item in reloaded.get("/api/oficinas/").json()] == ["Xadrez"]
    copia = tmp_path / "copia.json"
    assert reloaded.post("/api/sistema/salvar", json={"path": str(copia)}).json()["path"] == str(copia)
    assert copia.exists()
    assert reloaded.post("/api/sistema/carregar", json={"path": str(tmp_path / "nada.json")}).status_code == 400
