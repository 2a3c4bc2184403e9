from __future__ import annotations

from agenda_core.errors import IntegrityViolation, ValidationError


def test_add_assigns_sequential_ids_and_normalizes(service):
    first = service.add_resource("oficina", nome="  Musica ")
    second = service.add_resource("oficinas", nome="Danca")

    assert first.created_ids == (1,)
    assert second.created_ids == (2,)
    assert service.registry.get("oficina", 1).nome == "Musica"


def test_blank_name_is_rejected(service):
    result = service.add_resource("turma", nome="   ")

    assert not result
    assert isinstance(result.error, ValidationError)
    assert service.list_resources("turma") == []


def test_educador_optional_fields(service):
    result = service.add_resource("educador", nome="Eva", email=" ", telefone="(11) 99999-0000")
    educador = result.record

    assert educador.email is None
    assert educador.telefone == "(11) 99999-0000"


def test_invalid_email_is_rejected(service):
    assert not service.add_resource("educador", nome="Eva", email="eva.escola.org")


def test_unknown_field_is_rejected(service):
    result = service.add_resource("turma", nome="A", email="x@y.z")
    assert isinstance(result.error, ValidationError)


def test_update_keeps_omitted_fields(service):
    eid = service.add_resource("educador", nome="Eva", email="eva@escola.org").created_ids[0]

    result = service.update_resource("educador", eid, nome="Eva Maria")

    assert result.success
    educador = service.get_resource("educador", eid)
    assert educador.nome == "Eva Maria"
    assert educador.email == "eva@escola.org"


def test_update_missing_resource_fails(service):
    result = service.update_resource("oficina", 77, nome="X")
    assert isinstance(result.error, ValidationError)


def test_exists_and_get(service):
    tid = service.add_resource("turma", nome="6o Ano").created_ids[0]

    assert service.registry.exists("turma", tid)
    assert not service.registry.exists("turma", tid + 1)
    assert service.registry.get("turma", tid + 1) is None


def test_get_returns_copy(service):
    oid = service.add_resource("oficina", nome="Arte").created_ids[0]
    service.registry.get("oficina", oid).nome = "mudado"
    assert service.registry.get("oficina", oid).nome == "Arte"


def test_list_sorted_by_name_ignoring_accents(service):
    for nome in ("Zeca", "Álvaro", "Bia"):
        service.add_resource("educador", nome=nome)
    assert [e.nome for e in service.list_resources("educadores")] == ["Álvaro", "Bia", "Zeca"]


def test_guard_blocks_referenced_educador(service, base, cadastros):
    aid = service.criar_agendamentos(base, ["2024-06-10"]).created_ids[0]

    assert not service.can_delete("educador", cadastros["ana"])
    assert service.can_delete("educador", cadastros["bruno"])

    refused = service.remove_resource("educador", cadastros["ana"])
    assert isinstance(refused.error, IntegrityViolation)
    assert service.registry.exists("educador", cadastros["ana"])
    assert service.store.get(aid) is not None

    service.remover_agendamento(aid)
    assert service.can_delete("educador", cadastros["ana"])
    assert service.remove_resource("educador", cadastros["ana"]).success
    assert not service.registry.exists("educador", cadastros["ana"])


def test_guard_checks_each_kind(service, base, cadastros):
    service.criar_agendamentos(base, ["2024-06-10", "2024-06-11"])

    assert service.guard.referencias("oficina", cadastros["oficina"]) == [1, 2]
    assert service.guard.referencias("turma", cadastros["turma_b"]) == []
    assert not service.remove_resource("turma", cadastros["turma_a"])
    assert service.remove_resource("turma", cadastros["turma_b"])


def test_remove_missing_resource(service):
    assert isinstance(service.remove_resource("oficina", 5).error, ValidationError)


def test_undo_restores_removed_resource(service):
    oid = service.add_resource("oficina", nome="Arte").created_ids[0]
    service.remove_resource("oficina", oid)

    assert service.undo() == "oficina.remove"
    assert service.registry.exists("oficina", oid)
