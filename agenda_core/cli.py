from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

import typer

from .config import Config, DEFAULT_CONFIG_PATH
from .errors import AgendaError, UsageError, ValidationError
from .localization import Localizer
from .models import EDUCADOR, RESOURCE_KINDS, RESOURCE_LABELS, Agendamento, AgendamentoBase
from .output import FORMATS, calendar_to_dict, render_calendar, render_json, render_output, render_yaml
from .query import AgendamentoFiltro
from .repository import JsonStateRepository, STATE_FILE_DEFAULT
from .results import OperationResult
from .service import AgendaService
from .utils import comma_split, parse_id, parse_optional_id

APP_NAME = "agenda"
DEFAULT_STATE_PATH = STATE_FILE_DEFAULT
AGENDAMENTO_COLUMNS = ["id", "data", "inicio", "fim", "oficina", "educador", "turma", "obs"]
RESOURCE_COLUMNS = {
    "oficina": ["id", "nome"],
    "educador": ["id", "nome", "email", "telefone"],
    "turma": ["id", "nome"],
}

app = typer.Typer(name=APP_NAME, add_completion=False, context_settings={"help_option_names": ["-h", "--help"]})

agendamento_app = typer.Typer(help="Gerencia agendamentos.")
arquivo_app = typer.Typer(help="Persistencia do estado.")
config_app = typer.Typer(help="Configuracao do sistema.")
sistema_app = typer.Typer(help="Utilitarios gerais.")

app.add_typer(agendamento_app, name="agendamento")
app.add_typer(arquivo_app, name="arquivo")
app.add_typer(config_app, name="config")
app.add_typer(sistema_app, name="sistema")


@dataclass
class AppContext:
    config: Config
    config_path: Path
    state_path: Path
    repo: JsonStateRepository
    service: AgendaService
    formatter: str
    localizer: Localizer
    autosave: bool = True
    dirty: bool = False


def _ensure_format(value: str) -> str:
    fmt = value.lower()
    if fmt not in FORMATS:
        raise UsageError(f"Formato nao suportado: {value}")
    return fmt


def get_ctx(ctx: typer.Context) -> AppContext:
    obj = ctx.find_object(AppContext)
    if obj is None:
        raise RuntimeError("Contexto nao inicializado")
    return obj


def fail(error: AgendaError) -> None:
    typer.secho(str(error), err=True, fg=typer.colors.RED)
    raise typer.Exit(error.code)


def ensure(app_ctx: AppContext, result: OperationResult) -> OperationResult:
    if not result:
        fail(result.error)
    app_ctx.dirty = True
    return result


def print_rows(app_ctx: AppContext, rows: Sequence[dict], columns: Sequence[str], *, fmt: Optional[str] = None) -> None:
    formatter = _ensure_format(fmt or app_ctx.formatter)
    widths = {name: app_ctx.config.general.name_width for name in ("nome", "oficina", "educador", "turma", "obs")}
    typer.echo(render_output(rows, columns, formatter, width_overrides=widths))


def build_filter(
    oficina: Optional[str],
    educador: Optional[str],
    turma: Optional[str],
    periodo: Optional[str],
) -> AgendamentoFiltro:
    return AgendamentoFiltro.from_raw(oficina_id=oficina, educador_id=educador, turma_id=turma, periodo=periodo)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Caminho do config TOML."),
    state_path: Path = typer.Option(DEFAULT_STATE_PATH, "--state", help="Arquivo de estado JSON."),
    tz: Optional[str] = typer.Option(None, "--tz", help="Fuso horario padrao."),
    locale: Optional[str] = typer.Option(None, "--locale", help="Locale BCP-47."),
    formatter: str = typer.Option("table", "--format", help="table|json|csv|yaml"),
    autosave: bool = typer.Option(True, "--autosave/--no-autosave", help="Grava o estado apos alteracoes."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log detalhado."),
) -> None:
    overrides: dict[str, Any] = {}
    if tz:
        overrides["general.timezone"] = tz
    if locale:
        overrides["general.default_locale"] = locale
    try:
        config = Config.load(path=config_path, env=os.environ, overrides=overrides)
        logging.basicConfig(
            level=logging.DEBUG if verbose else config.log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        repo = JsonStateRepository(state_path, history_limit=config.agenda.history_limit)
        app_ctx = AppContext(
            config=config,
            config_path=config_path,
            state_path=state_path,
            repo=repo,
            service=AgendaService(repo, config),
            formatter=_ensure_format(formatter),
            localizer=Localizer(config.general.default_locale),
            autosave=autosave,
        )
    except AgendaError as exc:
        fail(exc)
    ctx.obj = app_ctx

    def _autosave() -> None:
        if app_ctx.autosave and app_ctx.dirty:
            app_ctx.repo.save(app_ctx.state_path)

    ctx.call_on_close(_autosave)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# cadastros ---------------------------------------------------------------
def _resource_row(record: Any) -> dict:
    return record.to_dict()


def _register_resource_commands(kind: str) -> typer.Typer:
    label = RESOURCE_LABELS[kind]
    sub = typer.Typer(help=f"Cadastro de {label.lower()}s.")
    columns = RESOURCE_COLUMNS[kind]

    @sub.command("listar")
    def listar(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
        app_ctx = get_ctx(ctx)
        rows = [_resource_row(record) for record in app_ctx.service.list_resources(kind)]
        print_rows(app_ctx, rows, columns, fmt=format)

    @sub.command("mostrar")
    def mostrar(
        ctx: typer.Context,
        resource_id: str = typer.Argument(..., help="ID"),
        format: Optional[str] = typer.Option(None, "--format"),
    ) -> None:
        app_ctx = get_ctx(ctx)
        try:
            rid = parse_id(resource_id, "id")
            record = app_ctx.service.get_resource(kind, rid)
        except ValidationError as exc:
            fail(exc)
        row = _resource_row(record)
        row["agendamentos"] = len(app_ctx.service.guard.referencias(kind, rid))
        print_rows(app_ctx, [row], [*columns, "agendamentos"], fmt=format)

    @sub.command("adicionar")
    def adicionar(
        ctx: typer.Context,
        nome: str = typer.Option(..., "--nome"),
        email: Optional[str] = typer.Option(None, "--email", hidden=kind != EDUCADOR),
        telefone: Optional[str] = typer.Option(None, "--telefone", hidden=kind != EDUCADOR),
    ) -> None:
        app_ctx = get_ctx(ctx)
        fields: dict[str, Any] = {"nome": nome}
        if kind == EDUCADOR:
            fields.update(email=email, telefone=telefone)
        elif email or telefone:
            fail(UsageError("--email/--telefone valem apenas para educador."))
        result = ensure(app_ctx, app_ctx.service.add_resource(kind, **fields))
        typer.echo(app_ctx.localizer.text("resource.added", label=label, id=result.created_ids[0]))

    @sub.command("editar")
    def editar(
        ctx: typer.Context,
        resource_id: str = typer.Argument(..., help="ID"),
        nome: Optional[str] = typer.Option(None, "--nome"),
        email: Optional[str] = typer.Option(None, "--email", hidden=kind != EDUCADOR),
        telefone: Optional[str] = typer.Option(None, "--telefone", hidden=kind != EDUCADOR),
    ) -> None:
        app_ctx = get_ctx(ctx)
        fields: dict[str, Any] = {"nome": nome}
        if kind == EDUCADOR:
            fields.update(email=email, telefone=telefone)
        try:
            rid = parse_id(resource_id, "id")
        except ValidationError as exc:
            fail(exc)
        ensure(app_ctx, app_ctx.service.update_resource(kind, rid, **fields))
        typer.echo(app_ctx.localizer.text("resource.updated", label=label))

    @sub.command("remover")
    def remover(ctx: typer.Context, resource_id: str = typer.Argument(..., help="ID")) -> None:
        app_ctx = get_ctx(ctx)
        try:
            rid = parse_id(resource_id, "id")
        except ValidationError as exc:
            fail(exc)
        ensure(app_ctx, app_ctx.service.remove_resource(kind, rid))
        typer.echo(app_ctx.localizer.text("resource.removed", label=label))

    return sub


for _kind in RESOURCE_KINDS:
    app.add_typer(_register_resource_commands(_kind), name=_kind)


# agendamentos ------------------------------------------------------------
@agendamento_app.command("criar")
def agendamento_criar(
    ctx: typer.Context,
    oficina: str = typer.Option(..., "--oficina", help="ID da oficina"),
    educador: str = typer.Option(..., "--educador", help="ID do educador"),
    turma: str = typer.Option(..., "--turma", help="ID da turma"),
    inicio: str = typer.Option(..., "--inicio", help="HH:MM"),
    fim: str = typer.Option(..., "--fim", help="HH:MM"),
    datas: List[str] = typer.Option(..., "--data", "-d", help="YYYY-MM-DD; repita ou separe por virgula"),
    obs: Optional[str] = typer.Option(None, "--obs"),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    try:
        base = AgendamentoBase(
            oficina_id=parse_id(oficina, "oficina"),
            educador_id=parse_id(educador, "educador"),
            turma_id=parse_id(turma, "turma"),
            hora_inicio=inicio,
            hora_fim=fim,
            observacoes=obs,
        )
    except ValidationError as exc:
        fail(exc)
    lote = [item for raw in datas for item in comma_split(raw)]
    result = ensure(app_ctx, app_ctx.service.criar_agendamentos(base, lote))
    typer.echo(app_ctx.localizer.text("agendamento.created", count=len(result.created_ids)))
    rows = [app_ctx.service.agendamento_row(app_ctx.service.get_agendamento(aid)) for aid in result.created_ids]
    print_rows(app_ctx, rows, AGENDAMENTO_COLUMNS, fmt=format)


@agendamento_app.command("editar")
def agendamento_editar(
    ctx: typer.Context,
    agendamento_id: str = typer.Argument(..., help="ID do agendamento"),
    oficina: Optional[str] = typer.Option(None, "--oficina"),
    educador: Optional[str] = typer.Option(None, "--educador"),
    turma: Optional[str] = typer.Option(None, "--turma"),
    data: Optional[str] = typer.Option(None, "--data"),
    inicio: Optional[str] = typer.Option(None, "--inicio"),
    fim: Optional[str] = typer.Option(None, "--fim"),
    obs: Optional[str] = typer.Option(None, "--obs"),
) -> None:
    app_ctx = get_ctx(ctx)
    try:
        current = app_ctx.service.get_agendamento(parse_id(agendamento_id, "id"))
        record = Agendamento(
            id=current.id,
            oficina_id=parse_optional_id(oficina, "oficina") or current.oficina_id,
            educador_id=parse_optional_id(educador, "educador") or current.educador_id,
            turma_id=parse_optional_id(turma, "turma") or current.turma_id,
            data=data or current.data,
            hora_inicio=inicio or current.hora_inicio,
            hora_fim=fim or current.hora_fim,
            observacoes=obs if obs is not None else current.observacoes,
        )
    except ValidationError as exc:
        fail(exc)
    ensure(app_ctx, app_ctx.service.atualizar_agendamento(record))
    typer.echo(app_ctx.localizer.text("agendamento.updated"))


@agendamento_app.command("remover")
def agendamento_remover(
    ctx: typer.Context,
    agendamento_id: str = typer.Argument(..., help="ID do agendamento"),
) -> None:
    app_ctx = get_ctx(ctx)
    try:
        aid = parse_id(agendamento_id, "id")
    except ValidationError as exc:
        fail(exc)
    app_ctx.service.remover_agendamento(aid)
    app_ctx.dirty = True
    typer.echo(app_ctx.localizer.text("agendamento.removed"))


@agendamento_app.command("mostrar")
def agendamento_mostrar(
    ctx: typer.Context,
    agendamento_id: str = typer.Argument(..., help="ID do agendamento"),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    try:
        item = app_ctx.service.get_agendamento(parse_id(agendamento_id, "id"))
    except ValidationError as exc:
        fail(exc)
    print_rows(app_ctx, [app_ctx.service.agendamento_row(item)], AGENDAMENTO_COLUMNS, fmt=format)


@agendamento_app.command("listar")
def agendamento_listar(
    ctx: typer.Context,
    oficina: Optional[str] = typer.Option(None, "--oficina"),
    educador: Optional[str] = typer.Option(None, "--educador"),
    turma: Optional[str] = typer.Option(None, "--turma"),
    periodo: Optional[str] = typer.Option(None, "--periodo", help="todos|futuro|passado|semana|mes"),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    try:
        filtro = build_filter(oficina, educador, turma, periodo)
    except ValidationError as exc:
        fail(exc)
    print_rows(app_ctx, app_ctx.service.list_agendamentos(filtro), AGENDAMENTO_COLUMNS, fmt=format)


@agendamento_app.command("calendario")
def agendamento_calendario(
    ctx: typer.Context,
    ano: Optional[int] = typer.Option(None, "--ano"),
    mes: Optional[int] = typer.Option(None, "--mes", min=1, max=12),
    oficina: Optional[str] = typer.Option(None, "--oficina"),
    educador: Optional[str] = typer.Option(None, "--educador"),
    turma: Optional[str] = typer.Option(None, "--turma"),
    periodo: Optional[str] = typer.Option(None, "--periodo"),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    service = app_ctx.service
    hoje = service.hoje()
    try:
        formatter = _ensure_format(format or app_ctx.formatter)
        filtro = build_filter(oficina, educador, turma, periodo)
        month = service.calendario(ano or hoje.year, mes or hoje.month, filtro, hoje=hoje)
    except AgendaError as exc:
        fail(exc)
    labels = {
        item.id: f"{item.hora_inicio} {service.registry.display_name('oficina', item.oficina_id)}"
        for cell in month.celulas
        for item in cell.agendamentos
    }
    if formatter == "json":
        typer.echo(render_json(calendar_to_dict(month, labels)))
    elif formatter == "yaml":
        typer.echo(render_yaml(calendar_to_dict(month, labels)))
    else:
        typer.echo(render_calendar(month, labels))
        if not labels:
            typer.echo(app_ctx.localizer.text("calendar.empty"))


# arquivo / config / sistema --------------------------------------------
@arquivo_app.command("salvar")
def arquivo_salvar(ctx: typer.Context, path: Optional[Path] = typer.Argument(None)) -> None:
    app_ctx = get_ctx(ctx)
    target = app_ctx.service.save_state(str(path) if path else None)
    app_ctx.state_path = target
    typer.echo(app_ctx.localizer.text("state.saved", path=target))


@arquivo_app.command("carregar")
def arquivo_carregar(ctx: typer.Context, path: Path = typer.Argument(...)) -> None:
    app_ctx = get_ctx(ctx)
    try:
        target = app_ctx.service.load_state(str(path))
    except AgendaError as exc:
        fail(exc)
    app_ctx.dirty = True
    typer.echo(app_ctx.localizer.text("state.loaded", path=target))


@config_app.command("mostrar")
def config_mostrar(ctx: typer.Context) -> None:
    typer.echo(get_ctx(ctx).config.to_toml())


@sistema_app.command("hoje")
def sistema_hoje(ctx: typer.Context) -> None:
    typer.echo(get_ctx(ctx).service.hoje().isoformat())


@sistema_app.command("resumo")
def sistema_resumo(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
    app_ctx = get_ctx(ctx)
    info = app_ctx.service.resumo()
    counters = [{key: info[key] for key in ("hoje", "oficinas", "educadores", "turmas", "agendamentos", "futuros", "semana")}]
    print_rows(app_ctx, counters, list(counters[0]), fmt=format)
    if info["proximos"]:
        typer.echo("")
        print_rows(app_ctx, info["proximos"], AGENDAMENTO_COLUMNS, fmt=format)


@sistema_app.command("undo")
def sistema_undo(ctx: typer.Context) -> None:
    app_ctx = get_ctx(ctx)
    try:
        label = app_ctx.service.undo()
    except ValidationError:
        typer.echo(app_ctx.localizer.text("undo.empty"))
        return
    app_ctx.dirty = True
    typer.echo(app_ctx.localizer.text("undo.applied", label=label))


# entrada principal
def main_entry() -> None:
    try:
        app()
    except AgendaError as exc:
        typer.secho(str(exc), err=True)
        raise SystemExit(exc.code)
    except Exception as exc:  # pragma: no cover
        typer.secho(f"Erro interno: {exc}", err=True)
        raise SystemExit(8)
