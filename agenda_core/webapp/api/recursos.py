from typing import Any, List, Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ... import errors
from ...models import EDUCADOR, OFICINA, RESOURCE_LABELS, TURMA
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import (
    EducadorIn,
    EducadorOut,
    EducadorUpdate,
    Message,
    OficinaIn,
    OficinaOut,
    OficinaUpdate,
    TurmaIn,
    TurmaOut,
    TurmaUpdate,
)
from .common import http_error, raise_for_result


def build_router(kind: str, schema_in: Type[BaseModel], schema_update: Type[BaseModel], schema_out: Type[BaseModel]) -> APIRouter:
    """Rotas CRUD de um cadastro; a remocao respeita o guarda de integridade."""
    router = APIRouter()
    label = RESOURCE_LABELS[kind]

    def to_schema(record: Any) -> BaseModel:
        return schema_out(**record.to_dict())

    @router.get("/", response_model=List[schema_out])
    def list_resources(container: ServiceContainer = Depends(get_container)) -> List[BaseModel]:
        records = container.read(container.service.list_resources, kind)
        return [to_schema(record) for record in records]

    @router.post("/", response_model=schema_out, status_code=status.HTTP_201_CREATED)
    def create_resource(payload: schema_in, container: ServiceContainer = Depends(get_container)) -> BaseModel:
        result = container.mutate(container.service.add_resource, kind, **payload.model_dump())
        raise_for_result(result)
        return to_schema(result.record)

    @router.get("/{resource_id}", response_model=schema_out)
    def get_resource(resource_id: int, container: ServiceContainer = Depends(get_container)) -> BaseModel:
        try:
            record = container.read(container.service.get_resource, kind, resource_id)
        except errors.ValidationError as exc:
            raise http_error(exc, status_code=404) from exc
        return to_schema(record)

    @router.put("/{resource_id}", response_model=schema_out)
    def update_resource(
        resource_id: int,
        payload: schema_update,
        container: ServiceContainer = Depends(get_container),
    ) -> BaseModel:
        if not container.read(container.service.registry.exists, kind, resource_id):
            raise http_error(errors.ValidationError(f"{label} nao encontrado(a): {resource_id}"), status_code=404)
        data = payload.model_dump(exclude_unset=True)
        result = container.mutate(container.service.update_resource, kind, resource_id, **data)
        raise_for_result(result)
        return to_schema(result.record)

    @router.delete("/{resource_id}", response_model=Message)
    def remove_resource(resource_id: int, container: ServiceContainer = Depends(get_container)) -> Message:
        if not container.read(container.service.registry.exists, kind, resource_id):
            raise http_error(errors.ValidationError(f"{label} nao encontrado(a): {resource_id}"), status_code=404)
        raise_for_result(container.mutate(container.service.remove_resource, kind, resource_id))
        return Message(detail=container.localizer.text("resource.removed", label=label))

    return router


oficinas_router = build_router(OFICINA, OficinaIn, OficinaUpdate, OficinaOut)
educadores_router = build_router(EDUCADOR, EducadorIn, EducadorUpdate, EducadorOut)
turmas_router = build_router(TURMA, TurmaIn, TurmaUpdate, TurmaOut)
