"""CRUD endpoints, one router per entity kind"""

from typing import Any, List

from fastapi import APIRouter
from fastapi.responses import Response
from pydantic import BaseModel

from calcflow.services.entities import EntityService


def _create_list_endpoint(service: EntityService):
    def list_entities() -> List[Any]:
        return service.list()

    return list_entities


def _create_get_endpoint(service: EntityService):
    def get_entity(entity_id: str):
        return service.get(entity_id)

    return get_entity


def _create_create_endpoint(service: EntityService, input_model: type[BaseModel]):
    def create_entity(body: input_model):  # type: ignore[valid-type]
        return service.create(**body.model_dump())

    return create_entity


def _create_update_endpoint(service: EntityService, input_model: type[BaseModel]):
    def update_entity(entity_id: str, body: input_model):  # type: ignore[valid-type]
        return service.update(entity_id, **body.model_dump(exclude_unset=True, exclude_none=True))

    return update_entity


def _create_delete_endpoint(service: EntityService):
    def delete_entity(entity_id: str) -> Response:
        service.delete(entity_id)
        return Response(status_code=204)

    return delete_entity


def get_entity_router(
    *,
    service: EntityService,
    response_model: type[BaseModel],
    create_model: type[BaseModel],
    update_model: type[BaseModel],
) -> APIRouter:
    router = APIRouter()

    router.get("", response_model=List[response_model])(_create_list_endpoint(service))
    router.post("", response_model=response_model, status_code=201)(
        _create_create_endpoint(service, create_model)
    )
    router.get("/{entity_id}", response_model=response_model)(_create_get_endpoint(service))
    router.put("/{entity_id}", response_model=response_model)(
        _create_update_endpoint(service, update_model)
    )
    router.delete("/{entity_id}", status_code=204)(_create_delete_endpoint(service))

    return router
