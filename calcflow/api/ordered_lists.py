"""Endpoints managing the ordered children of a parent.

Mounted once per relation, under a prefix carrying the parent id, e.g.
/api/calculations/{parent_id}/formulars.
"""

from typing import List

from fastapi import APIRouter
from fastapi.responses import Response

from calcflow.api.schemas import AttachInput, ReorderInput
from calcflow.domain.associations import Association, ChainEntry
from calcflow.ordering.engine import OrderedList


def _create_attach_endpoint(ordered_list: OrderedList):
    def attach(parent_id: str, body: AttachInput) -> Association:
        return ordered_list.attach(parent_id, body.child_id, body.next_id)

    return attach


def _create_detach_endpoint(ordered_list: OrderedList):
    def detach(parent_id: str, child_id: str) -> Response:
        ordered_list.detach(parent_id, child_id)
        return Response(status_code=204)

    return detach


def _create_read_endpoint(ordered_list: OrderedList):
    def read(parent_id: str, expand: bool = True) -> List[ChainEntry]:
        """List the associations of a parent in chain order.

        With expand (the default) each association carries its child entity.
        """
        return ordered_list.read(parent_id, expand=expand)

    return read


def _create_reorder_endpoint(ordered_list: OrderedList):
    def reorder(parent_id: str, body: ReorderInput, expand: bool = True) -> List[ChainEntry]:
        return ordered_list.reorder(parent_id, body.order, expand=expand)

    return reorder


def get_ordered_list_router(*, ordered_list: OrderedList) -> APIRouter:
    router = APIRouter()

    router.get("", response_model=List[ChainEntry])(_create_read_endpoint(ordered_list))
    router.post("", response_model=Association, status_code=201)(
        _create_attach_endpoint(ordered_list)
    )
    router.put("/reorder", response_model=List[ChainEntry])(
        _create_reorder_endpoint(ordered_list)
    )
    router.delete("/{child_id}", status_code=204)(_create_detach_endpoint(ordered_list))

    return router
