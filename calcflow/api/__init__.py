import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from calcflow.api.entities import get_entity_router
from calcflow.api.errors import register_exception_handlers
from calcflow.api.ordered_lists import get_ordered_list_router
from calcflow.api.schemas import (
    CreateCalculationInput,
    CreateFormularInput,
    CreateNodeInput,
    UpdateCalculationInput,
    UpdateFormularInput,
    UpdateNodeInput,
)
from calcflow.config import settings
from calcflow.domain.entities import Calculation, Formular, Node
from calcflow.domain.relations import CALCULATION_FORMULARS, FORMULAR_NODES
from calcflow.ordering.engine import OrderedList
from calcflow.services.entities import EntityService
from calcflow.stores.base import Storage


def create_app(*, storage: Storage) -> FastAPI:
    """Create FastAPI app.

    The storage is opened by the caller and closed when the app shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        yield
        storage.close()

    app = FastAPI(
        title="Calculation API",
        description="API for managing calculations, formulars, and nodes",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response

    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    for prefix, kind, response_model, create_model, update_model in [
        (
            "/api/calculations",
            "calculation",
            Calculation,
            CreateCalculationInput,
            UpdateCalculationInput,
        ),
        ("/api/formulars", "formular", Formular, CreateFormularInput, UpdateFormularInput),
        ("/api/nodes", "node", Node, CreateNodeInput, UpdateNodeInput),
    ]:
        app.include_router(
            router=get_entity_router(
                service=EntityService(storage, kind),
                response_model=response_model,
                create_model=create_model,
                update_model=update_model,
            ),
            prefix=prefix,
            tags=[prefix.rsplit("/", 1)[-1]],
        )

    app.include_router(
        router=get_ordered_list_router(ordered_list=OrderedList(storage, CALCULATION_FORMULARS)),
        prefix="/api/calculations/{parent_id}/formulars",
        tags=["calculations"],
    )
    app.include_router(
        router=get_ordered_list_router(ordered_list=OrderedList(storage, FORMULAR_NODES)),
        prefix="/api/formulars/{parent_id}/nodes",
        tags=["formulars"],
    )

    return app
