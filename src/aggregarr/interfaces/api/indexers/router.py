"""Indexer configuration endpoints (list, edit, reorder, test)."""

from __future__ import annotations

import uuid
from typing import Literal, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from aggregarr.domain.entities.indexer import (
    ApiKeyTransport,
    IndexerConfig,
    IndexerType,
)
from aggregarr.domain.indexers.exceptions import (
    BadStatusCodeError,
    ConfigStoreError,
    ConnectivityError,
    IndexerConfigError,
    IndexerError,
    IndexerTransportError,
    UnknownIndexerError,
)
from aggregarr.interfaces.api.indexers.presenter import (
    present_config,
    present_configs,
    present_definition,
)
from aggregarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/indexers", tags=["indexers"])


class IndexerConfigPayload(BaseModel):
    """Body of ``POST /api/v1/indexers`` (create or update)."""

    id: str | None = None
    name: str = Field(min_length=1)
    indexer_type: IndexerType
    base_url: str | None = None
    api_key: str | None = Field(
        default=None,
        description="Omit to keep the stored key when updating.",
    )
    is_active: bool = True
    endpoint_path: str | None = None
    category_filter: str | None = None
    api_key_transport: ApiKeyTransport | None = None


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
    )


def _not_found(exc: UnknownIndexerError) -> JSONResponse:
    return _error(404, "unknown_indexer", str(exc))


def _store_failed(exc: ConfigStoreError) -> JSONResponse:
    log.error("indexer_store_failed", error=str(exc))
    return _error(503, "store_unavailable", str(exc))


@router.get("")
async def list_indexers(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    manager = state.indexer_manager
    body = present_configs(manager.list_configs())
    body["searching"] = manager.configured_indexer_names
    return JSONResponse(content=body)


@router.post("")
async def save_indexer(request: Request, payload: IndexerConfigPayload) -> JSONResponse:
    """Create a new indexer or update an existing one by id."""
    state = cast(AppState, request.app.state)
    manager = state.indexer_manager

    config_id = payload.id or uuid.uuid4().hex
    api_key = payload.api_key
    if api_key is None and payload.id is not None:
        try:
            api_key = manager.get_config(payload.id).api_key
        except UnknownIndexerError:
            api_key = None

    config = IndexerConfig(
        id=config_id,
        name=payload.name.strip(),
        indexer_type=payload.indexer_type,
        base_url=payload.base_url,
        api_key=api_key,
        is_active=payload.is_active,
        endpoint_path=payload.endpoint_path,
        category_filter=payload.category_filter,
        api_key_transport=payload.api_key_transport,
    )

    try:
        saved = await manager.save_config(config)
    except IndexerConfigError as exc:
        return _error(422, "invalid_config", str(exc))
    except ConfigStoreError as exc:
        return _store_failed(exc)

    return JSONResponse(content=present_config(saved))


@router.delete("/{config_id}")
async def delete_indexer(request: Request, config_id: str) -> Response:
    state = cast(AppState, request.app.state)
    try:
        await state.indexer_manager.delete_config(config_id)
    except UnknownIndexerError as exc:
        return _not_found(exc)
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return Response(status_code=204)


@router.post("/{config_id}/active")
async def set_indexer_active(
    request: Request,
    config_id: str,
    value: bool = Query(default=True, description="New active flag."),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    try:
        config = await state.indexer_manager.set_active(config_id, value)
    except UnknownIndexerError as exc:
        return _not_found(exc)
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return JSONResponse(content=present_config(config))


@router.post("/{config_id}/move")
async def move_indexer(
    request: Request,
    config_id: str,
    direction: Literal["up", "down"] = Query(description="Move one slot up or down."),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    try:
        configs = await state.indexer_manager.move(config_id, direction)
    except UnknownIndexerError as exc:
        return _not_found(exc)
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return JSONResponse(content=present_configs(configs))


@router.post("/{config_id}/test")
async def test_indexer(request: Request, config_id: str) -> JSONResponse:
    """Send one validation request to the indexer and report the outcome.

    A reachable indexer answers 200 with ``ok: true``.  Configuration
    problems are 422, an unreachable or failing backend is 502.
    """
    state = cast(AppState, request.app.state)
    try:
        status_code = await state.indexer_manager.test_connection(config_id)
    except UnknownIndexerError as exc:
        return _not_found(exc)
    except IndexerConfigError as exc:
        return _error(422, "invalid_config", str(exc))
    except BadStatusCodeError as exc:
        return JSONResponse(
            status_code=502,
            content={
                "ok": False,
                "error": "bad_status_code",
                "status_code": exc.status_code,
                "message": str(exc),
            },
        )
    except (ConnectivityError, IndexerTransportError) as exc:
        return JSONResponse(
            status_code=502,
            content={"ok": False, "error": "unreachable", "message": str(exc)},
        )
    except IndexerError as exc:
        return _error(503, "connectivity_unavailable", str(exc))

    return JSONResponse(content={"ok": True, "status_code": status_code})


@router.get("/builtins/deleted")
async def list_deleted_builtins(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    definitions = state.indexer_manager.deleted_builtins()
    return JSONResponse(
        content={
            "builtins": [present_definition(d) for d in definitions],
            "count": len(definitions),
        }
    )


@router.post("/builtins/{definition_id}")
async def add_builtin(request: Request, definition_id: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    try:
        config = await state.indexer_manager.add_builtin(definition_id)
    except UnknownIndexerError as exc:
        return _not_found(exc)
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return JSONResponse(content=present_config(config))


@router.post("/defaults/restore")
async def restore_defaults(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    try:
        configs = await state.indexer_manager.restore_missing_defaults()
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return JSONResponse(content=present_configs(configs))


@router.post("/defaults/rank")
async def apply_default_ranking(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    try:
        configs = await state.indexer_manager.apply_default_ranking()
    except ConfigStoreError as exc:
        return _store_failed(exc)
    return JSONResponse(content=present_configs(configs))
