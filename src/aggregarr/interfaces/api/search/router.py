"""Aggregated torrent search endpoints."""

from __future__ import annotations

import re
from typing import Any, Literal, cast
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from aggregarr.domain.entities.torrent import TorrentResult
from aggregarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/search", tags=["search"])

_IMDB_ID_RE = re.compile(r"^tt\d+$")


def _magnet(result: TorrentResult) -> str:
    if result.magnet_uri:
        return result.magnet_uri
    return f"magnet:?xt=urn:btih:{result.info_hash}&dn={quote(result.title)}"


def _present(result: TorrentResult) -> dict[str, Any]:
    return {
        "info_hash": result.info_hash,
        "title": result.title,
        "quality": result.quality.label,
        "seeders": result.seeders,
        "leechers": result.leechers,
        "size_bytes": result.size_bytes,
        "is_cached": result.is_cached,
        "indexer": result.indexer_name,
        "magnet": _magnet(result),
    }


def _response(results: list[TorrentResult], errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(
        content={
            "results": [_present(r) for r in results],
            "count": len(results),
            "errors": errors,
        }
    )


@router.get("")
async def search(
    request: Request,
    imdb_id: str = Query(description="IMDb id, e.g. tt0111161."),
    media_type: Literal["movie", "series"] = Query(default="movie", alias="type"),
    season: int | None = Query(default=None, ge=0),
    episode: int | None = Query(default=None, ge=0),
) -> JSONResponse:
    """Search every active indexer by IMDb id.

    Indexers that fail are listed under ``errors``; the search itself
    still succeeds with whatever the others returned.
    """
    imdb_id = imdb_id.strip()
    if not _IMDB_ID_RE.match(imdb_id):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_imdb_id", "imdb_id": imdb_id},
        )

    state = cast(AppState, request.app.state)
    manager = state.indexer_manager
    results = await manager.search(imdb_id, media_type, season, episode)
    return _response(results, manager.last_search_errors)


@router.get("/query")
async def search_by_query(
    request: Request,
    q: str = Query(min_length=1, description="Free-text search."),
    media_type: Literal["movie", "series"] = Query(default="movie", alias="type"),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    manager = state.indexer_manager
    results = await manager.search_by_query(q.strip(), media_type)
    return _response(results, manager.last_search_errors)
