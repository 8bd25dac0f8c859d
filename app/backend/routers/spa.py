# app/backend/routers/spa.py
"""Catch-all: serve files of the single-page client, or its index.html for any other GET."""
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

router = APIRouter(include_in_schema=False)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _resolve_static(static_dir: Path, full_path: str) -> Path | None:
    if not full_path:
        return None
    candidate = (static_dir / full_path).resolve()
    try:
        candidate.relative_to(static_dir.resolve())
    except ValueError:
        return None  # path traversal
    return candidate if candidate.is_file() else None


@router.api_route("/{full_path:path}", methods=_ALL_METHODS)
async def spa_fallback(full_path: str, request: Request):
    if request.method != "GET":
        raise StarletteHTTPException(status_code=404)

    static_dir: Path = request.app.state.static_dir
    max_age = request.app.state.settings.static_cache_max_age
    headers = {"Cache-Control": f"public, max-age={max_age}"}

    asset = _resolve_static(static_dir, full_path)
    if asset is not None:
        return FileResponse(asset, headers=headers)

    index = static_dir / "index.html"
    if not index.is_file():
        raise StarletteHTTPException(status_code=404)
    return FileResponse(index, headers={"Cache-Control": "no-cache"})
