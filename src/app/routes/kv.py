"""
KV Routes: remote key-value 서비스 API.

HttpKVStore가 호출하는 서버 쪽. 저장소는 app.state.kv_store (InMemoryKVStore).

요청: POST /api/kv/{put|get|delete|list} (JSON body)
응답: {"success": bool, "data": ..., "error": str, "code": str}
- get 대상 키 없음 → 404, code=NOT_FOUND
- 필수 필드 누락/타입 오류 → 400, code=BAD_REQUEST
"""

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from src.domain.constants import REMOTE_LIST_LIMIT
from src.storage.base import RemoteStoreAdapter
from src.storage.remote import KV_NOT_FOUND

api_router = APIRouter()

KV_BAD_REQUEST = "BAD_REQUEST"


def get_kv_store(request: Request) -> RemoteStoreAdapter:
    """Request에서 kv_store 가져오기."""
    return request.app.state.kv_store


def _ok(data: Any = None) -> dict[str, Any]:
    return {"success": True, "data": data}


def _fail(status_code: int, code: str, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "code": code},
    )


def _require_key(payload: dict[str, Any]) -> str | None:
    key = payload.get("key")
    return key if isinstance(key, str) and key else None


@api_router.post("/put", response_model=None)
def kv_put(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any] | JSONResponse:
    key = _require_key(payload)
    value = payload.get("value")
    metadata = payload.get("metadata") or {}

    if key is None:
        return _fail(400, KV_BAD_REQUEST, "key is required")
    if not isinstance(value, str):
        return _fail(400, KV_BAD_REQUEST, "value must be a string")
    if not isinstance(metadata, dict):
        return _fail(400, KV_BAD_REQUEST, "metadata must be an object")

    get_kv_store(request).put(key, value, metadata)
    return _ok()


@api_router.post("/get", response_model=None)
def kv_get(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any] | JSONResponse:
    key = _require_key(payload)
    if key is None:
        return _fail(400, KV_BAD_REQUEST, "key is required")

    value = get_kv_store(request).get(key)
    if value is None:
        return _fail(404, KV_NOT_FOUND, f"Key not found: {key}")
    return _ok(value)


@api_router.post("/delete", response_model=None)
def kv_delete(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any] | JSONResponse:
    key = _require_key(payload)
    if key is None:
        return _fail(400, KV_BAD_REQUEST, "key is required")

    get_kv_store(request).delete(key)
    return _ok()


@api_router.post("/list", response_model=None)
def kv_list(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any] | JSONResponse:
    prefix = payload.get("prefix") or ""
    limit = payload.get("limit", REMOTE_LIST_LIMIT)

    if not isinstance(prefix, str):
        return _fail(400, KV_BAD_REQUEST, "prefix must be a string")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        return _fail(400, KV_BAD_REQUEST, "limit must be a positive integer")

    listing = get_kv_store(request).list(prefix, limit)
    return _ok(listing.to_dict())
