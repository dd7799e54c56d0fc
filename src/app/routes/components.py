"""
Components Routes: 재사용 컴포넌트 라이브러리 API.

- GET    /api/components            목록 (type 필터)
- POST   /api/components            등록
- GET    /api/components/{id}       상세
- PATCH  /api/components/{id}       수정
- DELETE /api/components/{id}       삭제
"""

from typing import Any

from fastapi import APIRouter, Body, Query, Request

from src.app.routes.common import get_service, to_http_exception
from src.domain.constants import DEFAULT_CATEGORY
from src.domain.errors import EngineError
from src.templates.library import create_stored_component, update_stored_component
from src.templates.model import parse_component_type

api_router = APIRouter()


@api_router.get("")
def list_components(
    request: Request,
    component_type: str | None = Query(None, alias="type"),
) -> dict[str, Any]:
    """라이브러리 목록 (최신순)."""
    try:
        if component_type:
            component_type = parse_component_type(component_type).value
        components = get_service(request).list_components(component_type)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"components": [c.to_dict() for c in components]}


@api_router.post("")
def create_component_route(
    request: Request,
    name: str = Body(...),
    component_type: str = Body(..., alias="type"),
    content: str = Body(""),
    description: str = Body(""),
    category: str = Body(DEFAULT_CATEGORY),
    tags: list[str] | None = Body(None),
    is_required: bool | None = Body(None),
    placeholder: str | None = Body(None),
) -> dict[str, Any]:
    """라이브러리 항목 등록."""
    try:
        component = create_stored_component(
            name=name,
            component_type=component_type,
            content=content,
            description=description,
            category=category,
            tags=tags,
            is_required=is_required,
            placeholder=placeholder,
        )
        get_service(request).save_component(component)
    except EngineError as e:
        raise to_http_exception(e) from e
    return component.to_dict()


@api_router.get("/{component_id}")
def get_component(request: Request, component_id: str) -> dict[str, Any]:
    try:
        component = get_service(request).get_component(component_id)
    except EngineError as e:
        raise to_http_exception(e) from e
    return component.to_dict()


@api_router.patch("/{component_id}")
def update_component_route(
    request: Request,
    component_id: str,
    name: str | None = Body(None),
    content: str | None = Body(None),
    description: str | None = Body(None),
    category: str | None = Body(None),
    tags: list[str] | None = Body(None),
    placeholder: str | None = Body(None),
) -> dict[str, Any]:
    """라이브러리 항목 수정 (보낸 필드만)."""
    try:
        service = get_service(request)
        component = update_stored_component(
            service.get_component(component_id),
            name=name,
            content=content,
            description=description,
            category=category,
            tags=tags,
            placeholder=placeholder,
        )
        service.save_component(component)
    except EngineError as e:
        raise to_http_exception(e) from e
    return component.to_dict()


@api_router.delete("/{component_id}")
def delete_component(request: Request, component_id: str) -> dict[str, Any]:
    try:
        get_service(request).delete_component(component_id)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"success": True, "component_id": component_id}
