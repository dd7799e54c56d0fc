"""
Templates Routes: 템플릿 편집 / 조립 / 동기화 API.

- 편집: 생성, 메타데이터 수정, 컴포넌트 추가/수정/삭제/이동
- 조립: compose (use / preview)
- 동기화: publish, remote 목록, reconcile, pull, 충돌 해결

owner scope는 X-Owner-Id 헤더 (없으면 owner.default_id).
모든 mutator 결과는 로컬에 바로 저장.
핸들러는 동기 함수 (파일 락, httpx 호출은 threadpool에서 실행).
"""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from src.app.routes.common import get_service, to_http_exception
from src.domain.constants import DEFAULT_CATEGORY
from src.domain.errors import EngineError
from src.domain.schemas import ConflictResolution
from src.templates.composer import compose_preview
from src.templates.model import (
    add_component,
    copy_template,
    create_component,
    create_template,
    parse_category,
    remove_component,
    update_component,
    update_metadata,
)
from src.templates.reorder import move_component

api_router = APIRouter()


# =============================================================================
# Remote / Sync (고정 경로 먼저)
# =============================================================================

@api_router.get("/remote/private")
def list_remote_private(request: Request) -> dict[str, Any]:
    """owner의 remote 템플릿 목록."""
    try:
        templates = get_service(request).list_remote_private()
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"templates": [t.to_dict() for t in templates]}


@api_router.get("/remote/public")
def list_remote_public(
    request: Request,
    category: str | None = None,
) -> dict[str, Any]:
    """공개 템플릿 목록 (category 필터)."""
    try:
        if category:
            category = parse_category(category).value
        templates = get_service(request).list_remote_public(category)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"templates": [t.to_dict() for t in templates]}


@api_router.post("/sync/reconcile")
def reconcile_templates(request: Request) -> dict[str, Any]:
    """병합 계획 조회 (적용하지 않음)."""
    try:
        plan = get_service(request).reconcile()
    except EngineError as e:
        raise to_http_exception(e) from e
    return {**plan.to_dict(), "in_sync": plan.is_in_sync}


@api_router.post("/sync/pull")
def pull_templates(request: Request) -> dict[str, Any]:
    """
    reconcile 후 to_pull_to_local 적용.

    conflicts는 id만 돌려주고 건드리지 않음.
    """
    try:
        service = get_service(request)
        plan = service.reconcile()
        pulled = service.apply_pull(plan)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {
        "pulled": pulled,
        "conflicts": [t.id for t in plan.conflicts],
    }


@api_router.post("/sync/conflicts/{template_id}")
def resolve_conflict(
    request: Request,
    template_id: str,
    keep: str = Body(..., embed=True),
) -> dict[str, Any]:
    """충돌 해결: keep=local (push) | remote (로컬 덮어쓰기)."""
    try:
        resolution = ConflictResolution(keep)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "INVALID_RESOLUTION",
                "message": f"Invalid resolution: {keep}",
                "allowed": [r.value for r in ConflictResolution],
            },
        ) from None

    try:
        template = get_service(request).resolve_conflict(template_id, resolution)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"resolution": resolution.value, "template": template.to_dict()}


# =============================================================================
# Templates
# =============================================================================

@api_router.get("")
def list_templates(request: Request) -> dict[str, Any]:
    """로컬 템플릿 목록 (최신순)."""
    try:
        templates = get_service(request).list_local()
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"templates": [t.to_dict() for t in templates]}


@api_router.post("")
def create_template_route(
    request: Request,
    name: str | None = Body(None),
    description: str = Body(""),
    category: str = Body(DEFAULT_CATEGORY),
    tags: list[str] | None = Body(None),
    is_public: bool = Body(False),
    source_id: str | None = Body(None),
) -> dict[str, Any]:
    """
    템플릿 생성 (seed 컴포넌트로 시작).

    source_id가 있으면 해당 로컬 템플릿을 복사.
    """
    try:
        service = get_service(request)
        if source_id:
            source = service.get_local(source_id)
            template = copy_template(source, owner_id=service.owner_id, name=name)
        else:
            template = create_template(
                name=name or "",
                owner_id=service.owner_id,
                description=description,
                category=category,
                tags=tags,
                is_public=is_public,
            )
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.get("/{template_id}")
def get_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 상세."""
    try:
        template = get_service(request).get_local(template_id)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.patch("/{template_id}")
def update_template(
    request: Request,
    template_id: str,
    name: str | None = Body(None),
    description: str | None = Body(None),
    category: str | None = Body(None),
    tags: list[str] | None = Body(None),
    is_public: bool | None = Body(None),
    version: str | None = Body(None),
) -> dict[str, Any]:
    """메타데이터 수정 (보낸 필드만)."""
    try:
        service = get_service(request)
        template = update_metadata(
            service.get_local(template_id),
            name=name,
            description=description,
            category=category,
            tags=tags,
            is_public=is_public,
            version=version,
        )
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.delete("/{template_id}")
def delete_template(request: Request, template_id: str) -> dict[str, Any]:
    """로컬 + remote 삭제 (public 사본은 best-effort)."""
    try:
        result = get_service(request).delete(template_id)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"success": True, **result.to_dict()}


# =============================================================================
# Components
# =============================================================================

@api_router.post("/{template_id}/components")
def add_template_component(
    request: Request,
    template_id: str,
    component_type: str = Body(..., alias="type"),
    content: str = Body(""),
    placeholder: str | None = Body(None),
    is_required: bool | None = Body(None),
) -> dict[str, Any]:
    """컴포넌트 추가 (맨 끝)."""
    try:
        service = get_service(request)
        template = add_component(
            service.get_local(template_id),
            create_component(component_type, content=content, is_required=is_required, placeholder=placeholder),
        )
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.post("/{template_id}/components/move")
def move_template_component(
    request: Request,
    template_id: str,
    from_index: int = Body(...),
    to_index: int = Body(...),
) -> dict[str, Any]:
    """컴포넌트 이동."""
    try:
        service = get_service(request)
        current = service.get_local(template_id)
        template = move_component(current, from_index, to_index)
        if template is not current:
            service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.post("/{template_id}/components/from-library")
def add_library_component(
    request: Request,
    template_id: str,
    component_id: str = Body(..., embed=True),
) -> dict[str, Any]:
    """라이브러리 컴포넌트를 템플릿 끝에 추가."""
    try:
        service = get_service(request)
        template = service.add_from_library(service.get_local(template_id), component_id)
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.patch("/{template_id}/components/{component_id}")
def update_template_component(
    request: Request,
    template_id: str,
    component_id: str,
    content: str | None = Body(None),
    placeholder: str | None = Body(None),
    is_required: bool | None = Body(None),
) -> dict[str, Any]:
    """컴포넌트 수정 (보낸 필드만)."""
    try:
        service = get_service(request)
        template = update_component(
            service.get_local(template_id),
            component_id,
            content=content,
            placeholder=placeholder,
            is_required=is_required,
        )
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


@api_router.delete("/{template_id}/components/{component_id}")
def remove_template_component(
    request: Request,
    template_id: str,
    component_id: str,
) -> dict[str, Any]:
    """컴포넌트 삭제 (마지막 question_slot은 거부)."""
    try:
        service = get_service(request)
        template = remove_component(service.get_local(template_id), component_id)
        service.save_local(template)
    except EngineError as e:
        raise to_http_exception(e) from e
    return template.to_dict()


# =============================================================================
# Compose / Publish
# =============================================================================

@api_router.post("/{template_id}/compose")
def compose_template_route(
    request: Request,
    template_id: str,
    question: str = Body(""),
    preview: bool = Body(False),
) -> dict[str, Any]:
    """
    최종 프롬프트 생성.

    - preview=False: 사용 모드, usage_count 증가
    - preview=True: 편집기 미리보기, 저장 없음
    """
    try:
        service = get_service(request)
        if preview:
            text = compose_preview(service.get_local(template_id).components, question)
        else:
            text = service.use_template(template_id, question)
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"template_id": template_id, "text": text, "preview": preview}


@api_router.post("/{template_id}/publish")
def publish_template(request: Request, template_id: str) -> dict[str, Any]:
    """remote에 push (private + is_public이면 public)."""
    try:
        service = get_service(request)
        result = service.publish(service.get_local(template_id))
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"success": True, **result.to_dict()}


@api_router.post("/{template_id}/harvest")
def harvest_template_components(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿의 내용 있는 컴포넌트를 라이브러리에 저장."""
    try:
        service = get_service(request)
        harvested = service.harvest_components(service.get_local(template_id))
    except EngineError as e:
        raise to_http_exception(e) from e
    return {"components": [c.to_dict() for c in harvested]}
