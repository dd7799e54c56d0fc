"""
템플릿 모델: 컴포넌트/템플릿 생성 + 불변식을 지키는 순수 mutator.

핵심 규칙:
- question_slot 최소 1개: 마지막 슬롯 삭제 시 LastRequiredSlotError
- position 연속성: 추가/삭제/이동 후 항상 0..n-1로 재정렬
- updated_at: 성공한 모든 변경 시 갱신 (이전 값보다 항상 큼)
- mutator는 입력 Template을 건드리지 않고 새 값을 반환
  → 실패 시 호출자가 가진 값은 그대로
"""

from dataclasses import replace
from datetime import timedelta
from typing import Any

from src.core.ids import generate_component_id, generate_template_id
from src.domain.constants import (
    COMPONENT_PLACEHOLDERS,
    DEFAULT_CATEGORY,
    DEFAULT_COMPONENT_TYPES,
    DEFAULT_OWNER_ID,
    DEFAULT_TEMPLATE_VERSION,
    REQUIRED_COMPONENT_TYPES,
)
from src.domain.errors import ErrorCodes, LastRequiredSlotError, ValidationError
from src.domain.schemas import (
    ComponentType,
    Template,
    TemplateCategory,
    TemplateComponent,
    normalize_tags,
    utc_now,
)

# =============================================================================
# Parsing (외부 입력 → enum)
# =============================================================================

def parse_component_type(value: str | ComponentType) -> ComponentType:
    """
    컴포넌트 타입 검증.

    Raises:
        ValidationError: INVALID_COMPONENT_TYPE
    """
    try:
        return ComponentType(value)
    except ValueError:
        raise ValidationError(
            ErrorCodes.INVALID_COMPONENT_TYPE,
            type=value,
            allowed=[t.value for t in ComponentType],
        ) from None


def parse_category(value: str | TemplateCategory) -> TemplateCategory:
    """
    템플릿 분류 검증.

    Raises:
        ValidationError: INVALID_CATEGORY
    """
    try:
        return TemplateCategory(value)
    except ValueError:
        raise ValidationError(
            ErrorCodes.INVALID_CATEGORY,
            category=value,
            allowed=[c.value for c in TemplateCategory],
        ) from None


# =============================================================================
# Construction
# =============================================================================

def create_component(
    component_type: str | ComponentType,
    content: str = "",
    is_required: bool | None = None,
    placeholder: str | None = None,
    position: int = 0,
    is_default: bool = False,
) -> TemplateComponent:
    """
    새 컴포넌트 생성.

    position은 add_component()에서 현재 개수로 다시 지정됨.

    Args:
        component_type: 컴포넌트 타입
        content: 내용 (빈 값 허용)
        is_required: None이면 question_slot일 때만 True
        placeholder: 편집기 힌트
        position: 초기 position
        is_default: seed 컴포넌트 여부
    """
    ctype = parse_component_type(component_type)
    if is_required is None:
        is_required = ctype.value in REQUIRED_COMPONENT_TYPES

    return TemplateComponent(
        id=generate_component_id(),
        type=ctype,
        content=content,
        position=position,
        is_required=is_required,
        placeholder=placeholder,
        is_default=is_default,
    )


def seed_components() -> list[TemplateComponent]:
    """기본 컴포넌트 세트: prefix, context, question_slot, constraint, suffix."""
    return [
        create_component(
            ctype,
            content="",
            placeholder=COMPONENT_PLACEHOLDERS.get(ctype),
            position=index,
            is_default=True,
        )
        for index, ctype in enumerate(DEFAULT_COMPONENT_TYPES)
    ]


def create_template(
    name: str,
    owner_id: str = DEFAULT_OWNER_ID,
    description: str = "",
    category: str | TemplateCategory = DEFAULT_CATEGORY,
    tags: list[str] | None = None,
    is_public: bool = False,
    components: list[TemplateComponent] | None = None,
) -> Template:
    """
    새 템플릿 생성.

    components가 없으면 seed 세트로 시작.

    Raises:
        ValidationError: TEMPLATE_NAME_REQUIRED, INVALID_CATEGORY,
            MISSING_QUESTION_SLOT
    """
    if not name or not name.strip():
        raise ValidationError(ErrorCodes.TEMPLATE_NAME_REQUIRED)

    if components is None:
        parts = seed_components()
    else:
        parts = normalize_positions(components)

    now = utc_now()
    template = Template(
        id=generate_template_id(),
        name=name.strip(),
        components=parts,
        description=description,
        category=parse_category(category),
        tags=normalize_tags(tags),
        is_public=is_public,
        rating=0.0,
        usage_count=0,
        version=DEFAULT_TEMPLATE_VERSION,
        author_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    validate_template(template)
    return template


def copy_template(
    source: Template,
    owner_id: str | None = None,
    name: str | None = None,
) -> Template:
    """
    기존 템플릿 복사.

    새 template/component id, 새 타임스탬프, usage 0, 비공개로 시작.
    """
    now = utc_now()
    components = [
        replace(c, id=generate_component_id())
        for c in normalize_positions(source.components)
    ]
    return replace(
        source,
        id=generate_template_id(),
        name=name.strip() if name and name.strip() else f"{source.name} (copy)",
        components=components,
        tags=list(source.tags),
        is_public=False,
        rating=0.0,
        usage_count=0,
        author_id=owner_id or source.author_id,
        created_at=now,
        updated_at=now,
    )


# =============================================================================
# Invariants
# =============================================================================

def normalize_positions(components: list[TemplateComponent]) -> list[TemplateComponent]:
    """
    position 오름차순 정렬 후 0..n-1로 재지정.

    동일 position은 입력 순서 유지 (stable sort). 새 컴포넌트 객체 반환.
    """
    ordered = sorted(components, key=lambda c: c.position)
    return [replace(c, position=index) for index, c in enumerate(ordered)]


def validate_template(template: Template) -> None:
    """
    템플릿 불변식 검증.

    Raises:
        ValidationError: MISSING_QUESTION_SLOT, POSITIONS_NOT_CONTIGUOUS,
            INVALID_TEMPLATE
    """
    if template.question_slot_count < 1:
        raise ValidationError(
            ErrorCodes.MISSING_QUESTION_SLOT,
            template_id=template.id,
        )

    positions = sorted(c.position for c in template.components)
    if positions != list(range(len(template.components))):
        raise ValidationError(
            ErrorCodes.POSITIONS_NOT_CONTIGUOUS,
            template_id=template.id,
            positions=positions,
        )

    ids = [c.id for c in template.components]
    if len(ids) != len(set(ids)):
        raise ValidationError(
            ErrorCodes.INVALID_TEMPLATE,
            template_id=template.id,
            reason="duplicate component id",
        )

    if template.usage_count < 0:
        raise ValidationError(
            ErrorCodes.INVALID_TEMPLATE,
            template_id=template.id,
            reason="usage_count must be non-negative",
        )


def touch(template: Template, **changes: Any) -> Template:
    """
    변경 적용 + updated_at 갱신.

    같은 시각(해상도 이하)에 연속 변경되어도 updated_at은 단조 증가.
    """
    now = utc_now()
    if now <= template.updated_at:
        now = template.updated_at + timedelta(microseconds=1)
    return replace(template, updated_at=now, **changes)


def _find_index(template: Template, component_id: str) -> int:
    for index, component in enumerate(template.components):
        if component.id == component_id:
            return index
    raise ValidationError(
        ErrorCodes.COMPONENT_NOT_FOUND,
        template_id=template.id,
        component_id=component_id,
    )


# =============================================================================
# Component Mutators
# =============================================================================

def add_component(template: Template, component: TemplateComponent) -> Template:
    """맨 끝에 추가 (position = 현재 개수)."""
    components = normalize_positions(template.components)
    components.append(replace(component, position=len(components)))
    return touch(template, components=components)


def remove_component(template: Template, component_id: str) -> Template:
    """
    컴포넌트 삭제 후 position 재정렬.

    Raises:
        LastRequiredSlotError: 마지막 question_slot 삭제 시도
        ValidationError: COMPONENT_NOT_FOUND
    """
    index = _find_index(template, component_id)
    target = template.components[index]

    if target.type == ComponentType.QUESTION_SLOT and template.question_slot_count <= 1:
        raise LastRequiredSlotError(
            template_id=template.id,
            component_id=component_id,
        )

    remaining = [c for c in template.components if c.id != component_id]
    return touch(template, components=normalize_positions(remaining))


def update_component_content(
    template: Template,
    component_id: str,
    new_content: str,
) -> Template:
    """내용만 교체. 순서 변경 없음."""
    return update_component(template, component_id, content=new_content)


def update_component(
    template: Template,
    component_id: str,
    content: str | None = None,
    placeholder: str | None = None,
    is_required: bool | None = None,
) -> Template:
    """
    컴포넌트 필드 수정 (None인 인자는 유지).

    Raises:
        ValidationError: COMPONENT_NOT_FOUND
    """
    index = _find_index(template, component_id)
    current = template.components[index]

    changes: dict[str, Any] = {}
    if content is not None:
        changes["content"] = content
    if placeholder is not None:
        changes["placeholder"] = placeholder
    if is_required is not None:
        changes["is_required"] = is_required

    components = list(template.components)
    components[index] = replace(current, **changes)
    return touch(template, components=components)


# =============================================================================
# Template Mutators
# =============================================================================

def update_metadata(
    template: Template,
    name: str | None = None,
    description: str | None = None,
    category: str | TemplateCategory | None = None,
    tags: list[str] | None = None,
    is_public: bool | None = None,
    version: str | None = None,
) -> Template:
    """
    메타데이터 수정 (None인 인자는 유지).

    Raises:
        ValidationError: TEMPLATE_NAME_REQUIRED, INVALID_CATEGORY
    """
    changes: dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            raise ValidationError(ErrorCodes.TEMPLATE_NAME_REQUIRED, template_id=template.id)
        changes["name"] = name.strip()
    if description is not None:
        changes["description"] = description
    if category is not None:
        changes["category"] = parse_category(category)
    if tags is not None:
        changes["tags"] = normalize_tags(tags)
    if is_public is not None:
        changes["is_public"] = is_public
    if version is not None:
        changes["version"] = version

    return touch(template, **changes)


def increment_usage(template: Template) -> Template:
    """사용 횟수 +1."""
    return touch(template, usage_count=template.usage_count + 1)
