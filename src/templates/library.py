"""
컴포넌트 라이브러리: 재사용 컴포넌트(StoredComponent) 생성/수정/수집.

- 라이브러리 항목은 템플릿과 독립된 id를 가짐
- 템플릿에서 수집할 때 빈 컴포넌트는 제외
- 이름 규칙: "<템플릿 이름> - <타입 라벨>"
"""

from dataclasses import replace
from typing import Any

from src.core.ids import generate_component_id
from src.domain.constants import DEFAULT_CATEGORY
from src.domain.errors import ErrorCodes, ValidationError
from src.domain.schemas import (
    ComponentType,
    StoredComponent,
    Template,
    TemplateCategory,
    normalize_tags,
    utc_now,
)

from .model import parse_category, parse_component_type


def type_label(component_type: ComponentType) -> str:
    """question_slot → "question slot"."""
    return component_type.value.replace("_", " ")


def create_stored_component(
    name: str,
    component_type: str | ComponentType,
    content: str = "",
    description: str = "",
    category: str | TemplateCategory = DEFAULT_CATEGORY,
    tags: list[str] | None = None,
    is_required: bool | None = None,
    placeholder: str | None = None,
) -> StoredComponent:
    """
    새 라이브러리 항목.

    Raises:
        ValidationError: TEMPLATE_NAME_REQUIRED, INVALID_COMPONENT_TYPE,
            INVALID_CATEGORY
    """
    if not name or not name.strip():
        raise ValidationError(ErrorCodes.TEMPLATE_NAME_REQUIRED, kind="component")

    ctype = parse_component_type(component_type)
    now = utc_now()
    return StoredComponent(
        id=generate_component_id(),
        name=name.strip(),
        type=ctype,
        content=content,
        description=description,
        category=parse_category(category),
        is_required=ctype == ComponentType.QUESTION_SLOT if is_required is None else is_required,
        placeholder=placeholder,
        tags=normalize_tags(tags),
        usage_count=0,
        created_at=now,
        updated_at=now,
    )


def update_stored_component(
    component: StoredComponent,
    name: str | None = None,
    content: str | None = None,
    description: str | None = None,
    category: str | TemplateCategory | None = None,
    tags: list[str] | None = None,
    placeholder: str | None = None,
) -> StoredComponent:
    """필드 수정 (None인 인자는 유지) + updated_at 갱신."""
    changes: dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            raise ValidationError(
                ErrorCodes.TEMPLATE_NAME_REQUIRED,
                kind="component",
                component_id=component.id,
            )
        changes["name"] = name.strip()
    if content is not None:
        changes["content"] = content
    if description is not None:
        changes["description"] = description
    if category is not None:
        changes["category"] = parse_category(category)
    if tags is not None:
        changes["tags"] = normalize_tags(tags)
    if placeholder is not None:
        changes["placeholder"] = placeholder

    return replace(component, updated_at=utc_now(), **changes)


def mark_used(component: StoredComponent) -> StoredComponent:
    return replace(component, usage_count=component.usage_count + 1, updated_at=utc_now())


def harvest_components(template: Template) -> list[StoredComponent]:
    """
    템플릿의 내용 있는 컴포넌트 → 라이브러리 항목 (position 순).
    """
    harvested: list[StoredComponent] = []
    for component in template.sorted_components():
        if not component.content.strip():
            continue

        label = type_label(component.type)
        now = utc_now()
        harvested.append(StoredComponent(
            id=generate_component_id(),
            name=f"{template.name} - {label}",
            type=component.type,
            content=component.content,
            description=f'{label} component from template "{template.name}"',
            category=template.category,
            is_required=component.is_required,
            placeholder=component.placeholder,
            tags=list(template.tags),
            created_at=now,
            updated_at=now,
        ))
    return harvested
