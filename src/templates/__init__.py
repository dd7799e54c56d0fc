"""
Templates layer: 템플릿 조립 모듈.

역할:
- 컴포넌트/템플릿 생성과 불변식 유지 (model.py)
- 컴포넌트 이동 (reorder.py)
- 최종 텍스트 생성 (composer.py)
- 재사용 컴포넌트 라이브러리 (library.py)
"""

from .composer import compose, compose_preview, compose_template
from .library import create_stored_component, harvest_components, update_stored_component
from .model import (
    add_component,
    copy_template,
    create_component,
    create_template,
    increment_usage,
    normalize_positions,
    remove_component,
    update_component,
    update_component_content,
    update_metadata,
    validate_template,
)
from .reorder import move_component

__all__ = [
    # model
    "create_component",
    "create_template",
    "copy_template",
    "add_component",
    "remove_component",
    "update_component",
    "update_component_content",
    "update_metadata",
    "increment_usage",
    "normalize_positions",
    "validate_template",
    # library
    "create_stored_component",
    "update_stored_component",
    "harvest_components",
    # reorder
    "move_component",
    # composer
    "compose",
    "compose_template",
    "compose_preview",
]
