"""
Reorder Engine: 단일 컴포넌트 이동.

move_component(t, from, to):
1. position 순서에서 from 위치의 컴포넌트를 꺼냄
2. 남은 시퀀스의 to 위치에 다시 삽입
3. 왼쪽부터 position = index

드래그 중 hysteresis(슬롯 중간선 판정)는 상호작용 계층 담당 → src/app/drag.py
"""

from dataclasses import replace

from src.domain.errors import ErrorCodes, ValidationError
from src.domain.schemas import Template

from .model import normalize_positions, touch


def _check_index(template: Template, name: str, index: int, length: int) -> None:
    # bool은 int의 하위 타입이므로 명시적으로 제외
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < length:
        raise ValidationError(
            ErrorCodes.INVALID_MOVE_INDEX,
            template_id=template.id,
            argument=name,
            index=index,
            length=length,
        )


def move_component(template: Template, from_index: int, to_index: int) -> Template:
    """
    컴포넌트 하나를 from_index → to_index로 이동.

    from_index == to_index면 no-op (같은 값 반환, updated_at 유지).

    Raises:
        ValidationError: INVALID_MOVE_INDEX (범위 밖, clamp 없음)
    """
    length = len(template.components)
    _check_index(template, "from_index", from_index, length)
    _check_index(template, "to_index", to_index, length)

    if from_index == to_index:
        return template

    ordered = normalize_positions(template.components)
    moved = ordered.pop(from_index)
    ordered.insert(to_index, moved)

    # 리스트 순서 그대로 position = index
    return touch(
        template,
        components=[replace(c, position=index) for index, c in enumerate(ordered)],
    )
