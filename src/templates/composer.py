"""
Composer: 컴포넌트 + 사용자 질문 → 최종 프롬프트 텍스트.

규칙 (use 모드, compose):
1. position 오름차순 순회
2. prefix/context/constraint/example/suffix: 내용이 공백이 아니면 내용 + 문단 구분
3. question_slot: 질문이 있으면 그 위치에 질문 + 문단 구분
   (question_slot 자체의 content는 출력에 쓰지 않음)
4. question_slot이 하나도 없고 질문이 있으면 맨 끝에 질문 추가
5. 앞뒤 공백 제거

순수 함수: 부작용/에러 없음, 같은 입력 → 같은 출력.
"""

from collections.abc import Iterable

from src.domain.constants import (
    PARAGRAPH_BREAK,
    QUESTION_SLOT_DEFAULT_CONTENT,
    QUESTION_SLOT_PREVIEW_HINT,
)
from src.domain.schemas import ComponentType, Template, TemplateComponent

# 정적 내용이 그대로 출력되는 타입
STATIC_TYPES = frozenset({
    ComponentType.PREFIX,
    ComponentType.CONTEXT,
    ComponentType.CONSTRAINT,
    ComponentType.EXAMPLE,
    ComponentType.SUFFIX,
})


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def compose(components: Iterable[TemplateComponent], question: str = "") -> str:
    """
    최종 프롬프트 생성 (use 모드).

    Args:
        components: 템플릿 컴포넌트 (순서 무관, position으로 정렬)
        question: 사용자 질문 (빈 값 허용)

    Returns:
        최종 텍스트 (빈 입력 → "")
    """
    has_question = _has_text(question)
    slot_present = False
    parts: list[str] = []

    for component in sorted(components, key=lambda c: c.position):
        if component.type in STATIC_TYPES:
            if _has_text(component.content):
                parts.append(component.content + PARAGRAPH_BREAK)
        elif component.type == ComponentType.QUESTION_SLOT:
            slot_present = True
            if has_question:
                parts.append(question + PARAGRAPH_BREAK)

    if not slot_present and has_question:
        parts.append(question + PARAGRAPH_BREAK)

    return "".join(parts).strip()


def compose_template(template: Template, question: str = "") -> str:
    """Template 단위 compose."""
    return compose(template.components, question)


def compose_preview(
    components: Iterable[TemplateComponent],
    sample_question: str = "",
) -> str:
    """
    편집기 미리보기용 생성.

    use 모드와 차이는 question_slot뿐:
    - 예시 질문이 있으면 질문
    - 없으면 슬롯의 정적 내용
    - 내용이 비었거나 seed 기본값이면 안내 문구
    """
    parts: list[str] = []
    has_question = _has_text(sample_question)

    for component in sorted(components, key=lambda c: c.position):
        if component.type in STATIC_TYPES:
            if _has_text(component.content):
                parts.append(component.content + PARAGRAPH_BREAK)
        elif component.type == ComponentType.QUESTION_SLOT:
            if has_question:
                parts.append(sample_question + PARAGRAPH_BREAK)
            elif _has_text(component.content) and component.content != QUESTION_SLOT_DEFAULT_CONTENT:
                parts.append(component.content + PARAGRAPH_BREAK)
            else:
                parts.append(QUESTION_SLOT_PREVIEW_HINT + PARAGRAPH_BREAK)

    return "".join(parts).strip()
