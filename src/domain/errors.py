"""
Error definitions for the template engine.

규칙:
- 조용한 실패 금지 → 코드가 붙은 예외로 명시적 실패
- ValidationError: 불변식 위반, I/O 이전에 거부 (재시도 없음)
- TransportError: local/remote store 호출 실패, 그대로 호출자에게 전달
- 충돌(conflict)은 예외가 아니라 데이터로 반환 (sync.reconciler 참조)
"""

from typing import Any


class EngineError(Exception):
    """
    엔진 공통 에러.

    Usage:
        raise ValidationError(ErrorCodes.INVALID_MOVE_INDEX, index=7, length=4)
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **self.context,
        }


class ValidationError(EngineError):
    """불변식 위반. 네트워크/디스크 작업 전에 발생."""


class LastRequiredSlotError(ValidationError):
    """마지막 question_slot 삭제 시도."""

    def __init__(self, **context: Any) -> None:
        super().__init__(ErrorCodes.LAST_REQUIRED_SLOT, **context)


class TemplateNotFoundError(EngineError):
    """로컬 저장소에 해당 템플릿 없음."""

    def __init__(self, template_id: str) -> None:
        super().__init__(ErrorCodes.TEMPLATE_NOT_FOUND, template_id=template_id)


class TransportError(EngineError):
    """
    Store adapter 호출 실패.

    재시도/롤백 없음. publish 부분 실패 시 context에 private_written 포함.
    """


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Validation ===
    LAST_REQUIRED_SLOT = "LAST_REQUIRED_SLOT"
    INVALID_MOVE_INDEX = "INVALID_MOVE_INDEX"
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"
    INVALID_COMPONENT_TYPE = "INVALID_COMPONENT_TYPE"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    POSITIONS_NOT_CONTIGUOUS = "POSITIONS_NOT_CONTIGUOUS"
    MISSING_QUESTION_SLOT = "MISSING_QUESTION_SLOT"
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    TEMPLATE_NAME_REQUIRED = "TEMPLATE_NAME_REQUIRED"
    INVALID_OWNER_ID = "INVALID_OWNER_ID"
    INVALID_ENTITY_ID = "INVALID_ENTITY_ID"

    # === Lookup ===
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"

    # === Local Store ===
    LOCAL_IO_FAILED = "LOCAL_IO_FAILED"
    LOCAL_LOCK_TIMEOUT = "LOCAL_LOCK_TIMEOUT"
    LOCAL_DATA_CORRUPT = "LOCAL_DATA_CORRUPT"

    # === Remote Store ===
    REMOTE_REQUEST_FAILED = "REMOTE_REQUEST_FAILED"
    REMOTE_REJECTED = "REMOTE_REJECTED"
    REMOTE_DATA_CORRUPT = "REMOTE_DATA_CORRUPT"

    # === Sync warnings (not raised) ===
    PUBLIC_COPY_DELETE_FAILED = "PUBLIC_COPY_DELETE_FAILED"
    REMOTE_ENTRY_SKIPPED = "REMOTE_ENTRY_SKIPPED"
