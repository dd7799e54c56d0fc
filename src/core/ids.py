"""
ID 생성: template_id, component_id, run_id

규칙:
- id는 생성 후 불변
- 복사(copy) 시에는 항상 새 id 발급
- owner id → 디렉터리명은 단사(서로 다른 owner는 서로 다른 디렉터리)
"""

import hashlib
import re
import uuid
from datetime import UTC, datetime

from src.domain.constants import (
    COMPONENT_ID_PREFIX,
    OWNER_DIR_DIGEST_LENGTH,
    OWNER_DIR_PREFIX_LENGTH,
    RUN_ID_PREFIX,
    TEMPLATE_ID_PREFIX,
)
from src.domain.errors import ErrorCodes, ValidationError

# 파일명/원격 키로 쓸 수 있는 entity id
ENTITY_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")

# 그대로 디렉터리명으로 쓰는 owner id (소문자만: 대소문자 무시 파일시스템 대비)
_PLAIN_OWNER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")


def generate_template_id() -> str:
    """
    Template ID 생성.

    포맷: tpl_{uuid4 hex}

    Returns:
        template_id 문자열
    """
    return f"{TEMPLATE_ID_PREFIX}{uuid.uuid4().hex}"


def generate_component_id() -> str:
    """
    Component ID 생성.

    포맷: cmp_{uuid4 hex[:16]}
    """
    return f"{COMPONENT_ID_PREFIX}{uuid.uuid4().hex[:16]}"


def generate_run_id() -> str:
    """
    Sync run ID 생성.

    포맷: SYNC-{timestamp}-{uuid[:8]}

    Returns:
        run_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"{RUN_ID_PREFIX}{timestamp}-{unique}"


def validate_entity_id(entity_id: str) -> None:
    """
    id 검증 (경로 탈출 방지).

    Raises:
        ValidationError: INVALID_ENTITY_ID
    """
    if not isinstance(entity_id, str) or not ENTITY_ID_PATTERN.fullmatch(entity_id):
        raise ValidationError(
            ErrorCodes.INVALID_ENTITY_ID,
            entity_id=entity_id,
            pattern=ENTITY_ID_PATTERN.pattern,
        )


def sanitize_owner_id(value: str) -> str:
    """
    owner id → 파일 경로에 쓸 수 있는 디렉터리명.

    - 소문자 ASCII 영숫자/'-'/'_' 만으로 된 id → 그대로
    - 그 외 → "{정리된 접두어}~{sha256 앞 16자}"

    '~'는 그대로 쓰는 이름에 나올 수 없으므로 두 형태는 겹치지 않는다.
    """
    if _PLAIN_OWNER_PATTERN.fullmatch(value):
        return value

    prefix = ""
    for c in value.lower():
        if c.isascii() and (c.isalnum() or c in "-_"):
            prefix += c
        else:
            prefix += "_"
    prefix = prefix.strip("_")[:OWNER_DIR_PREFIX_LENGTH] or "owner"

    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()
    return f"{prefix}~{digest[:OWNER_DIR_DIGEST_LENGTH]}"
