"""
Remote 키 네임스페이스.

- private: template:<owner>:<id>
- public:  public:template:<id>
"""

from src.domain.constants import (
    KEY_SEPARATOR,
    PUBLIC_KEY_PREFIX,
    TEMPLATE_KEY_PREFIX,
)
from src.domain.errors import ErrorCodes, ValidationError


def validate_owner_id(owner_id: str) -> None:
    """
    owner id 검증.

    구분자(':')가 들어가면 다른 owner의 prefix와 겹칠 수 있으므로 거부.

    Raises:
        ValidationError: INVALID_OWNER_ID
    """
    if not owner_id or KEY_SEPARATOR in owner_id:
        raise ValidationError(
            ErrorCodes.INVALID_OWNER_ID,
            owner_id=owner_id,
            reason=f"owner id must be non-empty and must not contain '{KEY_SEPARATOR}'",
        )


def private_prefix(owner_id: str) -> str:
    return f"{TEMPLATE_KEY_PREFIX}{KEY_SEPARATOR}{owner_id}{KEY_SEPARATOR}"


def private_key(owner_id: str, template_id: str) -> str:
    return f"{private_prefix(owner_id)}{template_id}"


def public_prefix() -> str:
    return f"{PUBLIC_KEY_PREFIX}{KEY_SEPARATOR}"


def public_key(template_id: str) -> str:
    return f"{public_prefix()}{template_id}"


def template_id_from_key(key: str) -> str:
    """키의 마지막 세그먼트 = template id."""
    return key.rsplit(KEY_SEPARATOR, 1)[-1]
