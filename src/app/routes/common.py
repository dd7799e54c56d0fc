"""
Route 공통: owner scope 해석, 엔진 에러 → HTTP 에러.
"""

from fastapi import HTTPException, Request

from src.domain.errors import (
    EngineError,
    ErrorCodes,
    TemplateNotFoundError,
    TransportError,
    ValidationError,
)
from src.sync.service import SyncService

# owner scope 지정 헤더 (없으면 owner.default_id)
OWNER_HEADER = "X-Owner-Id"

_NOT_FOUND_CODES = {ErrorCodes.TEMPLATE_NOT_FOUND, ErrorCodes.COMPONENT_NOT_FOUND}


def get_service(request: Request) -> SyncService:
    """
    요청의 owner에 해당하는 SyncService.

    Raises:
        ValidationError: INVALID_OWNER_ID
    """
    owner_id = request.headers.get(OWNER_HEADER)
    return request.app.state.workspace.service(owner_id)


def to_http_exception(e: EngineError) -> HTTPException:
    """
    ValidationError → 400 (없는 컴포넌트는 404)
    TemplateNotFoundError → 404
    TransportError → 502
    """
    if isinstance(e, TemplateNotFoundError) or e.code in _NOT_FOUND_CODES:
        status_code = 404
    elif isinstance(e, ValidationError):
        status_code = 400
    elif isinstance(e, TransportError):
        status_code = 502
    else:
        status_code = 500

    return HTTPException(
        status_code=status_code,
        detail={"message": str(e), **e.to_dict()},
    )
