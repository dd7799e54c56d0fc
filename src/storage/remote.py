"""
Remote 저장소: key-value 서비스 어댑터 + 템플릿 저장소.

- InMemoryKVStore: 프로세스 내 KV (개발/테스트, KV API 서버 백엔드)
- HttpKVStore: KV API(/api/kv/{action}) 클라이언트 (httpx)
- RemoteTemplateRepository: 키 규칙(storage.keys) 위의 템플릿 단위 읽기/쓰기

규칙:
- private 사본과 public 사본 쓰기는 서로 독립된 호출 (트랜잭션 없음)
- 모든 쓰기는 전체 값 덮어쓰기 → 재실행 안전
- 전송 실패는 TransportError 그대로 전달, 재시도 없음
"""

import json
import logging
import threading
from typing import Any

import httpx

from src.core.ids import validate_entity_id
from src.domain.constants import REMOTE_LIST_LIMIT
from src.domain.errors import ErrorCodes, TransportError, ValidationError
from src.domain.schemas import (
    KeyInfo,
    KeyListing,
    Template,
    format_timestamp,
    utc_now,
)

from . import keys
from .base import RemoteStoreAdapter

logger = logging.getLogger(__name__)

# KV API가 "키 없음"을 알리는 에러 코드
KV_NOT_FOUND = "NOT_FOUND"


# =============================================================================
# In-memory KV
# =============================================================================

class InMemoryKVStore(RemoteStoreAdapter):
    """
    스레드 안전 dict 기반 KV.

    list는 키 사전순, limit 초과분이 있으면 has_more=True.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        with self._lock:
            self._data[key] = (value, dict(metadata or {}))

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._data.get(key)
        return entry[0] if entry else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def list(self, prefix: str = "", limit: int = REMOTE_LIST_LIMIT) -> KeyListing:
        with self._lock:
            matched = sorted(
                (k, dict(meta)) for k, (_, meta) in self._data.items() if k.startswith(prefix)
            )
        return KeyListing(
            keys=[KeyInfo(key=k, metadata=meta) for k, meta in matched[:limit]],
            has_more=len(matched) > limit,
        )


# =============================================================================
# HTTP KV client
# =============================================================================

class HttpKVStore(RemoteStoreAdapter):
    """
    KV API 클라이언트.

    요청: POST {base_url}/api/kv/{put|get|delete|list} (JSON body)
    응답: {"success": bool, "data": ..., "error": str, "code": str}

    Usage:
        kv = HttpKVStore("https://sync.example.com", timeout=10.0)
        kv.put("template:alice:tpl_1", "{...}")
    """

    API_PATH = "/api/kv"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        """
        Args:
            base_url: KV API 루트 URL
            timeout: 요청 timeout (초)
            client: 주입할 httpx.Client (테스트에서 TestClient 사용)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _call(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        KV API 호출 → 응답 envelope.

        Raises:
            TransportError: REMOTE_REQUEST_FAILED, REMOTE_DATA_CORRUPT
        """
        try:
            response = self._client.post(f"{self.API_PATH}/{action}", json=payload)
        except httpx.HTTPError as e:
            raise TransportError(
                ErrorCodes.REMOTE_REQUEST_FAILED,
                action=action,
                key=payload.get("key") or payload.get("prefix"),
                error=str(e),
            ) from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise TransportError(
                ErrorCodes.REMOTE_DATA_CORRUPT,
                action=action,
                status_code=response.status_code,
                error=str(e),
            ) from e

        if not isinstance(envelope, dict):
            raise TransportError(
                ErrorCodes.REMOTE_DATA_CORRUPT,
                action=action,
                status_code=response.status_code,
                error="response is not a JSON object",
            )

        if response.status_code >= 500:
            raise TransportError(
                ErrorCodes.REMOTE_REQUEST_FAILED,
                action=action,
                status_code=response.status_code,
                error=envelope.get("error", ""),
            )

        return envelope

    def _require_success(self, action: str, key: str, envelope: dict[str, Any]) -> None:
        if not envelope.get("success"):
            raise TransportError(
                ErrorCodes.REMOTE_REJECTED,
                action=action,
                key=key,
                error=envelope.get("error", ""),
            )

    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        envelope = self._call("put", {"key": key, "value": value, "metadata": metadata or {}})
        self._require_success("put", key, envelope)

    def get(self, key: str) -> str | None:
        envelope = self._call("get", {"key": key})
        if not envelope.get("success") and envelope.get("code") == KV_NOT_FOUND:
            return None
        self._require_success("get", key, envelope)

        data = envelope.get("data")
        if data is None:
            return None
        if not isinstance(data, str):
            raise TransportError(
                ErrorCodes.REMOTE_DATA_CORRUPT,
                action="get",
                key=key,
                error="value is not a string",
            )
        return data

    def delete(self, key: str) -> None:
        envelope = self._call("delete", {"key": key})
        self._require_success("delete", key, envelope)

    def list(self, prefix: str = "", limit: int = REMOTE_LIST_LIMIT) -> KeyListing:
        envelope = self._call("list", {"prefix": prefix, "limit": limit})
        self._require_success("list", prefix, envelope)

        data = envelope.get("data") or {}
        try:
            return KeyListing(
                keys=[
                    KeyInfo(key=item["key"], metadata=item.get("metadata") or {})
                    for item in data.get("keys", [])
                ],
                has_more=bool(data.get("has_more", False)),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise TransportError(
                ErrorCodes.REMOTE_DATA_CORRUPT,
                action="list",
                prefix=prefix,
                error=str(e),
            ) from e


# =============================================================================
# Template Repository
# =============================================================================

class RemoteTemplateRepository:
    """
    owner scope + public 네임스페이스의 템플릿 읽기/쓰기.

    private: template:<owner>:<id>
    public:  public:template:<id>
    """

    def __init__(
        self,
        kv: RemoteStoreAdapter,
        owner_id: str,
        list_limit: int = REMOTE_LIST_LIMIT,
    ):
        keys.validate_owner_id(owner_id)
        self.kv = kv
        self.owner_id = owner_id
        self.list_limit = list_limit

    # =========================================================================
    # Serialization
    # =========================================================================

    def _decode(self, key: str, raw: str) -> Template:
        try:
            return Template.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            raise TransportError(
                ErrorCodes.REMOTE_DATA_CORRUPT,
                key=key,
                error=str(e),
            ) from e

    def _load_listing(
        self,
        listing: KeyListing,
        skipped: list[str] | None = None,
    ) -> list[Template]:
        """
        목록의 각 키를 조회.

        - list와 get 사이에 삭제된 키 → 건너뜀
        - 깨진 값, 로컬 파일명으로 쓸 수 없는 id, 키와 다른 id → 경고 후 건너뜀
          (skipped가 주어지면 해당 키를 추가)
        """
        if listing.has_more:
            logger.warning(
                f"Remote listing truncated at {self.list_limit} keys; "
                f"remaining templates are not loaded"
            )

        templates: list[Template] = []
        for info in listing.keys:
            raw = self.kv.get(info.key)
            if raw is None:
                continue
            try:
                template = self._decode(info.key, raw)
            except TransportError as e:
                logger.warning(f"Skipping corrupt remote entry {info.key}: {e}")
                if skipped is not None:
                    skipped.append(info.key)
                continue

            if not self._has_valid_id(info.key, template):
                if skipped is not None:
                    skipped.append(info.key)
                continue
            templates.append(template)

        templates.sort(key=lambda t: t.updated_at, reverse=True)
        return templates

    @staticmethod
    def _has_valid_id(key: str, template: Template) -> bool:
        try:
            validate_entity_id(template.id)
        except ValidationError as e:
            logger.warning(f"Skipping remote entry {key} with unusable id: {e}")
            return False
        if template.id != keys.template_id_from_key(key):
            logger.warning(
                f"Skipping remote entry {key}: value id {template.id!r} does not match key"
            )
            return False
        return True

    # =========================================================================
    # Private copies
    # =========================================================================

    def get_private(self, template_id: str) -> Template | None:
        key = keys.private_key(self.owner_id, template_id)
        raw = self.kv.get(key)
        return self._decode(key, raw) if raw is not None else None

    def put_private(self, template: Template) -> str:
        """private 사본 저장 → 키 반환."""
        key = keys.private_key(self.owner_id, template.id)
        self.kv.put(
            key,
            json.dumps(template.to_dict(), ensure_ascii=False),
            metadata={
                "owner_id": self.owner_id,
                "type": "template",
                "name": template.name,
                "category": template.category.value,
                "is_public": template.is_public,
                "updated_at": format_timestamp(template.updated_at),
            },
        )
        logger.info(f"Pushed template {template.id} to {key}")
        return key

    def delete_private(self, template_id: str) -> str:
        key = keys.private_key(self.owner_id, template_id)
        self.kv.delete(key)
        logger.info(f"Deleted remote key {key}")
        return key

    def list_private(self, skipped: list[str] | None = None) -> list[Template]:
        """owner의 remote 템플릿 전체 (updated_at 최신순)."""
        listing = self.kv.list(keys.private_prefix(self.owner_id), self.list_limit)
        return self._load_listing(listing, skipped)

    # =========================================================================
    # Public copies
    # =========================================================================

    def get_public(self, template_id: str) -> Template | None:
        key = keys.public_key(template_id)
        raw = self.kv.get(key)
        return self._decode(key, raw) if raw is not None else None

    def put_public(self, template: Template) -> str:
        """public 사본 저장 (published_by/published_at 추가) → 키 반환."""
        key = keys.public_key(template.id)
        published_at = format_timestamp(utc_now())
        value = {
            **template.to_dict(),
            "published_by": self.owner_id,
            "published_at": published_at,
        }
        self.kv.put(
            key,
            json.dumps(value, ensure_ascii=False),
            metadata={
                "author": self.owner_id,
                "category": template.category.value,
                "published_at": published_at,
            },
        )
        logger.info(f"Published template {template.id} to {key}")
        return key

    def delete_public(self, template_id: str) -> str:
        key = keys.public_key(template_id)
        self.kv.delete(key)
        logger.info(f"Deleted remote key {key}")
        return key

    def list_public(
        self,
        category: str | None = None,
        skipped: list[str] | None = None,
    ) -> list[Template]:
        """
        공개 템플릿 목록.

        category 지정 시 키 메타데이터로 먼저 거르고, 값으로 한 번 더 확인.
        """
        listing = self.kv.list(keys.public_prefix(), self.list_limit)
        if category:
            listing = KeyListing(
                keys=[
                    k for k in listing.keys
                    if k.metadata.get("category") in (None, category)
                ],
                has_more=listing.has_more,
            )

        templates = self._load_listing(listing, skipped)
        if category:
            templates = [t for t in templates if t.category.value == category]
        return templates
