"""
Pytest fixtures for the template engine tests.

테스트 구성:
- 정상 케이스, 불변식 위반 케이스, 전송 실패 케이스 분리
- 파일 저장소는 tmp_path 아래에서만 사용
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import yaml

from src.domain.errors import ErrorCodes, TransportError
from src.domain.schemas import (
    ComponentType,
    KeyListing,
    Template,
    TemplateComponent,
)
from src.storage.base import RemoteStoreAdapter
from src.storage.local import LocalComponentStore, LocalTemplateStore
from src.storage.remote import InMemoryKVStore, RemoteTemplateRepository
from src.sync.service import SyncService

BASE_TIME = datetime(2024, 1, 15, 9, 0, 0, tzinfo=UTC)

# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config(tmp_path: Path) -> dict:
    """테스트용 설정 (tmp_path 아래 저장, memory backend)."""
    return {
        "owner": {"default_id": "alice"},
        "paths": {
            "data_dir": str(tmp_path / "data"),
            "logs_dir": str(tmp_path / "logs"),
        },
        "local": {"lock_timeout": 1},
        "remote": {"backend": "memory", "list_limit": 100},
    }


# =============================================================================
# Template Builders
# =============================================================================

def make_component(
    component_type: str,
    content: str = "",
    position: int = 0,
    component_id: str | None = None,
) -> TemplateComponent:
    """테스트용 컴포넌트 (id 고정 가능)."""
    return TemplateComponent(
        id=component_id or f"cmp_{component_type}_{position}",
        type=ComponentType(component_type),
        content=content,
        position=position,
        is_required=component_type == "question_slot",
    )


def make_template(
    template_id: str = "tpl_sample",
    parts: list[tuple[str, str]] | None = None,
    updated_offset: int = 0,
    is_public: bool = False,
    **overrides: Any,
) -> Template:
    """
    (type, content) 목록으로 템플릿 생성.

    updated_offset: BASE_TIME 기준 초 단위 offset (reconcile 비교용)
    """
    if parts is None:
        parts = [
            ("prefix", "You are a helpful assistant."),
            ("question_slot", ""),
            ("suffix", "Answer concisely."),
        ]
    components = [
        make_component(ctype, content, index, f"cmp_{template_id}_{index}")
        for index, (ctype, content) in enumerate(parts)
    ]
    fields: dict[str, Any] = {
        "id": template_id,
        "name": f"Template {template_id}",
        "components": components,
        "is_public": is_public,
        "author_id": "alice",
        "created_at": BASE_TIME,
        "updated_at": BASE_TIME + timedelta(seconds=updated_offset),
    }
    fields.update(overrides)
    return Template(**fields)


@pytest.fixture
def sample_template() -> Template:
    """prefix → question_slot → suffix 템플릿."""
    return make_template()


# =============================================================================
# Store Fixtures
# =============================================================================

class FailingKVStore(RemoteStoreAdapter):
    """
    지정한 prefix에 대한 호출만 실패시키는 KV.

    fail_on: {"put", "get", "delete", "list"} 중 실패시킬 동작
    """

    def __init__(self, inner: RemoteStoreAdapter, fail_prefix: str, fail_on: set[str]):
        self.inner = inner
        self.fail_prefix = fail_prefix
        self.fail_on = fail_on
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, action: str, key: str) -> None:
        self.calls.append((action, key))
        if action in self.fail_on and key.startswith(self.fail_prefix):
            raise TransportError(
                ErrorCodes.REMOTE_REQUEST_FAILED,
                action=action,
                key=key,
                error="simulated failure",
            )

    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        self._maybe_fail("put", key)
        self.inner.put(key, value, metadata)

    def get(self, key: str) -> str | None:
        self._maybe_fail("get", key)
        return self.inner.get(key)

    def delete(self, key: str) -> None:
        self._maybe_fail("delete", key)
        self.inner.delete(key)

    def list(self, prefix: str = "", limit: int = 100) -> KeyListing:
        self._maybe_fail("list", prefix)
        return self.inner.list(prefix, limit)


@pytest.fixture
def kv_store() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def local_store(tmp_path: Path) -> LocalTemplateStore:
    return LocalTemplateStore(tmp_path / "data", "alice", lock_timeout=1)


@pytest.fixture
def component_store(tmp_path: Path) -> LocalComponentStore:
    return LocalComponentStore(tmp_path / "data", "alice", lock_timeout=1)


@pytest.fixture
def remote_repo(kv_store: InMemoryKVStore) -> RemoteTemplateRepository:
    return RemoteTemplateRepository(kv_store, "alice")


@pytest.fixture
def sync_service(
    tmp_path: Path,
    local_store: LocalTemplateStore,
    remote_repo: RemoteTemplateRepository,
    component_store: LocalComponentStore,
) -> SyncService:
    """alice scope SyncService (sync log는 tmp_path/logs)."""
    return SyncService(
        local=local_store,
        remote=remote_repo,
        components=component_store,
        logs_dir=tmp_path / "logs",
    )


# =============================================================================
# Factory Fixtures
# =============================================================================

@pytest.fixture
def template_factory():
    """make_template 팩토리."""
    return make_template


@pytest.fixture
def component_factory():
    """make_component 팩토리."""
    return make_component


@pytest.fixture
def failing_kv_factory(kv_store: InMemoryKVStore):
    """
    FailingKVStore 팩토리 (내부 저장소는 kv_store 공유).

    Usage:
        kv = failing_kv_factory("public:", {"put"})
    """
    def _factory(fail_prefix: str, fail_on: set[str]) -> FailingKVStore:
        return FailingKVStore(kv_store, fail_prefix, fail_on)
    return _factory
