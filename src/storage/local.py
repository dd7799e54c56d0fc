"""
로컬 저장소: owner별 JSON 파일 저장.

구조:
<data_dir>/<owner>/
├── templates/<template_id>.json
├── components/<component_id>.json
└── .locks/<kind>_<id>.lock

규칙:
- 키 하나 = 파일 하나 (원자적 쓰기, core.atomic)
- 같은 id 동시 쓰기: filelock으로 직렬화, 결과는 last-write-wins
- 실패는 TransportError로 전달 (재시도 없음)
- 목록 조회 시 깨진 파일은 경고 후 건너뜀, 단건 조회 시에는 에러
"""

import json
import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generic, TypeVar

from filelock import FileLock, Timeout

from src.core.atomic import atomic_write_json, read_json
from src.core.ids import sanitize_owner_id, validate_entity_id
from src.domain.constants import (
    LOCAL_COMPONENTS_DIR,
    LOCAL_LOCK_TIMEOUT,
    LOCAL_LOCKS_DIR,
    LOCAL_TEMPLATES_DIR,
)
from src.domain.errors import ErrorCodes, TransportError
from src.domain.schemas import StoredComponent, Template

from .base import LocalStoreAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T", Template, StoredComponent)

# 역직렬화 실패로 간주하는 예외
_DECODE_ERRORS = (json.JSONDecodeError, KeyError, ValueError, TypeError)


class JsonEntityStore(LocalStoreAdapter[T], Generic[T]):
    """
    JSON 파일 기반 owner scope 저장소.

    Usage:
        store = LocalTemplateStore(Path("data"), owner_id="alice")
        store.put(template)
        store.get(template.id)
    """

    kind: str = ""
    from_dict: Callable[[dict[str, Any]], T]

    def __init__(
        self,
        data_dir: Path,
        owner_id: str,
        lock_timeout: float = LOCAL_LOCK_TIMEOUT,
    ):
        """
        Args:
            data_dir: 로컬 데이터 루트
            owner_id: owner scope (파일 경로용으로 정리됨)
            lock_timeout: id별 락 timeout (초)
        """
        self.owner_id = owner_id
        self.lock_timeout = lock_timeout
        self.owner_dir = data_dir / sanitize_owner_id(owner_id)
        self.entity_dir = self.owner_dir / self.kind
        self._locks_dir = self.owner_dir / LOCAL_LOCKS_DIR

    @contextmanager
    def _entity_lock(self, entity_id: str) -> Generator[None, None, None]:
        """
        id별 락 획득.

        Raises:
            TransportError: LOCAL_LOCK_TIMEOUT
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{self.kind}_{entity_id}.lock", timeout=self.lock_timeout)

        try:
            lock.acquire()
        except Timeout:
            raise TransportError(
                ErrorCodes.LOCAL_LOCK_TIMEOUT,
                kind=self.kind,
                entity_id=entity_id,
                timeout=self.lock_timeout,
            ) from None

        try:
            yield
        finally:
            lock.release()

    def _path(self, entity_id: str) -> Path:
        validate_entity_id(entity_id)
        return self.entity_dir / f"{entity_id}.json"

    def _load(self, path: Path) -> T:
        return type(self).from_dict(read_json(path))

    # =========================================================================
    # LocalStoreAdapter
    # =========================================================================

    def get_all(self) -> list[T]:
        """
        전체 목록 (updated_at 최신순).

        깨진 파일은 경고 로그 후 건너뜀.

        Raises:
            TransportError: LOCAL_IO_FAILED
        """
        if not self.entity_dir.exists():
            return []

        results: list[T] = []
        try:
            paths = sorted(self.entity_dir.glob("*.json"))
        except OSError as e:
            raise TransportError(
                ErrorCodes.LOCAL_IO_FAILED,
                kind=self.kind,
                path=str(self.entity_dir),
                error=str(e),
            ) from e

        for path in paths:
            try:
                results.append(self._load(path))
            except _DECODE_ERRORS as e:
                logger.warning(f"Skipping corrupt {self.kind} file {path}: {e}")
            except OSError as e:
                raise TransportError(
                    ErrorCodes.LOCAL_IO_FAILED,
                    kind=self.kind,
                    path=str(path),
                    error=str(e),
                ) from e

        results.sort(key=lambda item: item.updated_at, reverse=True)
        return results

    def get(self, entity_id: str) -> T | None:
        """
        단건 조회.

        Raises:
            TransportError: LOCAL_DATA_CORRUPT, LOCAL_IO_FAILED
        """
        path = self._path(entity_id)
        if not path.exists():
            return None

        try:
            return self._load(path)
        except _DECODE_ERRORS as e:
            raise TransportError(
                ErrorCodes.LOCAL_DATA_CORRUPT,
                kind=self.kind,
                entity_id=entity_id,
                error=str(e),
            ) from e
        except OSError as e:
            raise TransportError(
                ErrorCodes.LOCAL_IO_FAILED,
                kind=self.kind,
                entity_id=entity_id,
                error=str(e),
            ) from e

    def put(self, value: T) -> None:
        """
        저장 (전체 덮어쓰기).

        Raises:
            TransportError: LOCAL_LOCK_TIMEOUT, LOCAL_IO_FAILED
        """
        path = self._path(value.id)
        with self._entity_lock(value.id):
            try:
                atomic_write_json(path, value.to_dict())
            except OSError as e:
                raise TransportError(
                    ErrorCodes.LOCAL_IO_FAILED,
                    kind=self.kind,
                    entity_id=value.id,
                    error=str(e),
                ) from e

        logger.info(f"Saved {self.kind} {value.id} for owner {self.owner_id}")

    def delete(self, entity_id: str) -> None:
        """
        삭제. 없는 id는 무시.

        Raises:
            TransportError: LOCAL_LOCK_TIMEOUT, LOCAL_IO_FAILED
        """
        path = self._path(entity_id)
        with self._entity_lock(entity_id):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise TransportError(
                    ErrorCodes.LOCAL_IO_FAILED,
                    kind=self.kind,
                    entity_id=entity_id,
                    error=str(e),
                ) from e

        logger.info(f"Deleted {self.kind} {entity_id} for owner {self.owner_id}")


class LocalTemplateStore(JsonEntityStore[Template]):
    """템플릿 저장소."""

    kind = LOCAL_TEMPLATES_DIR
    from_dict = staticmethod(Template.from_dict)


class LocalComponentStore(JsonEntityStore[StoredComponent]):
    """재사용 컴포넌트 라이브러리 저장소."""

    kind = LOCAL_COMPONENTS_DIR
    from_dict = staticmethod(StoredComponent.from_dict)
