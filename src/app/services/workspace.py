"""
Workspace: 설정 → 저장소/SyncService 조립.

- local: <paths.data_dir>/<owner>/ JSON 파일 저장소
- remote: remote.backend
  - "memory": 앱이 직접 제공하는 KV (/api/kv) 저장소 공유
  - "http": remote.base_url의 KV API (HttpKVStore)
- owner별 SyncService는 처음 요청될 때 만들어 재사용
  (최근 사용 순 최대 max_cached_services개, 넘치면 가장 오래된 것부터 버림)
"""

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Any

from src.core.ids import sanitize_owner_id
from src.domain.constants import (
    DEFAULT_OWNER_ID,
    LOCAL_LOCK_TIMEOUT,
    REMOTE_LIST_LIMIT,
    WORKSPACE_MAX_CACHED_SERVICES,
)
from src.storage.base import RemoteStoreAdapter
from src.storage.local import LocalComponentStore, LocalTemplateStore
from src.storage.remote import HttpKVStore, RemoteTemplateRepository
from src.sync.service import SyncService

logger = logging.getLogger(__name__)

REMOTE_BACKENDS = ("memory", "http")


def _resolve_path(value: str | None, root: Path) -> Path | None:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else root / path


class Workspace:
    """
    owner별 SyncService 제공자.

    Usage:
        workspace = Workspace.from_config(config, kv_store, project_root)
        service = workspace.service("alice")
    """

    def __init__(
        self,
        data_dir: Path,
        kv: RemoteStoreAdapter,
        logs_dir: Path | None = None,
        default_owner: str = DEFAULT_OWNER_ID,
        lock_timeout: float = LOCAL_LOCK_TIMEOUT,
        list_limit: int = REMOTE_LIST_LIMIT,
        max_cached_services: int = WORKSPACE_MAX_CACHED_SERVICES,
    ):
        self.data_dir = data_dir
        self.kv = kv
        self.logs_dir = logs_dir
        self.default_owner = default_owner
        self.lock_timeout = lock_timeout
        self.list_limit = list_limit
        self.max_cached_services = max(1, max_cached_services)
        self._services: OrderedDict[str, SyncService] = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        local_kv: RemoteStoreAdapter,
        root: Path,
    ) -> "Workspace":
        """
        설정으로 Workspace 생성.

        Args:
            config: load_config() 결과
            local_kv: backend가 memory일 때 쓸 KV (앱의 /api/kv 저장소)
            root: 상대 경로 기준 디렉터리

        Raises:
            ValueError: 알 수 없는 remote.backend
        """
        paths = config.get("paths", {})
        remote_cfg = config.get("remote", {})

        backend = remote_cfg.get("backend", "memory")
        if backend not in REMOTE_BACKENDS:
            raise ValueError(f"Unknown remote backend: {backend} (allowed: {REMOTE_BACKENDS})")

        kv: RemoteStoreAdapter
        if backend == "http":
            kv = HttpKVStore(
                base_url=remote_cfg.get("base_url", ""),
                timeout=float(remote_cfg.get("timeout", 10.0)),
            )
        else:
            kv = local_kv

        data_dir = _resolve_path(paths.get("data_dir", "data"), root)
        logs_dir = _resolve_path(paths.get("logs_dir"), root)

        logger.info(f"Workspace ready: data_dir={data_dir}, remote backend={backend}")
        return cls(
            data_dir=data_dir or root / "data",
            kv=kv,
            logs_dir=logs_dir,
            default_owner=config.get("owner", {}).get("default_id", DEFAULT_OWNER_ID),
            lock_timeout=float(config.get("local", {}).get("lock_timeout", LOCAL_LOCK_TIMEOUT)),
            list_limit=int(remote_cfg.get("list_limit", REMOTE_LIST_LIMIT)),
            max_cached_services=int(
                config.get("owner", {}).get("max_cached", WORKSPACE_MAX_CACHED_SERVICES)
            ),
        )

    def service(self, owner_id: str | None = None) -> SyncService:
        """
        owner의 SyncService.

        Raises:
            ValidationError: INVALID_OWNER_ID
        """
        owner = owner_id or self.default_owner
        with self._lock:
            service = self._services.get(owner)
            if service is not None:
                self._services.move_to_end(owner)
            else:
                remote = RemoteTemplateRepository(self.kv, owner, self.list_limit)
                service = SyncService(
                    local=LocalTemplateStore(self.data_dir, owner, self.lock_timeout),
                    remote=remote,
                    components=LocalComponentStore(self.data_dir, owner, self.lock_timeout),
                    logs_dir=self._owner_logs_dir(owner),
                )
                self._services[owner] = service
                while len(self._services) > self.max_cached_services:
                    evicted, _ = self._services.popitem(last=False)
                    logger.debug(f"SyncService evicted from cache: owner={evicted}")
        return service

    def _owner_logs_dir(self, owner_id: str) -> Path | None:
        if self.logs_dir is None:
            return None
        return self.logs_dir / sanitize_owner_id(owner_id)

    def close(self) -> None:
        if isinstance(self.kv, HttpKVStore):
            self.kv.close()
