"""
Storage layer: local/remote store adapters.

역할:
- 어댑터 계약 (base.py)
- owner별 JSON 파일 저장소 (local.py)
- remote 키 규칙 (keys.py)
- KV 어댑터 + 템플릿 저장소 (remote.py)
"""

from .base import LocalStoreAdapter, RemoteStoreAdapter
from .local import LocalComponentStore, LocalTemplateStore
from .remote import HttpKVStore, InMemoryKVStore, RemoteTemplateRepository

__all__ = [
    "LocalStoreAdapter",
    "RemoteStoreAdapter",
    "LocalTemplateStore",
    "LocalComponentStore",
    "InMemoryKVStore",
    "HttpKVStore",
    "RemoteTemplateRepository",
]
