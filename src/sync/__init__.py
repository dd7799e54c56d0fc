"""
Sync layer: 로컬/remote 동기화.

역할:
- 병합 계획 (reconciler.py, 순수 함수)
- 저장/publish/delete/reconcile 명령 (service.py)
"""

from .reconciler import reconcile
from .service import SyncService

__all__ = [
    "reconcile",
    "SyncService",
]
