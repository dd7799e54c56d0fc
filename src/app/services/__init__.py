"""
Application Services.

역할:
- workspace: 설정 → 저장소/SyncService 조립
"""

from .workspace import Workspace

__all__ = [
    "Workspace",
]
