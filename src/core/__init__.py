"""
Core layer: 저장/로그 안전 핵심 모듈.

역할:
- ID 발급, 원자적 JSON 쓰기, sync run log
"""

from .atomic import atomic_write_json, read_json
from .ids import (
    generate_component_id,
    generate_run_id,
    generate_template_id,
    sanitize_owner_id,
    validate_entity_id,
)
from .logging import (
    complete_sync_log,
    create_sync_log,
    emit_warning,
    save_sync_log,
)

__all__ = [
    # atomic
    "atomic_write_json",
    "read_json",
    # ids
    "generate_template_id",
    "generate_component_id",
    "generate_run_id",
    "sanitize_owner_id",
    "validate_entity_id",
    # logging
    "create_sync_log",
    "emit_warning",
    "complete_sync_log",
    "save_sync_log",
]
