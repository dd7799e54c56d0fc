"""
Sync logging: sync run log schema, warnings, 저장

규칙:
- 경고 필수 컨텍스트: level, code, operation, target, message
- best-effort 실패(public 사본 삭제 등)는 예외 대신 경고로 남김
- 실패한 run도 error_code/error_context와 함께 기록
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.atomic import atomic_write_json
from src.core.ids import generate_run_id
from src.domain.schemas import SyncLog, WarningLog

# =============================================================================
# Sync Log Management
# =============================================================================


def create_sync_log(owner_id: str, operation: str) -> SyncLog:
    """
    새 SyncLog 생성.

    Args:
        owner_id: owner scope
        operation: publish, delete, reconcile, apply_pull, resolve_conflict

    Returns:
        초기화된 SyncLog
    """
    now = datetime.now(UTC).isoformat()

    return SyncLog(
        run_id=generate_run_id(),
        owner_id=owner_id,
        operation=operation,
        started_at=now,
        result="pending",
    )


def emit_warning(
    sync_log: SyncLog,
    code: str,
    target: str,
    message: str,
) -> None:
    """
    경고 이벤트 기록.

    Args:
        sync_log: SyncLog 인스턴스
        code: 경고 코드 (ErrorCodes)
        target: 대상 키 또는 template_id
        message: 경고 메시지
    """
    warning = WarningLog(
        level="warning",
        code=code,
        operation=sync_log.operation,
        target=target,
        message=message,
    )
    sync_log.warnings.append(warning)


def complete_sync_log(
    sync_log: SyncLog,
    success: bool,
    counts: dict[str, int] | None = None,
    error_code: str | None = None,
    error_context: dict[str, Any] | None = None,
) -> None:
    """
    SyncLog 완료 처리.

    Args:
        sync_log: SyncLog 인스턴스
        success: 성공 여부
        counts: 처리 건수
        error_code: 에러 코드 (실패 시)
        error_context: 에러 컨텍스트 (실패 시)
    """
    sync_log.finished_at = datetime.now(UTC).isoformat()
    sync_log.result = "success" if success else "failed"
    if counts:
        sync_log.counts.update(counts)

    if not success:
        sync_log.error_code = error_code
        sync_log.error_context = error_context


def save_sync_log(sync_log: SyncLog, logs_dir: Path) -> Path:
    """
    SyncLog를 파일로 저장.

    Returns:
        저장된 파일 경로
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"sync_{sync_log.run_id}.json"
    atomic_write_json(log_path, sync_log.to_dict())
    return log_path


def load_sync_log(log_path: Path) -> dict[str, Any]:
    """SyncLog 파일 로드."""
    data: dict[str, Any] = json.loads(log_path.read_text(encoding="utf-8"))
    return data


def list_sync_logs(logs_dir: Path) -> list[Path]:
    """
    logs 디렉터리의 모든 sync log 파일 목록.

    Returns:
        로그 파일 경로 목록 (최신순)
    """
    if not logs_dir.exists():
        return []

    logs = list(logs_dir.glob("sync_*.json"))
    logs.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    return logs
