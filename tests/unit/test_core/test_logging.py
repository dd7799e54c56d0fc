"""
test_logging.py - sync run log 테스트

DoD:
- run log 생성/완료/저장/로드
- 경고 필수 컨텍스트: level, code, operation, target, message
- 실패 run은 error_code/error_context 포함
"""

import json
from pathlib import Path

from src.core.logging import (
    complete_sync_log,
    create_sync_log,
    emit_warning,
    list_sync_logs,
    load_sync_log,
    save_sync_log,
)
from src.domain.errors import ErrorCodes


class TestSyncLog:
    """SyncLog 생성/완료 테스트."""

    def test_create_pending(self):
        sync_log = create_sync_log("alice", "publish")

        assert sync_log.run_id.startswith("SYNC-")
        assert sync_log.owner_id == "alice"
        assert sync_log.operation == "publish"
        assert sync_log.result == "pending"
        assert sync_log.finished_at is None

    def test_complete_success(self):
        sync_log = create_sync_log("alice", "reconcile")

        complete_sync_log(sync_log, success=True, counts={"to_pull": 2})

        assert sync_log.result == "success"
        assert sync_log.finished_at is not None
        assert sync_log.counts == {"to_pull": 2}
        assert sync_log.error_code is None

    def test_complete_failure(self):
        sync_log = create_sync_log("alice", "publish")

        complete_sync_log(
            sync_log,
            success=False,
            error_code=ErrorCodes.REMOTE_REQUEST_FAILED,
            error_context={"key": "public:template:tpl_1"},
        )

        assert sync_log.result == "failed"
        assert sync_log.error_code == ErrorCodes.REMOTE_REQUEST_FAILED
        assert sync_log.error_context == {"key": "public:template:tpl_1"}

    def test_warning_context(self):
        """경고에 operation은 run의 operation."""
        sync_log = create_sync_log("alice", "delete")

        emit_warning(
            sync_log,
            code=ErrorCodes.PUBLIC_COPY_DELETE_FAILED,
            target="tpl_1",
            message="public copy delete failed",
        )

        warning = sync_log.warnings[0].to_dict()
        assert warning == {
            "level": "warning",
            "code": ErrorCodes.PUBLIC_COPY_DELETE_FAILED,
            "operation": "delete",
            "target": "tpl_1",
            "message": "public copy delete failed",
        }


class TestSyncLogFiles:
    """저장/로드 테스트."""

    def test_save_and_load(self, tmp_path: Path):
        sync_log = create_sync_log("alice", "apply_pull")
        complete_sync_log(sync_log, success=True)

        path = save_sync_log(sync_log, tmp_path / "logs")

        assert path.name == f"sync_{sync_log.run_id}.json"
        assert load_sync_log(path) == sync_log.to_dict()
        assert json.loads(path.read_text(encoding="utf-8"))["result"] == "success"

    def test_list_logs(self, tmp_path: Path):
        logs_dir = tmp_path / "logs"
        for operation in ("publish", "delete"):
            save_sync_log(create_sync_log("alice", operation), logs_dir)
        (logs_dir / "other.json").write_text("{}", encoding="utf-8")

        assert len(list_sync_logs(logs_dir)) == 2

    def test_list_missing_dir(self, tmp_path: Path):
        assert list_sync_logs(tmp_path / "nope") == []
