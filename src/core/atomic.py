"""
원자적 JSON 파일 쓰기.

로컬 저장소는 "키 하나 = 파일 하나"이므로 쓰기 도중 중단되어도
반쯤 쓰인 파일이 남지 않아야 함:
- temp → rename (원자적)
- 가능한 환경에서 fsync (파일 + 디렉토리)
- fsync 실패 시 경고 남기고 계속 진행
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    rename 엔트리까지 디스크에 남기려면 필요. 일부 OS에서는 미지원.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    원자적 JSON 쓰기.

    실패 시 temp 파일을 정리하고 원본 파일은 그대로 둠.

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


def read_json(path: Path) -> dict[str, Any]:
    """JSON 파일 로드. 파싱 실패는 json.JSONDecodeError 그대로 전달."""
    data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    return data
