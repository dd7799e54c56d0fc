"""
test_drag.py - 드래그 커밋 판단 테스트

DoD:
- 아래로 이동: 대상 슬롯 아래쪽 절반에서만 커밋
- 위로 이동: 대상 슬롯 위쪽 절반에서만 커밋
- 같은 index → 커밋 안 함
"""

import pytest

from src.app.drag import should_commit_move

# 슬롯: y 100 ~ 140 (중간선 120)
SLOT_TOP = 100.0
SLOT_BOTTOM = 140.0


class TestShouldCommitMove:
    """should_commit_move 테스트."""

    def test_same_index(self):
        assert should_commit_move(2, 2, 130.0, SLOT_TOP, SLOT_BOTTOM) is False

    @pytest.mark.parametrize(
        "pointer_y,expected",
        [
            (105.0, False),  # 위쪽 절반
            (119.9, False),
            (120.0, True),   # 중간선
            (135.0, True),   # 아래쪽 절반
        ],
    )
    def test_dragging_down(self, pointer_y, expected):
        assert should_commit_move(0, 1, pointer_y, SLOT_TOP, SLOT_BOTTOM) is expected

    @pytest.mark.parametrize(
        "pointer_y,expected",
        [
            (135.0, False),  # 아래쪽 절반
            (120.1, False),
            (120.0, True),
            (105.0, True),   # 위쪽 절반
        ],
    )
    def test_dragging_up(self, pointer_y, expected):
        assert should_commit_move(3, 2, pointer_y, SLOT_TOP, SLOT_BOTTOM) is expected

    def test_no_oscillation(self):
        """커밋 직후 같은 포인터 위치에서 되돌아가지 않음."""
        pointer_y = 130.0
        assert should_commit_move(1, 2, pointer_y, SLOT_TOP, SLOT_BOTTOM) is True

        # 커밋 후 drag_index=2, 이전 슬롯(y 60~100)의 아래쪽이므로 되돌아가지 않음
        assert should_commit_move(2, 1, pointer_y, 60.0, 100.0) is False
