"""
드래그 재정렬 입력 해석 (interaction layer).

연속 드래그 이벤트 → 이산 move(from_index, to_index) 커밋 여부.
포인터가 대상 슬롯의 중간선을 이동 방향으로 넘을 때만 커밋:
- 아래로 이동: 슬롯 아래쪽 절반에 들어와야 커밋
- 위로 이동: 슬롯 위쪽 절반에 들어와야 커밋

비슷한 높이의 인접 슬롯 사이에서 왕복(oscillation)하지 않게 함.
"""


def should_commit_move(
    drag_index: int,
    hover_index: int,
    pointer_y: float,
    slot_top: float,
    slot_bottom: float,
) -> bool:
    """
    현재 포인터 위치에서 move를 커밋할지 판단.

    Args:
        drag_index: 드래그 중인 컴포넌트의 현재 index
        hover_index: 포인터 아래 슬롯의 index
        pointer_y: 포인터 y 좌표 (슬롯 좌표와 같은 기준)
        slot_top: 대상 슬롯 상단 y
        slot_bottom: 대상 슬롯 하단 y

    Returns:
        True면 호출자가 move_component(drag_index, hover_index) 실행 후
        drag_index를 hover_index로 갱신
    """
    if drag_index == hover_index:
        return False

    middle = (slot_bottom - slot_top) / 2
    offset = pointer_y - slot_top

    if drag_index < hover_index and offset < middle:
        return False
    if drag_index > hover_index and offset > middle:
        return False
    return True
