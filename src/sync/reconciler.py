"""
Reconciler: 로컬/remote 템플릿 컬렉션 비교 → 병합 계획.

규칙 (remote 템플릿 R 각각에 대해):
- 로컬에 같은 id 없음 → pull (remote 전용 → 로컬로 채택)
- R.updated_at > L.updated_at → pull (remote가 최신)
- L.updated_at > R.updated_at → conflicts (로컬이 최신, 아직 push 안 됨)
- 같음 → 아무것도 안 함

- 로컬 전용 템플릿은 conflict 아님 (push는 별도 명시적 작업)
- 템플릿 단위 last-writer-wins, 필드 병합 없음
- 결과 순서 = remote 순회 순서 → 같은 입력이면 같은 결과
"""

from collections.abc import Iterable

from src.domain.schemas import ReconcilePlan, Template


def reconcile(
    local_templates: Iterable[Template],
    remote_templates: Iterable[Template],
) -> ReconcilePlan:
    """
    병합 계획 생성 (순수 함수, I/O 없음).

    Args:
        local_templates: 로컬 컬렉션
        remote_templates: 같은 owner의 remote 컬렉션

    Returns:
        ReconcilePlan(to_pull_to_local, conflicts)
    """
    local_by_id = {t.id: t for t in local_templates}
    plan = ReconcilePlan()
    seen: set[str] = set()

    for remote in remote_templates:
        # 같은 id가 remote 목록에 중복되면 첫 항목만 사용
        if remote.id in seen:
            continue
        seen.add(remote.id)

        local = local_by_id.get(remote.id)
        if local is None:
            plan.to_pull_to_local.append(remote)
        elif remote.updated_at > local.updated_at:
            plan.to_pull_to_local.append(remote)
        elif local.updated_at > remote.updated_at:
            plan.conflicts.append(local)

    return plan
