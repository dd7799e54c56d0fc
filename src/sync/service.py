"""
Sync Service: 로컬 저장 / publish / delete / reconcile 명령.

규칙:
- 검증(ValidationError)은 항상 I/O 이전
- store 호출 하나 = 실패 단위 하나, 재시도/롤백 없음
- publish: private 쓰기 → (is_public이면) public 쓰기
  public 실패 시 TransportError(context.private_written=True), 재실행 안전
- delete: private 삭제 실패는 전달, public 사본 삭제 실패는 경고만
- 충돌은 데이터로 반환, 해결은 resolve_conflict()로 명시적으로만
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path

from src.core.ids import generate_component_id, validate_entity_id
from src.core.logging import (
    complete_sync_log,
    create_sync_log,
    emit_warning,
    save_sync_log,
)
from src.domain.errors import (
    EngineError,
    ErrorCodes,
    TemplateNotFoundError,
    TransportError,
    ValidationError,
)
from src.domain.schemas import (
    ConflictResolution,
    DeleteResult,
    PublishResult,
    ReconcilePlan,
    StoredComponent,
    SyncLog,
    Template,
)
from src.storage.base import LocalStoreAdapter
from src.storage.remote import RemoteTemplateRepository
from src.templates import library
from src.templates.composer import compose_template
from src.templates.model import add_component, increment_usage, validate_template

from .reconciler import reconcile

logger = logging.getLogger(__name__)


class SyncService:
    """
    UI 명령 처리기 (owner 하나 단위).

    Usage:
        service = SyncService(local_store, remote_repo, component_store, logs_dir)
        service.save_local(template)
        service.publish(template)
        plan = service.reconcile()
        service.apply_pull(plan)
    """

    def __init__(
        self,
        local: LocalStoreAdapter[Template],
        remote: RemoteTemplateRepository,
        components: LocalStoreAdapter[StoredComponent] | None = None,
        logs_dir: Path | None = None,
    ):
        """
        Args:
            local: 로컬 템플릿 저장소
            remote: remote 템플릿 저장소 (owner scope)
            components: 컴포넌트 라이브러리 저장소 (없으면 라이브러리 명령 불가)
            logs_dir: sync log 저장 위치 (None이면 저장 안 함)
        """
        self.local = local
        self.remote = remote
        self.components = components
        self.logs_dir = logs_dir

    @property
    def owner_id(self) -> str:
        return self.remote.owner_id

    @contextmanager
    def _sync_run(self, operation: str) -> Generator[SyncLog, None, None]:
        """
        sync log 기록 범위.

        EngineError는 실패로 기록한 뒤 그대로 다시 발생.
        """
        sync_log = create_sync_log(self.owner_id, operation)
        try:
            yield sync_log
        except EngineError as e:
            logger.error(f"{operation} failed for owner {self.owner_id}: {e}")
            complete_sync_log(
                sync_log,
                success=False,
                error_code=e.code,
                error_context=e.to_dict(),
            )
            self._save_log(sync_log)
            raise

        complete_sync_log(sync_log, success=True)
        self._save_log(sync_log)

    def _save_log(self, sync_log: SyncLog) -> None:
        if self.logs_dir is None:
            return
        try:
            save_sync_log(sync_log, self.logs_dir)
        except OSError as e:
            logger.warning(f"Failed to save sync log {sync_log.run_id}: {e}")

    # =========================================================================
    # Local
    # =========================================================================

    def list_local(self) -> list[Template]:
        return self.local.get_all()

    def get_local(self, template_id: str) -> Template:
        """
        Raises:
            TemplateNotFoundError: 로컬에 없음
        """
        template = self.local.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def save_local(self, template: Template) -> Template:
        """
        로컬 저장. 불변식 검증이 먼저.

        Raises:
            ValidationError: 불변식 위반 (디스크 접근 전)
            TransportError: 로컬 저장 실패
        """
        validate_template(template)
        self.local.put(template)
        return template

    def use_template(self, template_id: str, question: str) -> str:
        """
        사용 모드 compose + usage_count 증가 후 로컬 저장.

        Returns:
            최종 프롬프트 텍스트
        """
        template = self.get_local(template_id)
        text = compose_template(template, question)
        self.save_local(increment_usage(template))
        return text

    # =========================================================================
    # Remote
    # =========================================================================

    def list_remote_private(self) -> list[Template]:
        return self.remote.list_private()

    def list_remote_public(self, category: str | None = None) -> list[Template]:
        return self.remote.list_public(category)

    def publish(self, template: Template) -> PublishResult:
        """
        remote에 push: private 사본 + (is_public이면) public 사본.

        두 쓰기는 독립적. 부분 실패 시 롤백 없음, 재실행하면 둘 다 다시 덮어씀.

        Raises:
            ValidationError: 불변식 위반 (네트워크 접근 전)
            TransportError: 쓰기 실패 (public 실패 시 private_written=True)
        """
        validate_template(template)

        with self._sync_run("publish") as sync_log:
            private_key = self.remote.put_private(template)
            result = PublishResult(template_id=template.id, private_key=private_key)

            if template.is_public:
                try:
                    result.public_key = self.remote.put_public(template)
                except TransportError as e:
                    e.context["private_written"] = True
                    e.context["private_key"] = private_key
                    raise

            sync_log.counts.update({"written": 2 if result.public_key else 1})
            return result

    def delete(self, template_id: str) -> DeleteResult:
        """
        템플릿 삭제: 로컬 → remote private (동기화된 적 있으면)
        → public 사본 (남아 있으면, best-effort).

        public 사본은 현재 is_public 값과 무관하게 존재 여부로 판단
        (공개를 해제한 뒤 남은 사본도 삭제).

        Raises:
            TemplateNotFoundError: 로컬/remote 어디에도 없음
            TransportError: 로컬 또는 private 삭제 실패
        """
        with self._sync_run("delete") as sync_log:
            local_copy = self.local.get(template_id)
            remote_copy = self.remote.get_private(template_id)
            if local_copy is None and remote_copy is None:
                raise TemplateNotFoundError(template_id)

            result = DeleteResult(template_id=template_id)

            if local_copy is not None:
                self.local.delete(template_id)
                result.local_deleted = True

            if remote_copy is not None:
                result.deleted_keys.append(self.remote.delete_private(template_id))

            try:
                if self._has_public_copy(template_id):
                    result.deleted_keys.append(self.remote.delete_public(template_id))
            except TransportError as e:
                message = f"Failed to delete public copy of {template_id}: {e}"
                logger.warning(message)
                emit_warning(
                    sync_log,
                    code=ErrorCodes.PUBLIC_COPY_DELETE_FAILED,
                    target=template_id,
                    message=message,
                )
                result.warnings.append(message)

            sync_log.counts.update({"deleted_keys": len(result.deleted_keys)})
            return result

    def _has_public_copy(self, template_id: str) -> bool:
        """public 사본 존재 여부 (깨진 사본도 존재로 취급)."""
        try:
            return self.remote.get_public(template_id) is not None
        except TransportError as e:
            if e.code == ErrorCodes.REMOTE_DATA_CORRUPT:
                return True
            raise

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def reconcile(self) -> ReconcilePlan:
        """
        로컬 vs remote private 스냅샷 비교 → 계획 (적용은 하지 않음).

        Raises:
            TransportError: 어느 한쪽 조회 실패
        """
        with self._sync_run("reconcile") as sync_log:
            local_templates = self.local.get_all()
            skipped: list[str] = []
            remote_templates = self.remote.list_private(skipped)
            plan = reconcile(local_templates, remote_templates)

            for key in skipped:
                emit_warning(
                    sync_log,
                    code=ErrorCodes.REMOTE_ENTRY_SKIPPED,
                    target=key,
                    message=f"Remote entry {key} is corrupt or has an unusable id",
                )

            sync_log.counts.update({
                "local": len(local_templates),
                "remote": len(remote_templates),
                "skipped": len(skipped),
                "to_pull": len(plan.to_pull_to_local),
                "conflicts": len(plan.conflicts),
            })
            logger.info(
                f"Reconciled owner {self.owner_id}: "
                f"{len(plan.to_pull_to_local)} to pull, {len(plan.conflicts)} conflicts"
            )
            return plan

    def apply_pull(self, plan: ReconcilePlan) -> list[str]:
        """
        plan.to_pull_to_local을 로컬에 저장. conflicts는 건드리지 않음.

        Returns:
            저장된 template id 목록

        Raises:
            ValidationError: 로컬에 쓸 수 없는 id (아무것도 저장하지 않음)
            TransportError: 첫 번째 실패에서 중단 (이미 저장된 것은 유지)
        """
        for template in plan.to_pull_to_local:
            validate_entity_id(template.id)

        with self._sync_run("apply_pull") as sync_log:
            written: list[str] = []
            for template in plan.to_pull_to_local:
                self.local.put(template)
                written.append(template.id)
                sync_log.counts.update({"pulled": len(written)})
            return written

    def resolve_conflict(
        self,
        template_id: str,
        resolution: ConflictResolution,
    ) -> Template:
        """
        충돌 하나를 명시적으로 해결.

        - KEEP_LOCAL: 로컬 값을 publish (private + public)
        - KEEP_REMOTE: remote private 값으로 로컬 덮어쓰기

        Raises:
            TemplateNotFoundError: 선택한 쪽에 템플릿 없음
        """
        resolution = ConflictResolution(resolution)

        if resolution == ConflictResolution.KEEP_LOCAL:
            template = self.get_local(template_id)
            self.publish(template)
            return template

        with self._sync_run("resolve_conflict"):
            remote_copy = self.remote.get_private(template_id)
            if remote_copy is None:
                raise TemplateNotFoundError(template_id)
            self.local.put(remote_copy)
            return remote_copy

    # =========================================================================
    # Component Library
    # =========================================================================

    def _component_store(self) -> LocalStoreAdapter[StoredComponent]:
        if self.components is None:
            raise ValidationError(
                ErrorCodes.INVALID_TEMPLATE,
                reason="component library is not configured",
            )
        return self.components

    def list_components(self, component_type: str | None = None) -> list[StoredComponent]:
        components = self._component_store().get_all()
        if component_type:
            components = [c for c in components if c.type.value == component_type]
        return components

    def get_component(self, component_id: str) -> StoredComponent:
        """
        Raises:
            ValidationError: COMPONENT_NOT_FOUND
        """
        component = self._component_store().get(component_id)
        if component is None:
            raise ValidationError(
                ErrorCodes.COMPONENT_NOT_FOUND,
                component_id=component_id,
            )
        return component

    def save_component(self, component: StoredComponent) -> StoredComponent:
        self._component_store().put(component)
        return component

    def delete_component(self, component_id: str) -> None:
        """
        Raises:
            ValidationError: COMPONENT_NOT_FOUND
        """
        self.get_component(component_id)
        self._component_store().delete(component_id)

    def harvest_components(self, template: Template) -> list[StoredComponent]:
        """템플릿의 내용 있는 컴포넌트를 라이브러리에 저장."""
        store = self._component_store()
        harvested = library.harvest_components(template)
        for component in harvested:
            store.put(component)
        logger.info(f"Harvested {len(harvested)} components from template {template.id}")
        return harvested

    def add_from_library(self, template: Template, component_id: str) -> Template:
        """
        라이브러리 컴포넌트를 템플릿 끝에 추가 + 라이브러리 usage_count 증가.

        템플릿은 저장하지 않고 새 값만 반환.

        Raises:
            ValidationError: COMPONENT_NOT_FOUND
        """
        stored = self.get_component(component_id)
        component = replace(stored.to_component(), id=generate_component_id())
        updated = add_component(template, component)

        self._component_store().put(library.mark_used(stored))
        return updated
