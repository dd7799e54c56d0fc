"""
test_service.py - SyncService 테스트

DoD:
- 검증은 I/O 전에 (ValidationError 시 store 호출 없음)
- publish: private → public, public 실패 시 private_written=True, 재실행 안전
- delete: public 사본 삭제 실패는 경고만, private 실패는 전달
- reconcile → apply_pull / resolve_conflict 명시적 적용
- 모든 동기화 명령은 sync log 기록
"""

import json
from dataclasses import replace
from pathlib import Path

import pytest

from src.core.logging import list_sync_logs, load_sync_log
from src.domain.errors import (
    ErrorCodes,
    TemplateNotFoundError,
    TransportError,
    ValidationError,
)
from src.domain.schemas import ConflictResolution, ReconcilePlan
from src.storage import keys
from src.storage.remote import RemoteTemplateRepository
from src.sync.service import SyncService
from src.templates.library import create_stored_component
from src.templates.model import update_component_content


@pytest.fixture
def service_with_kv(tmp_path: Path, local_store, component_store):
    """임의의 KV로 SyncService 생성."""
    def _factory(kv) -> SyncService:
        return SyncService(
            local=local_store,
            remote=RemoteTemplateRepository(kv, "alice"),
            components=component_store,
            logs_dir=tmp_path / "logs",
        )
    return _factory


def find_log(tmp_path: Path, operation: str) -> dict:
    """operation에 해당하는 sync log (하나만 있어야 함)."""
    logs = [load_sync_log(p) for p in list_sync_logs(tmp_path / "logs")]
    matched = [log for log in logs if log["operation"] == operation]
    assert len(matched) == 1
    return matched[0]


# =============================================================================
# Local commands
# =============================================================================


class TestLocalCommands:
    """save_local / get_local / use_template 테스트."""

    def test_save_and_get(self, sync_service, sample_template):
        sync_service.save_local(sample_template)

        assert sync_service.get_local(sample_template.id) == sample_template
        assert sync_service.list_local() == [sample_template]

    def test_get_missing(self, sync_service):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            sync_service.get_local("tpl_missing")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND

    def test_invalid_template_not_written(self, sync_service, template_factory):
        """검증 실패 시 디스크에 쓰지 않음."""
        broken = template_factory(parts=[("prefix", "no slot")])

        with pytest.raises(ValidationError):
            sync_service.save_local(broken)

        assert sync_service.list_local() == []

    def test_use_template(self, sync_service, sample_template):
        """compose + usage_count 증가 저장."""
        sync_service.save_local(sample_template)

        text = sync_service.use_template(sample_template.id, "What is 2+2?")

        assert text == "You are a helpful assistant.\n\nWhat is 2+2?\n\nAnswer concisely."
        assert sync_service.get_local(sample_template.id).usage_count == 1


# =============================================================================
# Publish
# =============================================================================


class TestPublish:
    """publish 테스트."""

    def test_private_only(self, sync_service, kv_store, sample_template):
        result = sync_service.publish(sample_template)

        assert result.private_key == keys.private_key("alice", sample_template.id)
        assert result.public_key is None
        assert kv_store.get(keys.public_key(sample_template.id)) is None

    def test_private_and_public(self, sync_service, kv_store, template_factory):
        template = template_factory(is_public=True)

        result = sync_service.publish(template)

        assert result.public_key == keys.public_key(template.id)
        assert kv_store.get(result.private_key) is not None
        assert kv_store.get(result.public_key) is not None

    def test_validation_before_network(self, service_with_kv, failing_kv_factory, template_factory):
        """검증 실패 → KV 호출 없음."""
        kv = failing_kv_factory("never", set())
        service = service_with_kv(kv)

        with pytest.raises(ValidationError):
            service.publish(template_factory(parts=[("prefix", "no slot")]))

        assert kv.calls == []

    def test_public_failure_partial(
        self, tmp_path, service_with_kv, failing_kv_factory, kv_store, template_factory
    ):
        """public 실패 → TransportError(private_written=True), private는 남음."""
        service = service_with_kv(failing_kv_factory("public:", {"put"}))
        template = template_factory(is_public=True)

        with pytest.raises(TransportError) as exc_info:
            service.publish(template)

        assert exc_info.value.context["private_written"] is True
        assert kv_store.get(keys.private_key("alice", template.id)) is not None
        assert kv_store.get(keys.public_key(template.id)) is None

        log = find_log(tmp_path, "publish")
        assert log["result"] == "failed"
        assert log["error_code"] == ErrorCodes.REMOTE_REQUEST_FAILED

    def test_retry_after_partial_failure(
        self, service_with_kv, failing_kv_factory, kv_store, template_factory
    ):
        """재실행은 두 사본을 다시 덮어씀."""
        template = template_factory(is_public=True)
        with pytest.raises(TransportError):
            service_with_kv(failing_kv_factory("public:", {"put"})).publish(template)

        result = service_with_kv(kv_store).publish(template)

        assert kv_store.get(result.public_key) is not None

    def test_private_failure_stops(self, service_with_kv, failing_kv_factory, kv_store, template_factory):
        """private 실패 → public 시도 안 함."""
        kv = failing_kv_factory("template:", {"put"})
        template = template_factory(is_public=True)

        with pytest.raises(TransportError) as exc_info:
            service_with_kv(kv).publish(template)

        assert "private_written" not in exc_info.value.context
        assert kv_store.get(keys.public_key(template.id)) is None

    def test_success_logged(self, tmp_path, sync_service, sample_template):
        sync_service.publish(sample_template)

        log = find_log(tmp_path, "publish")
        assert log["operation"] == "publish"
        assert log["result"] == "success"
        assert log["counts"] == {"written": 1}


# =============================================================================
# Delete
# =============================================================================


class TestDelete:
    """delete 테스트."""

    def test_delete_everywhere(self, sync_service, kv_store, template_factory):
        template = template_factory(is_public=True)
        sync_service.save_local(template)
        sync_service.publish(template)

        result = sync_service.delete(template.id)

        assert result.local_deleted is True
        assert result.deleted_keys == [
            keys.private_key("alice", template.id),
            keys.public_key(template.id),
        ]
        assert result.warnings == []
        assert kv_store.list().keys == []

    def test_local_only(self, sync_service, sample_template):
        """동기화된 적 없는 템플릿 → 로컬만 삭제."""
        sync_service.save_local(sample_template)

        result = sync_service.delete(sample_template.id)

        assert result.local_deleted is True
        assert result.deleted_keys == []

    def test_remote_only(self, sync_service, sample_template):
        sync_service.publish(sample_template)

        result = sync_service.delete(sample_template.id)

        assert result.local_deleted is False
        assert result.deleted_keys == [keys.private_key("alice", sample_template.id)]

    def test_not_found(self, sync_service):
        with pytest.raises(TemplateNotFoundError):
            sync_service.delete("tpl_missing")

    def test_public_delete_failure_is_warning(
        self, tmp_path, service_with_kv, failing_kv_factory, kv_store, template_factory
    ):
        """public 사본 삭제 실패 → 경고, 예외 없음."""
        template = template_factory(is_public=True)
        service_with_kv(kv_store).publish(template)
        service = service_with_kv(failing_kv_factory("public:", {"delete"}))
        service.save_local(template)

        result = service.delete(template.id)

        assert result.deleted_keys == [keys.private_key("alice", template.id)]
        assert len(result.warnings) == 1
        assert kv_store.get(keys.private_key("alice", template.id)) is None

        log = find_log(tmp_path, "delete")
        assert log["result"] == "success"
        assert log["warnings"][0]["code"] == ErrorCodes.PUBLIC_COPY_DELETE_FAILED
        assert log["warnings"][0]["target"] == template.id

    def test_private_delete_failure_propagates(
        self, service_with_kv, failing_kv_factory, kv_store, sample_template
    ):
        service_with_kv(kv_store).publish(sample_template)
        service = service_with_kv(failing_kv_factory("template:", {"delete"}))

        with pytest.raises(TransportError) as exc_info:
            service.delete(sample_template.id)

        assert exc_info.value.code == ErrorCodes.REMOTE_REQUEST_FAILED

    def test_leftover_public_copy_removed(
        self, sync_service, kv_store, remote_repo, template_factory
    ):
        """공개 해제 후 남은 public 사본도 삭제."""
        template = template_factory(is_public=True)
        sync_service.publish(template)
        unpublished = replace(template, is_public=False)
        sync_service.save_local(unpublished)
        sync_service.publish(unpublished)

        result = sync_service.delete(template.id)

        assert keys.public_key(template.id) in result.deleted_keys
        assert remote_repo.get_public(template.id) is None
        assert kv_store.list().keys == []

    def test_corrupt_public_copy_removed(self, sync_service, kv_store, sample_template):
        sync_service.save_local(sample_template)
        kv_store.put(keys.public_key(sample_template.id), "{broken")

        result = sync_service.delete(sample_template.id)

        assert result.deleted_keys == [keys.public_key(sample_template.id)]
        assert kv_store.get(keys.public_key(sample_template.id)) is None


# =============================================================================
# Reconcile
# =============================================================================


class TestReconcileCommands:
    """reconcile / apply_pull / resolve_conflict 테스트."""

    def test_pull_remote_changes(self, sync_service, remote_repo, template_factory):
        local = template_factory("tpl_1", updated_offset=0)
        remote = template_factory("tpl_1", updated_offset=10, name="Edited elsewhere")
        sync_service.save_local(local)
        remote_repo.put_private(remote)
        remote_repo.put_private(template_factory("tpl_2"))

        plan = sync_service.reconcile()
        pulled = sync_service.apply_pull(plan)

        assert sorted(pulled) == ["tpl_1", "tpl_2"]
        assert sync_service.get_local("tpl_1").name == "Edited elsewhere"
        assert sync_service.reconcile().is_in_sync

    def test_conflict_not_applied(self, sync_service, remote_repo, template_factory):
        """충돌은 apply_pull이 건드리지 않음."""
        local = template_factory("tpl_1", updated_offset=10, name="Local edit")
        sync_service.save_local(local)
        remote_repo.put_private(template_factory("tpl_1", updated_offset=0))

        plan = sync_service.reconcile()
        sync_service.apply_pull(plan)

        assert [t.id for t in plan.conflicts] == ["tpl_1"]
        assert sync_service.get_local("tpl_1").name == "Local edit"
        assert remote_repo.get_private("tpl_1").name != "Local edit"

    def test_resolve_keep_local(self, sync_service, remote_repo, template_factory):
        local = template_factory("tpl_1", updated_offset=10, name="Local edit")
        sync_service.save_local(local)
        remote_repo.put_private(template_factory("tpl_1", updated_offset=0))

        sync_service.resolve_conflict("tpl_1", ConflictResolution.KEEP_LOCAL)

        assert remote_repo.get_private("tpl_1").name == "Local edit"
        assert sync_service.reconcile().is_in_sync

    def test_resolve_keep_remote(self, sync_service, remote_repo, template_factory):
        sync_service.save_local(template_factory("tpl_1", updated_offset=10, name="Local edit"))
        remote_repo.put_private(template_factory("tpl_1", updated_offset=0, name="Remote"))

        resolved = sync_service.resolve_conflict("tpl_1", "remote")

        assert resolved.name == "Remote"
        assert sync_service.get_local("tpl_1").name == "Remote"

    def test_resolve_keep_remote_missing(self, sync_service):
        with pytest.raises(TemplateNotFoundError):
            sync_service.resolve_conflict("tpl_missing", ConflictResolution.KEEP_REMOTE)

    def test_reconcile_logged(self, tmp_path, sync_service, remote_repo, template_factory):
        remote_repo.put_private(template_factory("tpl_1"))

        sync_service.reconcile()

        log = find_log(tmp_path, "reconcile")
        assert log["operation"] == "reconcile"
        assert log["counts"]["to_pull"] == 1
        assert log["counts"]["conflicts"] == 0

    def test_reconcile_transport_failure(self, service_with_kv, failing_kv_factory):
        service = service_with_kv(failing_kv_factory("template:", {"list"}))

        with pytest.raises(TransportError):
            service.reconcile()

    def test_edit_after_pull_becomes_conflict(self, sync_service, remote_repo, template_factory):
        """pull 후 로컬 편집 → 다음 reconcile에서 conflict."""
        remote_repo.put_private(template_factory("tpl_1"))
        sync_service.apply_pull(sync_service.reconcile())

        template = sync_service.get_local("tpl_1")
        first = template.sorted_components()[0]
        sync_service.save_local(update_component_content(template, first.id, "Changed"))

        plan = sync_service.reconcile()
        assert [t.id for t in plan.conflicts] == ["tpl_1"]

    def test_unusable_remote_entry_skipped(
        self, tmp_path, sync_service, kv_store, remote_repo, template_factory
    ):
        """id가 경로로 쓸 수 없는 remote 항목 → 경고 후 건너뜀, 나머지는 pull."""
        remote_repo.put_private(template_factory("tpl_ok"))
        evil = template_factory("../evil")
        kv_store.put("template:alice:../evil", json.dumps(evil.to_dict()))

        plan = sync_service.reconcile()
        pulled = sync_service.apply_pull(plan)

        assert pulled == ["tpl_ok"]
        assert [t.id for t in sync_service.list_local()] == ["tpl_ok"]

        log = find_log(tmp_path, "reconcile")
        assert log["counts"]["skipped"] == 1
        assert log["warnings"][0]["code"] == ErrorCodes.REMOTE_ENTRY_SKIPPED
        assert log["warnings"][0]["target"] == "template:alice:../evil"

    def test_apply_pull_validates_before_writing(self, sync_service, template_factory):
        """쓸 수 없는 id가 하나라도 있으면 아무것도 저장하지 않음."""
        plan = ReconcilePlan(
            to_pull_to_local=[template_factory("tpl_ok"), template_factory("../evil")]
        )

        with pytest.raises(ValidationError) as exc_info:
            sync_service.apply_pull(plan)

        assert exc_info.value.code == ErrorCodes.INVALID_ENTITY_ID
        assert sync_service.list_local() == []


# =============================================================================
# Component Library
# =============================================================================


class TestComponentLibrary:
    """라이브러리 명령 테스트."""

    def test_harvest(self, sync_service, sample_template):
        harvested = sync_service.harvest_components(sample_template)

        assert len(harvested) == 2
        assert {c.id for c in sync_service.list_components()} == {c.id for c in harvested}

    def test_list_by_type(self, sync_service, sample_template):
        sync_service.harvest_components(sample_template)

        suffixes = sync_service.list_components("suffix")

        assert [c.content for c in suffixes] == ["Answer concisely."]

    def test_add_from_library(self, sync_service, sample_template):
        stored = sync_service.save_component(
            create_stored_component("Rules", "constraint", "No jargon.")
        )

        updated = sync_service.add_from_library(sample_template, stored.id)

        last = updated.sorted_components()[-1]
        assert last.content == "No jargon."
        assert last.id != stored.id
        assert last.position == len(sample_template.components)
        assert sync_service.get_component(stored.id).usage_count == 1

    def test_add_missing_component(self, sync_service, sample_template):
        with pytest.raises(ValidationError) as exc_info:
            sync_service.add_from_library(sample_template, "cmp_missing")

        assert exc_info.value.code == ErrorCodes.COMPONENT_NOT_FOUND

    def test_delete_component(self, sync_service):
        stored = sync_service.save_component(create_stored_component("Rules", "constraint"))

        sync_service.delete_component(stored.id)

        assert sync_service.list_components() == []

    def test_library_not_configured(self, local_store, remote_repo, sample_template):
        service = SyncService(local=local_store, remote=remote_repo)

        with pytest.raises(ValidationError):
            service.harvest_components(sample_template)

    def test_no_logs_dir(self, local_store, remote_repo, sample_template, tmp_path):
        """logs_dir 없으면 파일 저장 안 함."""
        service = SyncService(local=local_store, remote=remote_repo)

        service.publish(replace(sample_template, is_public=True))

        assert not (tmp_path / "logs").exists()
