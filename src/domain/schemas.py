"""
Data schemas for the template engine.

규칙:
- position: 템플릿 내 0..n-1 연속 (templates.model에서 유지)
- updated_at: 모든 변경 시 갱신, reconcile의 유일한 기준
- 타임스탬프는 timezone-aware UTC datetime, 직렬화는 ISO 8601
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from src.domain.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_OWNER_ID,
    DEFAULT_TEMPLATE_VERSION,
)

# =============================================================================
# Enumerations
# =============================================================================

class ComponentType(str, Enum):
    """컴포넌트 타입 (닫힌 열거형)."""
    PREFIX = "prefix"
    CONTEXT = "context"
    QUESTION_SLOT = "question_slot"
    CONSTRAINT = "constraint"
    EXAMPLE = "example"
    SUFFIX = "suffix"


class TemplateCategory(str, Enum):
    """템플릿 분류."""
    PRODUCTIVITY = "productivity"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    RESEARCH = "research"
    EDUCATION = "education"
    BUSINESS = "business"


class ConflictResolution(str, Enum):
    """
    충돌 해결 방향.

    자동 해결 없음: 호출자가 명시적으로 선택.
    """
    KEEP_LOCAL = "local"    # 로컬 값을 remote에 push
    KEEP_REMOTE = "remote"  # remote 값으로 로컬 덮어쓰기


# =============================================================================
# Timestamp Helpers
# =============================================================================

def utc_now() -> datetime:
    """현재 UTC 시각."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime:
    """
    ISO 8601 문자열 또는 datetime → aware datetime.

    'Z' 접미사와 naive 값(UTC로 간주) 모두 허용.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def normalize_tags(tags: Any) -> list[str]:
    """태그는 집합 의미: 공백 제거, 중복 제거, 정렬."""
    if not tags:
        return []
    return sorted({str(t).strip() for t in tags if str(t).strip()})


# =============================================================================
# Component Schemas
# =============================================================================

@dataclass
class TemplateComponent:
    """
    템플릿 내 하나의 타입이 지정된 텍스트 조각.

    - id: 생성 후 불변
    - placeholder: 편집기 힌트, 출력에 포함되지 않음
    - is_default: 템플릿 생성 시 seed 여부 (참고용)
    """
    id: str
    type: ComponentType
    content: str = ""
    position: int = 0
    is_required: bool = False
    placeholder: str | None = None
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "content": self.content,
            "position": self.position,
            "is_required": self.is_required,
            "placeholder": self.placeholder,
            "is_default": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateComponent":
        return cls(
            id=data["id"],
            type=ComponentType(data["type"]),
            content=data.get("content") or "",
            position=int(data.get("position", 0)),
            is_required=bool(data.get("is_required", False)),
            placeholder=data.get("placeholder"),
            is_default=bool(data.get("is_default", False)),
        )


@dataclass
class StoredComponent:
    """
    재사용 컴포넌트 (컴포넌트 라이브러리).

    TemplateComponent에서 position을 뺀 형태 + 라이브러리 메타데이터.
    """
    id: str
    name: str
    type: ComponentType
    content: str = ""
    description: str = ""
    category: TemplateCategory = TemplateCategory.PRODUCTIVITY
    is_required: bool = False
    placeholder: str | None = None
    tags: list[str] = field(default_factory=list)
    usage_count: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_component(self, position: int = 0) -> TemplateComponent:
        """템플릿에 삽입할 컴포넌트로 변환 (id는 호출자가 새로 발급)."""
        return TemplateComponent(
            id=self.id,
            type=self.type,
            content=self.content,
            position=position,
            is_required=self.is_required,
            placeholder=self.placeholder,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "content": self.content,
            "description": self.description,
            "category": self.category.value,
            "is_required": self.is_required,
            "placeholder": self.placeholder,
            "tags": list(self.tags),
            "usage_count": self.usage_count,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredComponent":
        return cls(
            id=data["id"],
            name=data["name"],
            type=ComponentType(data["type"]),
            content=data.get("content") or "",
            description=data.get("description", ""),
            category=TemplateCategory(data.get("category", DEFAULT_CATEGORY)),
            is_required=bool(data.get("is_required", False)),
            placeholder=data.get("placeholder"),
            tags=normalize_tags(data.get("tags")),
            usage_count=int(data.get("usage_count", 0)),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
        )


# =============================================================================
# Template Schema
# =============================================================================

@dataclass
class Template:
    """
    컴포넌트 묶음 + 메타데이터. 저장/동기화의 단위.

    불변식 (templates.model에서 유지):
    1. question_slot 최소 1개
    2. updated_at은 모든 변경 시 갱신
    3. position은 0부터 연속
    """
    id: str
    name: str
    components: list[TemplateComponent] = field(default_factory=list)
    description: str = ""
    category: TemplateCategory = TemplateCategory.PRODUCTIVITY
    tags: list[str] = field(default_factory=list)
    is_public: bool = False
    rating: float = 0.0
    usage_count: int = 0
    version: str = DEFAULT_TEMPLATE_VERSION
    author_id: str = DEFAULT_OWNER_ID
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def sorted_components(self) -> list[TemplateComponent]:
        """position 오름차순."""
        return sorted(self.components, key=lambda c: c.position)

    @property
    def question_slot_count(self) -> int:
        return sum(1 for c in self.components if c.type == ComponentType.QUESTION_SLOT)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "tags": list(self.tags),
            "is_public": self.is_public,
            "rating": self.rating,
            "usage_count": self.usage_count,
            "version": self.version,
            "author_id": self.author_id,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "components": [c.to_dict() for c in self.sorted_components()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Template":
        created_at = parse_timestamp(data["created_at"])
        return cls(
            id=data["id"],
            name=data["name"],
            components=[TemplateComponent.from_dict(c) for c in data.get("components", [])],
            description=data.get("description", ""),
            category=TemplateCategory(data.get("category", DEFAULT_CATEGORY)),
            tags=normalize_tags(data.get("tags")),
            is_public=bool(data.get("is_public", False)),
            rating=float(data.get("rating", 0.0)),
            usage_count=int(data.get("usage_count", 0)),
            version=data.get("version") or DEFAULT_TEMPLATE_VERSION,
            author_id=data.get("author_id") or DEFAULT_OWNER_ID,
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updated_at", created_at)),
        )


# =============================================================================
# Remote Store Schemas
# =============================================================================

@dataclass
class KeyInfo:
    """remote list 결과의 키 하나 (+ 선택적 메타데이터)."""
    key: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "metadata": dict(self.metadata)}


@dataclass
class KeyListing:
    """remote list 결과."""
    keys: list[KeyInfo] = field(default_factory=list)
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "keys": [k.to_dict() for k in self.keys],
            "has_more": self.has_more,
        }


# =============================================================================
# Sync Result Schemas
# =============================================================================

@dataclass
class ReconcilePlan:
    """
    reconcile() 결과.

    - to_pull_to_local: remote 전용 또는 remote가 더 최신
    - conflicts: 로컬이 더 최신 (push 전) → 호출자가 명시적으로 결정
    """
    to_pull_to_local: list[Template] = field(default_factory=list)
    conflicts: list[Template] = field(default_factory=list)

    @property
    def is_in_sync(self) -> bool:
        return not self.to_pull_to_local and not self.conflicts

    def to_dict(self) -> dict[str, Any]:
        return {
            "to_pull_to_local": [t.to_dict() for t in self.to_pull_to_local],
            "conflicts": [t.to_dict() for t in self.conflicts],
        }


@dataclass
class PublishResult:
    """publish() 결과. public_key는 is_public일 때만."""
    template_id: str
    private_key: str
    public_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "private_key": self.private_key,
            "public_key": self.public_key,
        }


@dataclass
class DeleteResult:
    """
    delete() 결과.

    public 사본 삭제 실패는 예외가 아니라 warnings로 보고.
    """
    template_id: str
    local_deleted: bool = False
    deleted_keys: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "local_deleted": self.local_deleted,
            "deleted_keys": list(self.deleted_keys),
            "warnings": list(self.warnings),
        }


# =============================================================================
# Sync Log Schemas
# =============================================================================

@dataclass
class WarningLog:
    """
    경고 로그.

    경고 필수 컨텍스트: level, code, operation, target, message
    """
    level: str = "warning"
    code: str = ""
    operation: str = ""
    target: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "operation": self.operation,
            "target": self.target,
            "message": self.message,
        }


@dataclass
class SyncLog:
    """
    동기화 실행 로그.

    publish / delete / reconcile / apply_pull / resolve_conflict 단위.
    """
    run_id: str
    owner_id: str
    operation: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, failed

    # 처리 건수 (pulled, conflicts, written 등)
    counts: dict[str, int] = field(default_factory=dict)

    warnings: list[WarningLog] = field(default_factory=list)

    # Error (if failed)
    error_code: str | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "owner_id": self.owner_id,
            "operation": self.operation,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "counts": dict(self.counts),
            "warnings": [w.to_dict() for w in self.warnings],
            "error_code": self.error_code,
            "error_context": self.error_context,
        }
