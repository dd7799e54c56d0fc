"""
Store Adapter 추상 인터페이스.

- LocalStoreAdapter: owner 하나에 한정된 영구 객체 저장소 (id → 값)
- RemoteStoreAdapter: 요청/응답 방식의 원격 key-value 저장소

공통 규칙:
- 모든 호출은 독립된 실패 단위 → 실패 시 TransportError
- 재시도/큐잉/트랜잭션 없음
- 같은 키 쓰기는 last-write-wins
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from src.domain.constants import REMOTE_LIST_LIMIT
from src.domain.schemas import KeyListing

T = TypeVar("T")


class LocalStoreAdapter(ABC, Generic[T]):
    """
    로컬 저장소 인터페이스.

    한 인스턴스는 하나의 owner scope만 볼 수 있음.
    """

    owner_id: str

    @abstractmethod
    def get_all(self) -> list[T]:
        """전체 목록."""
        ...

    @abstractmethod
    def get(self, entity_id: str) -> T | None:
        """단건 조회. 없으면 None."""
        ...

    @abstractmethod
    def put(self, value: T) -> None:
        """저장 (전체 값 덮어쓰기)."""
        ...

    @abstractmethod
    def delete(self, entity_id: str) -> None:
        """삭제. 없는 id는 무시."""
        ...


class RemoteStoreAdapter(ABC):
    """
    원격 key-value 저장소 인터페이스.

    키 형식은 storage.keys 참조. 값은 JSON 문자열.
    """

    @abstractmethod
    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        """키에 값 저장 (전체 덮어쓰기)."""
        ...

    @abstractmethod
    def get(self, key: str) -> str | None:
        """값 조회. 없으면 None."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """키 삭제."""
        ...

    @abstractmethod
    def list(self, prefix: str = "", limit: int = REMOTE_LIST_LIMIT) -> KeyListing:
        """prefix로 시작하는 키 목록 (최대 limit개, has_more 포함)."""
        ...
