"""
E2E 테스트용 앱 클라이언트 설정.

- 설정은 test_config (tmp_path 아래 data/logs, memory backend)
- 기본 owner는 alice, 다른 owner는 X-Owner-Id 헤더로 지정
"""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.app.main import create_app


@pytest.fixture
def client(test_config: dict) -> Generator[TestClient, None, None]:
    """lifespan이 실행된 TestClient."""
    with TestClient(create_app(test_config)) as client:
        yield client


@pytest.fixture
def create_template(client: TestClient):
    """
    API로 템플릿 생성 후 응답 JSON 반환.

    Usage:
        template = create_template("Code review")
    """
    def _create(name: str = "Demo", **fields: Any) -> dict[str, Any]:
        response = client.post("/api/templates", json={"name": name, **fields})
        assert response.status_code == 200, response.text
        return response.json()
    return _create


def component_id_of(template: dict[str, Any], component_type: str) -> str:
    """첫 번째 해당 타입 컴포넌트 id."""
    return next(c["id"] for c in template["components"] if c["type"] == component_type)


@pytest.fixture
def component_id():
    """component_id_of 헬퍼."""
    return component_id_of
