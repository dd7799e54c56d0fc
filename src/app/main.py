"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app

환경 변수 (.env 허용):
- PROMPT_SYNC_REMOTE_URL: 지정 시 remote.backend=http + remote.base_url
- PROMPT_SYNC_OWNER: owner.default_id
"""

import copy
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

# Routes
from src.app.routes import components, kv, templates
from src.app.services.workspace import Workspace
from src.storage.remote import InMemoryKVStore

PROJECT_ROOT = Path(__file__).parent.parent.parent

ENV_REMOTE_URL = "PROMPT_SYNC_REMOTE_URL"
ENV_OWNER = "PROMPT_SYNC_OWNER"

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def apply_env_overrides(config: dict) -> dict:
    """
    환경 변수로 설정 덮어쓰기 (.env 먼저 로드).

    입력 dict는 건드리지 않고 복사본 반환.
    """
    load_dotenv()
    result = copy.deepcopy(config)

    remote_url = os.environ.get(ENV_REMOTE_URL)
    if remote_url:
        remote = result.setdefault("remote", {})
        remote["backend"] = "http"
        remote["base_url"] = remote_url

    owner = os.environ.get(ENV_OWNER)
    if owner:
        result.setdefault("owner", {})["default_id"] = owner

    return result


# =============================================================================
# App Factory
# =============================================================================


def create_app(config: dict | None = None) -> FastAPI:
    """
    앱 생성.

    Args:
        config: 설정 dict (None이면 default.yaml + 환경 변수)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        애플리케이션 생명주기 관리.

        시작 시: 설정 로드, KV 서버 저장소 + workspace 생성
        종료 시: remote 클라이언트 정리
        """
        # Startup
        app.state.config = config if config is not None else apply_env_overrides(load_config())
        app.state.kv_store = InMemoryKVStore()
        app.state.workspace = Workspace.from_config(
            app.state.config,
            app.state.kv_store,
            PROJECT_ROOT,
        )

        yield

        # Shutdown
        app.state.workspace.close()

    app = FastAPI(
        title="Prompt Template Sync",
        description="프롬프트 템플릿 조립 + 로컬/원격 동기화",
        version="0.1.0",
        lifespan=lifespan,
    )

    # API 라우트
    app.include_router(
        templates.api_router, prefix="/api/templates", tags=["Templates API"]
    )
    app.include_router(
        components.api_router, prefix="/api/components", tags=["Components API"]
    )
    app.include_router(kv.api_router, prefix="/api/kv", tags=["KV API"])

    @app.get("/")
    async def root() -> dict[str, Any]:
        """엔드포인트 안내."""
        return {
            "message": "Prompt Template Sync",
            "endpoints": {
                "templates": "/api/templates",
                "components": "/api/components",
                "kv": "/api/kv",
            },
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    return app


# =============================================================================
# App Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
