"""
Domain Constants: 엔진 전역 상수.

기본 컴포넌트 구성, 키 네임스페이스, 저장소 경로 등
시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Seed Components (템플릿 생성 시 기본 구성)
# =============================================================================
# 순서 고정: prefix → context → question_slot → constraint → suffix

DEFAULT_COMPONENT_TYPES = (
    "prefix",
    "context",
    "question_slot",
    "constraint",
    "suffix",
)

# 삭제 시 최소 1개 유지
REQUIRED_COMPONENT_TYPES = ("question_slot",)

# 타입별 편집기 안내 문구 (출력에는 포함되지 않음)
COMPONENT_PLACEHOLDERS = {
    "prefix": "You need to act as the following role before reading the question:",
    "context": "Background information for the question:",
    "question_slot": "Type your question here...",
    "constraint": "Constraints the answer must respect:",
    "example": "Examples for the question:",
    "suffix": "Requirements to remember before answering:",
}

# question_slot의 seed 기본 내용. 미리보기에서 이 값은 힌트로 대체
QUESTION_SLOT_DEFAULT_CONTENT = "[The user's question will be inserted here]"
QUESTION_SLOT_PREVIEW_HINT = "[Enter a sample question to preview]"

# =============================================================================
# Template Defaults
# =============================================================================

DEFAULT_CATEGORY = "productivity"
DEFAULT_TEMPLATE_VERSION = "1.0.0"
DEFAULT_OWNER_ID = "anonymous"

# 구성 요소 사이 문단 구분
PARAGRAPH_BREAK = "\n\n"

# =============================================================================
# Remote Key Scheme
# =============================================================================
# private: template:<owner>:<id>
# public:  public:template:<id>

TEMPLATE_KEY_PREFIX = "template"
PUBLIC_KEY_PREFIX = "public:template"
KEY_SEPARATOR = ":"

REMOTE_LIST_LIMIT = 100

# =============================================================================
# Local Store Layout
# =============================================================================
# <data_dir>/<owner>/
# ├── templates/<id>.json
# ├── components/<id>.json
# └── .locks/

LOCAL_TEMPLATES_DIR = "templates"
LOCAL_COMPONENTS_DIR = "components"
LOCAL_LOCKS_DIR = ".locks"
LOCAL_LOCK_TIMEOUT = 10.0

# owner 디렉터리명: "{접두어}~{sha256 앞부분}"
OWNER_DIR_PREFIX_LENGTH = 32
OWNER_DIR_DIGEST_LENGTH = 16

# Workspace가 메모리에 유지하는 owner별 SyncService 수 (LRU)
WORKSPACE_MAX_CACHED_SERVICES = 64

# =============================================================================
# ID Prefixes
# =============================================================================

TEMPLATE_ID_PREFIX = "tpl_"
COMPONENT_ID_PREFIX = "cmp_"
RUN_ID_PREFIX = "SYNC-"
