"""
App layer: 명령 API 서버 (FastAPI).

역할:
- 템플릿 편집/조립/동기화 명령을 HTTP로 노출
- remote KV API (/api/kv) 제공
- 드래그 재정렬 입력 해석 (drag.py)
- ⚠️ 불변식/동기화 로직 없음 (templates, sync에 위임)
"""
