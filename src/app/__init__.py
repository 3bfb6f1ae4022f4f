"""
App layer: API 서버 (FastAPI).

역할:
- 세션 쿠키 인증, 역할 기반 권한 확인
- 카탈로그 조회/변경, 인라인 파일 업로드, 다운로드
- ⚠️ 영속 상태 직접 접근 없음 (core.store에 위임)

구성:
- routes/ → HTTP 경계 (요청 파싱, 응답 형태)
- services/ → 도메인 로직 (검증, 가시성, 업로드)
- dependencies.py → app.state 접근 + 세션/권한 헬퍼
"""
