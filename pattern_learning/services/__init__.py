"""
서비스 패키지
- dashboard: 대시보드 조립 + 캐시
- summarizer: 패턴 요약 (LLM)
- shared: Redis 캐시, LLM 클라이언트
"""
