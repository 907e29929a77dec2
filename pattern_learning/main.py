"""
Pattern Learning Engine - Main Application
FastAPI 메인 앱
"""

# 환경변수 로드 (가장 먼저 실행)
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from pattern_learning.core.config import settings

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리

    Startup: 캐시 연결 확인
    Shutdown: 캐시 연결 종료
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")

    from pattern_learning.services.shared.cache import get_cache_client
    cache = get_cache_client()
    if cache.available:
        logger.info("Redis cache available")
    else:
        logger.warning("Redis cache unavailable (continuing without cache)")

    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set, pattern summaries use the data-only fallback")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    from pattern_learning.api.v1.learning import shutdown_dashboard_service
    shutdown_dashboard_service()
    cache.close()


app = FastAPI(
    title=settings.APP_NAME,
    description="게시물 성과 패턴 학습 + 배지 엔진",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)


# ============================================
# CORS 설정
# ============================================

ALLOWED_ORIGINS = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """요청/응답 로깅"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        f"{request.method} {request.url.path} | "
        f"Status: {response.status_code} | "
        f"Time: {process_time:.3f}s"
    )
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 에러 핸들러 (스택 트레이스는 로그에만)"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "Unexpected error while processing the request",
            "path": request.url.path,
        }
    )


# ============================================
# API 라우터 등록
# ============================================
from pattern_learning.api.v1 import learning

app.include_router(
    learning.router,
    prefix="/api/v1",
    tags=["Learning"]
)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pattern_learning.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.APP_RELOAD,
    )
