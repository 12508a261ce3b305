"""
アプリケーションファクトリ

ログ設定・ミドルウェア・例外ハンドラー・ルーターを組み立てる。
"""
import logging
import sys

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.responses import PlainTextResponse

from ha_utils import __version__
from ha_utils.api import api_router
from ha_utils.api.health import router as health_router
from ha_utils.config import Settings, get_settings
from ha_utils.core.exception_handlers import register_exception_handlers
from ha_utils.core.lifespan import lifespan
from ha_utils.infrastructure.metrics import get_metrics_registry
from ha_utils.middleware.tracing import TracingMiddleware

SERVICE_TITLE = "Home Assistant ユーティリティ"

SERVICE_DESCRIPTION = """
Home Assistant の実行コンテナと設定ファイルをホスト側から管理します。

- `/api/containers`: 固定プロファイルでのコンテナ起動・停止と状態参照
- `/api/files`: Base64で受け取ったファイル内容とホスト上のファイルの比較・置換
- `/api/files/*/stream`: WebSocketで複数ファイルを受信順に処理
"""

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _configure_logging(settings: Settings) -> None:
    """標準loggingを出力先にしてstructlogをJSON出力で構成"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.log_level_int,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _service_router(settings: Settings) -> APIRouter:
    """ルート情報とメトリクス出力のエンドポイント"""
    router = APIRouter()
    docs_url = "/docs" if settings.is_development else None

    @router.get("/", tags=["ルート"])
    async def service_info():
        return {"name": SERVICE_TITLE, "version": __version__, "docs_url": docs_url}

    @router.get("/metrics", tags=["監視"], include_in_schema=settings.is_development)
    async def metrics():
        """Prometheusテキスト形式のメトリクス"""
        if not settings.metrics_enabled:
            return PlainTextResponse("Metrics disabled", status_code=404)
        return PlainTextResponse(
            get_metrics_registry().export_prometheus(),
            media_type=PROMETHEUS_CONTENT_TYPE,
        )

    return router


def create_app() -> FastAPI:
    """設定を読み込み、FastAPIアプリケーションを組み立てて返す"""
    settings = get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title=SERVICE_TITLE,
        description=SERVICE_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.add_middleware(TracingMiddleware, log_requests=True)
    register_exception_handlers(app)

    app.include_router(_service_router(settings))
    app.include_router(health_router)
    app.include_router(api_router, prefix="/api")
    return app
