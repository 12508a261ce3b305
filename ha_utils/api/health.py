"""
ヘルスチェックエンドポイント
Dockerエンジンへの疎通を含むプロセス・準備状態の確認
"""
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from ha_utils import __version__
from ha_utils.config import get_settings

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    """ヘルスステータス"""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """コンポーネントヘルス"""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


class HealthResponse(BaseModel):
    """ヘルスチェックレスポンス"""
    status: HealthStatus
    version: str
    environment: str
    timestamp: str
    checks: dict[str, ComponentHealth]


router = APIRouter(tags=["ヘルスチェック"])


async def check_container_engine_health(request: Request) -> ComponentHealth:
    """コンテナエンジン（Docker）ヘルスチェック"""
    engine = getattr(request.app.state, "container_engine", None)
    if engine is None:
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message="コンテナエンジン未初期化",
        )

    start = time.perf_counter()
    healthy = await engine.ping()
    latency = (time.perf_counter() - start) * 1000

    if healthy:
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            latency_ms=round(latency, 2),
        )
    return ComponentHealth(
        status=HealthStatus.UNHEALTHY,
        message="Dockerデーモンに接続できません",
        latency_ms=round(latency, 2),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="詳細ヘルスチェック",
)
async def health_check(request: Request) -> HealthResponse:
    """コンテナエンジンの接続状態を確認します。"""
    checks = {"container_engine": await check_container_engine_health(request)}
    overall = (
        HealthStatus.HEALTHY
        if all(c.status == HealthStatus.HEALTHY for c in checks.values())
        else HealthStatus.UNHEALTHY
    )

    return HealthResponse(
        status=overall,
        version=__version__,
        environment=get_settings().app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        checks=checks,
    )


@router.get(
    "/health/live",
    summary="Liveness チェック",
)
async def liveness_check():
    """
    Liveness チェック

    常に200を返します（プロセスが動作していれば成功）。
    """
    return {"status": "alive"}


@router.get(
    "/health/ready",
    summary="Readiness チェック",
)
async def readiness_check(request: Request):
    """
    Readiness チェック

    Dockerデーモンに接続できる場合に200を返します。
    """
    engine_health = await check_container_engine_health(request)
    if engine_health.status != HealthStatus.HEALTHY:
        logger.error("Readiness check failed", reason=engine_health.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready",
        )
    return {"status": "ready"}
