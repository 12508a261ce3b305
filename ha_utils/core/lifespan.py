"""
アプリケーションライフサイクル管理
起動時・終了時の処理を定義
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from ha_utils import __version__
from ha_utils.config import get_settings
from ha_utils.services.container.config import profile_from_settings
from ha_utils.services.container.engine import DockerContainerEngine
from ha_utils.services.container.lifecycle import ContainerLifecycleController
from ha_utils.services.filediff.sync import FileSyncEngine

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    アプリケーションのライフサイクル管理

    構成:
      - aiodocker → DockerContainerEngine
      - ContainerLifecycleController（名前付きコンテナの起動・停止）
      - FileSyncEngine（ファイル比較・置換）
    """
    settings = get_settings()

    logger.info(
        "アプリケーション起動中...",
        version=__version__,
        environment=settings.app_env,
    )

    engine = DockerContainerEngine.from_url(settings.resolved_docker_url)
    logger.info(
        "Dockerクライアント初期化完了", docker_url=settings.resolved_docker_url or "auto"
    )

    profile = profile_from_settings(settings)
    controller = ContainerLifecycleController(
        engine,
        profile,
        stop_timeout=settings.container_stop_timeout,
        cleanup_on_start_failure=settings.container_cleanup_on_start_failure,
    )

    # アプリケーション状態に保存（APIエンドポイントから参照）
    app.state.container_engine = engine
    app.state.container_controller = controller
    app.state.file_sync = FileSyncEngine()

    # 起動時に疎通できなくても起動は継続（readinessで検知）
    if not await engine.ping():
        logger.warning(
            "Dockerエンジンに接続できません",
            docker_url=settings.resolved_docker_url or "auto",
        )

    logger.info(
        "アプリケーション起動完了",
        environment=settings.app_env,
        port=settings.app_port,
        container_image=settings.container_image,
        container_port=profile.port_key,
    )

    yield

    # ---- 終了時 ----
    logger.info("アプリケーション終了中...")

    try:
        await engine.close()
        logger.info("Dockerクライアントクローズ完了")
    except Exception as e:
        logger.error("Dockerクライアントクローズエラー", error=str(e))

    logger.info("アプリケーション終了完了")
