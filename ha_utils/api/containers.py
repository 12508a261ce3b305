"""
コンテナAPI
名前付きコンテナの起動・停止・参照
"""
import structlog
from fastapi import APIRouter, Depends

from ha_utils.api.dependencies import get_container_controller
from ha_utils.schemas.container import (
    ContainerListResponse,
    ContainerRequest,
    ContainerResponse,
)
from ha_utils.services.container.config import default_container_settings
from ha_utils.services.container.lifecycle import ContainerLifecycleController
from ha_utils.utils.exceptions import ContainerNotFoundError

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post(
    "/start",
    response_model=ContainerResponse,
    summary="コンテナ起動",
)
async def start_container(
    request: ContainerRequest,
    controller: ContainerLifecycleController = Depends(get_container_controller),
):
    """
    設定済みのイメージ・環境変数・ポートプロファイルでコンテナを起動します。

    呼び出し元が指定できるのはコンテナ名のみです。
    """
    settings = default_container_settings(request.container_name)
    container_id = await controller.start_named(settings)
    handle = await controller.inspect(container_id)

    return ContainerResponse(container_id=container_id, status=handle.status)


@router.post(
    "/stop",
    response_model=ContainerResponse,
    summary="コンテナ停止・削除",
)
async def stop_container(
    request: ContainerRequest,
    controller: ContainerLifecycleController = Depends(get_container_controller),
):
    """
    コンテナを停止し、ボリュームごと削除します。

    存在しない・起動していないコンテナの停止はエンジンのエラーをそのまま返します。
    """
    await controller.stop_named(request.container_name)
    return ContainerResponse(container_id="", status="stopped")


@router.post(
    "/get",
    response_model=ContainerResponse,
    summary="コンテナ情報取得",
)
async def get_container(
    request: ContainerRequest,
    controller: ContainerLifecycleController = Depends(get_container_controller),
):
    """
    コンテナのIDと状態を返します。

    コンテナが存在しない場合はエラーではなく空のレスポンスを返します。
    """
    try:
        handle = await controller.inspect(request.container_name)
    except ContainerNotFoundError:
        logger.info("コンテナ未検出（空レスポンス）", container_name=request.container_name)
        return ContainerResponse()

    return ContainerResponse(container_id=handle.id, status=handle.status)


@router.get(
    "",
    response_model=ContainerListResponse,
    summary="起動中コンテナ一覧",
)
async def list_containers(
    controller: ContainerLifecycleController = Depends(get_container_controller),
):
    """エンジン上で起動中のコンテナIDを返します。"""
    return ContainerListResponse(container_ids=await controller.list_ids())
