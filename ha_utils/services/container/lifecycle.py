"""
コンテナライフサイクル管理
エンジンのプリミティブを組み合わせ、名前付きコンテナの起動・停止・参照を担当
"""
import structlog

from ha_utils.services.container.base import ContainerEngineBase
from ha_utils.services.container.config import get_container_create_config
from ha_utils.services.container.models import (
    ContainerHandle,
    ContainerProfile,
    ContainerSettings,
)
from ha_utils.utils.exceptions import AppError, ValidationError

logger = structlog.get_logger(__name__)


class ContainerLifecycleController:
    """名前付きコンテナ1つの作成から破棄までを管理

    コンテナ名単位の排他制御は行わない。同名コンテナへの並行操作は
    エンジン側の直列化（名前重複による作成失敗など）に委ねる。
    """

    def __init__(
        self,
        engine: ContainerEngineBase,
        profile: ContainerProfile,
        stop_timeout: int | None = None,
        cleanup_on_start_failure: bool = True,
    ) -> None:
        self.engine = engine
        self.profile = profile
        self.stop_timeout = stop_timeout
        self.cleanup_on_start_failure = cleanup_on_start_failure

    async def start_named(self, settings: ContainerSettings) -> str:
        """
        イメージをpullしてコンテナを作成・起動

        Args:
            settings: イメージ名・コンテナ名・環境変数

        Returns:
            エンジンが割り当てたコンテナID
        """
        if not settings.container_name:
            raise ValidationError("container_name", "コンテナ名が指定されていません")
        if not settings.image_name:
            raise ValidationError("image_name", "イメージ名が指定されていません")

        log = logger.bind(
            container_name=settings.container_name,
            image=settings.image_name,
        )

        # pull失敗時は作成前に中断
        await self.engine.pull_image(settings.image_name)

        config = get_container_create_config(settings, self.profile)

        log.info("コンテナ作成中", port=self.profile.port_key)
        container_id = await self.engine.create_container(settings.container_name, config)

        try:
            await self.engine.start_container(container_id)
        except AppError:
            log.error("コンテナ起動失敗", container_id=container_id)
            if self.cleanup_on_start_failure:
                await self._discard_unstarted(container_id)
            raise

        log.info("コンテナ起動完了", container_id=container_id)
        return container_id

    async def _discard_unstarted(self, container_id: str) -> None:
        """起動に失敗した作成済みコンテナを削除（削除失敗は起動エラーを優先して記録のみ）"""
        try:
            await self.engine.remove_container(container_id, force=True, remove_volumes=True)
            logger.info("未起動コンテナを削除", container_id=container_id)
        except AppError as e:
            logger.error(
                "未起動コンテナの削除に失敗（手動クリーンアップが必要）",
                container_id=container_id,
                error=e.message,
            )

    async def stop_named(self, container_name: str) -> None:
        """
        コンテナを停止し、ボリュームごと強制削除

        停止に失敗した場合は削除を試みずにエラーを送出する。
        """
        logger.info("コンテナ停止中", container_name=container_name)
        await self.engine.stop_container(container_name, timeout=self.stop_timeout)

        await self.engine.remove_container(container_name, force=True, remove_volumes=True)
        logger.info("コンテナ停止・削除完了", container_name=container_name)

    async def inspect(self, container: str) -> ContainerHandle:
        """コンテナ情報を取得（IDまたは名前）"""
        return await self.engine.inspect_container(container)

    async def list_ids(self) -> list[str]:
        """起動中コンテナのID一覧"""
        return await self.engine.list_containers()
