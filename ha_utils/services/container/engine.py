"""
Dockerエンジンアダプター
aiodockerを使ってDockerデーモンのプリミティブ操作を提供する
"""
from contextlib import asynccontextmanager

import aiodocker
import structlog
from aiodocker.exceptions import DockerError

from ha_utils.infrastructure.metrics import (
    get_container_operation_duration,
    get_container_operations,
    measure_time,
)
from ha_utils.services.container.base import ContainerEngineBase
from ha_utils.services.container.models import ContainerHandle, ContainerState
from ha_utils.utils.exceptions import ContainerEngineError, ContainerNotFoundError

logger = structlog.get_logger(__name__)


def split_image_reference(image_name: str) -> tuple[str, str | None]:
    """
    イメージ参照をリポジトリとタグに分割

    タグ未指定の場合は "latest" を補う（未指定のままだと全タグをpullしてしまう）。
    ダイジェスト指定（@sha256:...）はそのまま返す。
    """
    if "@" in image_name:
        return image_name, None

    # レジストリのポート指定（localhost:5000/img）と区別するため最後のセグメントで判定
    last_segment = image_name.rsplit("/", 1)[-1]
    if ":" in last_segment:
        repo, _, tag = image_name.rpartition(":")
        return repo, tag
    return image_name, "latest"


class DockerContainerEngine(ContainerEngineBase):
    """aiodocker によるコンテナエンジンアダプター"""

    def __init__(self, docker: aiodocker.Docker) -> None:
        self.docker = docker

    @classmethod
    def from_url(cls, url: str | None) -> "DockerContainerEngine":
        """接続先URLからアダプターを生成（Noneなら環境変数から解決）"""
        return cls(aiodocker.Docker(url=url))

    @asynccontextmanager
    async def _engine_call(self, operation: str, target: str, container_op: bool = True):
        """
        エンジン呼び出しのエラー変換とメトリクス記録

        container_op=True の場合、404 は ContainerNotFoundError に変換する。
        """
        try:
            with measure_time(get_container_operation_duration(), operation=operation):
                yield
        except DockerError as e:
            message = str(e.message)
            get_container_operations().inc(operation=operation, status="error")
            logger.error(
                "コンテナエンジン操作エラー",
                operation=operation,
                target=target,
                status=e.status,
                error=message,
            )
            if container_op and e.status == 404:
                raise ContainerNotFoundError(target, engine_message=message) from e
            raise ContainerEngineError(operation, target, message, status=e.status) from e
        get_container_operations().inc(operation=operation, status="success")

    async def pull_image(self, image_name: str) -> None:
        """イメージをpullし、進捗をログに流す"""
        repo, tag = split_image_reference(image_name)
        logger.info("イメージpull開始", image=image_name)

        async with self._engine_call("pull", image_name, container_op=False):
            async for progress in self.docker.images.pull(repo, tag=tag, stream=True):
                if "error" in progress:
                    raise DockerError(500, str(progress["error"]))
                logger.debug(
                    "イメージpull進捗",
                    image=image_name,
                    status=progress.get("status"),
                    progress=progress.get("progress"),
                    layer=progress.get("id"),
                )

        logger.info("イメージpull完了", image=image_name)

    async def create_container(self, name: str, config: dict) -> str:
        async with self._engine_call("create", name, container_op=False):
            container = await self.docker.containers.create(config=config, name=name)
        return container.id

    async def start_container(self, container: str) -> None:
        async with self._engine_call("start", container):
            await self.docker.containers.container(container).start()

    async def stop_container(self, container: str, timeout: int | None = None) -> None:
        """
        コンテナを停止

        起動していないコンテナにはエンジンが 304 を返すだけで例外にならないため、
        事前に状態を確認して 304 のエンジンエラーとして送出する。
        """
        params = {} if timeout is None else {"t": timeout}
        async with self._engine_call("stop", container):
            target = self.docker.containers.container(container)
            handle = ContainerHandle.from_inspect(await target.show())
            if handle.state != ContainerState.RUNNING:
                raise DockerError(
                    304, f"container {container} is not running (status: {handle.status})"
                )
            await target.stop(**params)

    async def remove_container(
        self, container: str, force: bool = True, remove_volumes: bool = True
    ) -> None:
        async with self._engine_call("remove", container):
            await self.docker.containers.container(container).delete(
                force=force, v=remove_volumes
            )

    async def inspect_container(self, container: str) -> ContainerHandle:
        async with self._engine_call("inspect", container):
            info = await self.docker.containers.container(container).show()
        return ContainerHandle.from_inspect(info)

    async def list_containers(self) -> list[str]:
        async with self._engine_call("list", "*", container_op=False):
            containers = await self.docker.containers.list()
        return [c.id for c in containers]

    async def ping(self) -> bool:
        try:
            await self.docker.version()
            return True
        except (DockerError, OSError) as e:
            logger.warning("Dockerエンジン疎通確認失敗", error=str(e))
            return False

    async def close(self) -> None:
        await self.docker.close()
