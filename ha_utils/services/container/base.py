"""
コンテナエンジンアダプターの抽象基底クラス
Docker実装とテスト用フェイクの共通インターフェースを定義
"""
from abc import ABC, abstractmethod

from ha_utils.services.container.models import ContainerHandle


class ContainerEngineBase(ABC):
    """コンテナエンジンアダプターの抽象基底クラス

    全操作は失敗しうる。コンテナ未検出は ContainerNotFoundError、
    それ以外のエンジンエラーは ContainerEngineError として送出する。
    """

    @abstractmethod
    async def pull_image(self, image_name: str) -> None:
        """イメージをレジストリからpull"""

    @abstractmethod
    async def create_container(self, name: str, config: dict) -> str:
        """
        コンテナを作成

        Args:
            name: コンテナ名
            config: Docker API形式の作成設定

        Returns:
            エンジンが割り当てたコンテナID
        """

    @abstractmethod
    async def start_container(self, container: str) -> None:
        """コンテナを起動（IDまたは名前）"""

    @abstractmethod
    async def stop_container(self, container: str, timeout: int | None = None) -> None:
        """
        コンテナを停止

        Args:
            container: IDまたは名前
            timeout: 停止までの猶予秒数（Noneならエンジンのデフォルト）
        """

    @abstractmethod
    async def remove_container(
        self, container: str, force: bool = True, remove_volumes: bool = True
    ) -> None:
        """コンテナを削除"""

    @abstractmethod
    async def inspect_container(self, container: str) -> ContainerHandle:
        """コンテナ情報を取得（毎回エンジンに問い合わせる）"""

    @abstractmethod
    async def list_containers(self) -> list[str]:
        """起動中コンテナのID一覧を取得"""

    @abstractmethod
    async def ping(self) -> bool:
        """エンジンへの疎通確認"""

    @abstractmethod
    async def close(self) -> None:
        """接続をクローズ"""
