"""
コンテナ関連データモデル
"""
from dataclasses import dataclass, field
from enum import Enum


class ContainerState(str, Enum):
    """コンテナの状態

    absent → created → running → exited → removed
    （created / running / exited からの強制削除も可）
    """

    ABSENT = "absent"  # 未作成
    CREATED = "created"  # 作成済み、未起動
    RUNNING = "running"  # 起動中
    EXITED = "exited"  # 停止済み
    REMOVED = "removed"  # 削除済み

    @classmethod
    def from_engine_status(cls, status: str) -> "ContainerState":
        """エンジンが返すステータス文字列を状態に変換"""
        return _ENGINE_STATUS_MAP.get((status or "").lower(), cls.ABSENT)

    def can_transition_to(self, target: "ContainerState") -> bool:
        """遷移可能かどうか"""
        return target in _TRANSITIONS[self]


_ENGINE_STATUS_MAP = {
    "created": ContainerState.CREATED,
    "running": ContainerState.RUNNING,
    "restarting": ContainerState.RUNNING,
    "paused": ContainerState.RUNNING,
    "exited": ContainerState.EXITED,
    "stopped": ContainerState.EXITED,
    "dead": ContainerState.EXITED,
    "removing": ContainerState.REMOVED,
}

_TRANSITIONS = {
    ContainerState.ABSENT: {ContainerState.CREATED},
    ContainerState.CREATED: {ContainerState.RUNNING, ContainerState.REMOVED},
    ContainerState.RUNNING: {ContainerState.EXITED, ContainerState.REMOVED},
    ContainerState.EXITED: {ContainerState.RUNNING, ContainerState.REMOVED},
    ContainerState.REMOVED: set(),
}


@dataclass(frozen=True)
class ContainerSettings:
    """作成するコンテナの指定（1回の呼び出しの間は不変）"""

    image_name: str
    container_name: str
    env_vars: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ContainerHandle:
    """エンジンが報告するコンテナ情報（キャッシュしない）"""

    id: str
    status: str

    @property
    def state(self) -> ContainerState:
        return ContainerState.from_engine_status(self.status)

    @classmethod
    def from_inspect(cls, info: dict) -> "ContainerHandle":
        """Docker inspect レスポンスから生成"""
        return cls(
            id=info.get("Id", ""),
            status=(info.get("State") or {}).get("Status", ""),
        )


@dataclass(frozen=True)
class ContainerProfile:
    """ポート・ネットワーク・再起動ポリシーの固定プロファイル"""

    container_port: int = 8123
    protocol: str = "tcp"
    host_ip: str = "0.0.0.0"
    host_port: int = 8123
    restart_policy: str = "unless-stopped"
    log_driver: str = "json-file"
    network_name: str = "bridge"
    gateway: str = "gatewayname"

    @property
    def port_key(self) -> str:
        """Docker APIのポート表記（例: 8123/tcp）"""
        return f"{self.container_port}/{self.protocol}"
