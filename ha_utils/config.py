"""
アプリケーション設定
環境変数からの読み込みと設定値の管理を行う
"""
import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定クラス"""

    # ============================================
    # アプリケーション設定
    # ============================================
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8080
    log_level: str = "INFO"

    # ============================================
    # Docker設定
    # ============================================
    # 空文字の場合は aiodocker が DOCKER_HOST、次に既定のソケットから解決する
    docker_socket_path: str = ""

    # ============================================
    # コンテナ設定（StartContainerで使用する固定プロファイル）
    # ============================================
    container_image: str = "homeassistant/home-assistant"
    container_env: str = "TZ=America/Chicago"  # カンマ区切りの KEY=VALUE

    container_port: int = 8123
    container_protocol: str = "tcp"
    container_host_ip: str = "0.0.0.0"
    container_host_port: int = 8123
    container_restart_policy: str = "unless-stopped"
    container_log_driver: str = "json-file"
    container_network_name: str = "bridge"
    container_gateway: str = "gatewayname"

    # 停止タイムアウト（秒）。未設定時はエンジンのデフォルト
    container_stop_timeout: int | None = None
    # 作成後に起動が失敗したコンテナを強制削除する
    container_cleanup_on_start_failure: bool = True

    # ============================================
    # メトリクス設定
    # ============================================
    metrics_enabled: bool = True

    # ============================================
    # Uvicorn設定
    # ============================================
    uvicorn_timeout_keep_alive: int = 65

    # ============================================
    # バリデーション
    # ============================================

    @field_validator("container_env")
    @classmethod
    def validate_container_env(cls, v: str) -> str:
        """環境変数リストのバリデーション（KEY=VALUE形式）"""
        for entry in v.split(","):
            entry = entry.strip()
            if not entry:
                continue
            key, sep, _ = entry.partition("=")
            if not sep or not key:
                raise ValueError(f"KEY=VALUE形式ではありません: {entry}")
        return v

    @field_validator("container_port", "container_host_port", "app_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """ポート番号のバリデーション"""
        if not 0 < v < 65536:
            raise ValueError(f"ポート番号が範囲外です: {v}")
        return v

    @field_validator("container_protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        """プロトコルのバリデーション"""
        v = v.lower()
        if v not in ("tcp", "udp", "sctp"):
            raise ValueError(f"未対応のプロトコルです: {v}")
        return v

    @property
    def container_env_list(self) -> list[str]:
        """コンテナ環境変数をリストとして取得"""
        return [e.strip() for e in self.container_env.split(",") if e.strip()]

    @property
    def resolved_docker_url(self) -> str | None:
        """aiodockerに渡す接続先（未設定時はNone）"""
        return self.docker_socket_path or None

    @property
    def is_development(self) -> bool:
        """開発環境かどうか"""
        return self.app_env == "development"

    @property
    def log_level_int(self) -> int:
        """ログレベルを数値で取得"""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """設定インスタンスを取得（キャッシュ付き）"""
    return Settings()


def clear_settings_cache() -> None:
    """設定キャッシュをクリア（テスト用）"""
    get_settings.cache_clear()
