"""
API共通依存関係
アプリケーション状態からコントローラー・同期エンジンを取得する
"""
from starlette.requests import HTTPConnection

from ha_utils.services.container.lifecycle import ContainerLifecycleController
from ha_utils.services.filediff.sync import FileSyncEngine


def get_container_controller(conn: HTTPConnection) -> ContainerLifecycleController:
    """アプリケーション状態からコンテナコントローラーを取得"""
    return conn.app.state.container_controller


def get_file_sync_engine(conn: HTTPConnection) -> FileSyncEngine:
    """アプリケーション状態からファイル同期エンジンを取得"""
    return conn.app.state.file_sync
