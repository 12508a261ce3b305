"""
コアモジュール
アプリケーションファクトリ・ライフサイクル・例外ハンドラー
"""
from ha_utils.core.app_factory import create_app

__all__ = ["create_app"]
