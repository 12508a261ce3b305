"""
ha-utils
コンテナライフサイクル制御と設定ファイル同期を提供するサービス
"""
__version__ = "0.1.0"
