"""
サービス層
コンテナライフサイクル制御とファイル同期の実装
"""
