"""
ユーティリティモジュール
共通ユーティリティの公開
"""
from ha_utils.utils.exceptions import (
    AppError,
    ContainerEngineError,
    ContainerNotFoundError,
    ContentDecodeError,
    FileNotFoundOnHostError,
    FileOperationError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "AppError",
    "ContainerEngineError",
    "ContainerNotFoundError",
    "ContentDecodeError",
    "FileNotFoundOnHostError",
    "FileOperationError",
    "NotFoundError",
    "ValidationError",
]
