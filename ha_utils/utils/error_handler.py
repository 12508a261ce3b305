"""
エラーハンドリングユーティリティ
API層での共通エラー処理
"""
from fastapi import status
from pydantic import ValidationError as PydanticValidationError

from ha_utils.utils.exceptions import (
    AppError,
    ContainerEngineError,
    FileOperationError,
    NotFoundError,
    ValidationError,
)


def exception_to_http_status(exception: Exception) -> int:
    """例外をHTTPステータスコードに変換"""
    status_mapping = {
        NotFoundError: status.HTTP_404_NOT_FOUND,
        ValidationError: status.HTTP_400_BAD_REQUEST,
        ContainerEngineError: status.HTTP_502_BAD_GATEWAY,
        FileOperationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
        AppError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    for exc_type, http_status in status_mapping.items():
        if isinstance(exception, exc_type):
            return http_status

    return status.HTTP_500_INTERNAL_SERVER_ERROR


def exception_to_ws_close_code(exception: Exception) -> int:
    """ストリームを中断した例外をWebSocketクローズコードに変換"""
    if isinstance(exception, (ValidationError, PydanticValidationError, ValueError)):
        return status.WS_1007_INVALID_FRAME_PAYLOAD_DATA
    return status.WS_1011_INTERNAL_ERROR


def error_code_of(exception: Exception) -> str:
    """例外からエラーコードを取得"""
    if isinstance(exception, AppError):
        return exception.error_code
    if isinstance(exception, (PydanticValidationError, ValueError)):
        return "VALIDATION_ERROR"
    return "INTERNAL_ERROR"
