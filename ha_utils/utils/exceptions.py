"""
カスタム例外クラス
アプリケーション全体で使用する例外の定義
"""
from typing import Optional


class AppError(Exception):
    """アプリケーション基底例外"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "APP_ERROR"
        self.details = details or {}


class NotFoundError(AppError):
    """リソースが見つからない例外"""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: Optional[str] = None,
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message=message or f"{resource_type} '{resource_id}' が見つかりません",
            error_code="NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )


class ValidationError(AppError):
    """バリデーションエラー"""

    def __init__(
        self,
        field: str,
        message: str,
        value: Optional[str] = None,
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={
                "field": field,
                "value": value,
            },
        )


class ContainerNotFoundError(NotFoundError):
    """コンテナが見つからない例外"""

    def __init__(self, container: str, engine_message: Optional[str] = None):
        super().__init__(resource_type="container", resource_id=container)
        self.engine_message = engine_message
        if engine_message:
            self.details["engine_message"] = engine_message


class ContainerEngineError(AppError):
    """コンテナエンジン（Docker）操作エラー

    エンジンが返したステータスとメッセージをそのまま保持する。
    """

    def __init__(
        self,
        operation: str,
        target: str,
        message: str,
        status: Optional[int] = None,
    ):
        self.operation = operation
        self.target = target
        self.status = status
        super().__init__(
            message=f"コンテナ操作 '{operation}' に失敗しました ({target}): {message}",
            error_code="CONTAINER_ENGINE_ERROR",
            details={
                "operation": operation,
                "target": target,
                "engine_status": status,
                "engine_message": message,
            },
        )


class ContentDecodeError(ValidationError):
    """Base64デコードエラー"""

    def __init__(self, file_name: str, reason: str):
        super().__init__(
            field="encoded_content",
            message=f"'{file_name}' の内容をBase64としてデコードできません: {reason}",
        )
        self.error_code = "DECODE_ERROR"
        self.details["file_name"] = file_name


class FileNotFoundOnHostError(NotFoundError):
    """比較対象のファイルが存在しない例外"""

    def __init__(self, file_path: str):
        super().__init__(
            resource_type="file",
            resource_id=file_path,
            message=f"ファイル '{file_path}' が見つかりません: no such file or directory",
        )


class FileOperationError(AppError):
    """ファイル操作エラー"""

    def __init__(
        self,
        operation: str,
        file_path: str,
        original_error: Optional[str] = None,
    ):
        self.operation = operation
        self.file_path = file_path
        self.original_error = original_error
        super().__init__(
            message=f"ファイル{operation}に失敗しました: {file_path}",
            error_code="FILE_OPERATION_ERROR",
            details={
                "operation": operation,
                "file_path": file_path,
                "original_error": original_error,
            },
        )
