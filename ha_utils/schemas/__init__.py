"""
Pydanticスキーマ
APIリクエスト/レスポンスのバリデーションとシリアライズ
"""
from ha_utils.schemas.container import (
    ContainerListResponse,
    ContainerRequest,
    ContainerResponse,
)
from ha_utils.schemas.error import ErrorCodes, ErrorResponse, create_error_response
from ha_utils.schemas.file import (
    ComparisonResult,
    FileRecord,
    ProcessedResult,
    StreamControl,
)

__all__ = [
    "ComparisonResult",
    "ContainerListResponse",
    "ContainerRequest",
    "ContainerResponse",
    "ErrorCodes",
    "ErrorResponse",
    "FileRecord",
    "ProcessedResult",
    "StreamControl",
    "create_error_response",
]
