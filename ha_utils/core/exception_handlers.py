"""
例外ハンドラー

ドメイン例外を統一エラーエンベロープのJSONレスポンスへ変換する。
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ha_utils.infrastructure.metrics import get_error_counter
from ha_utils.schemas.error import ErrorCodes, create_error_response
from ha_utils.utils.error_handler import exception_to_http_status
from ha_utils.utils.exceptions import (
    AppError,
    ContainerEngineError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def _error_json(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list[dict] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(
            code=code,
            message=message,
            details=details,
            request_id=getattr(request.state, "request_id", None),
        ),
    )


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    get_error_counter().inc(type="not_found", code=ErrorCodes.NOT_FOUND)
    return _error_json(
        request,
        status.HTTP_404_NOT_FOUND,
        ErrorCodes.NOT_FOUND,
        exc.message,
        [{"field": exc.resource_type, "message": exc.message}],
    )


async def handle_validation(request: Request, exc: ValidationError) -> JSONResponse:
    """ドメインのバリデーション違反（Base64デコード失敗を含む）"""
    get_error_counter().inc(type="validation", code=exc.error_code)
    return _error_json(
        request,
        status.HTTP_400_BAD_REQUEST,
        exc.error_code,
        exc.message,
        [{"field": exc.field, "message": exc.message}],
    )


async def handle_container_engine(
    request: Request, exc: ContainerEngineError
) -> JSONResponse:
    """Dockerエンジン側の失敗は上流エラーとして502で返す"""
    get_error_counter().inc(type="container_engine", code=exc.error_code)
    logger.warning(
        "コンテナエンジンエラー",
        operation=exc.operation,
        target=exc.target,
        engine_status=exc.status,
    )
    engine_message = exc.details["engine_message"]
    return _error_json(
        request,
        status.HTTP_502_BAD_GATEWAY,
        exc.error_code,
        exc.message,
        [{"field": "engine_message", "message": engine_message}],
    )


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    get_error_counter().inc(type="app", code=exc.error_code)
    logger.error("アプリケーションエラー", error_code=exc.error_code, error=exc.message)
    return _error_json(
        request, exception_to_http_status(exc), exc.error_code, exc.message
    )


def _describe_request_errors(exc: RequestValidationError) -> list[dict]:
    described = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        described.append(
            {
                "field": ".".join(map(str, loc)) or "unknown",
                "message": error.get("msg", "Invalid value"),
                "code": error.get("type"),
            }
        )
    return described


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """リクエストボディ・パラメータのスキーマ違反は422"""
    get_error_counter().inc(type="request_validation", code=ErrorCodes.VALIDATION_ERROR)
    details = _describe_request_errors(exc)
    logger.warning("入力スキーマ違反", errors=details, path=request.url.path)
    return _error_json(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCodes.VALIDATION_ERROR,
        "入力データが不正です",
        details,
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    get_error_counter().inc(type="internal", code=ErrorCodes.INTERNAL_ERROR)
    logger.error(
        "未処理の例外",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return _error_json(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCodes.INTERNAL_ERROR,
        "内部サーバーエラーが発生しました",
    )


# Starlette は例外クラスのMROで最も近いハンドラーを選ぶため登録順は問わない
EXCEPTION_HANDLERS = {
    NotFoundError: handle_not_found,
    ValidationError: handle_validation,
    ContainerEngineError: handle_container_engine,
    AppError: handle_app_error,
    RequestValidationError: handle_request_validation,
    Exception: handle_unexpected,
}


def register_exception_handlers(app: FastAPI) -> None:
    """全例外ハンドラーをアプリケーションに登録"""
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
