"""
ファイル同期API
単発の送信・比較と、WebSocketによる双方向ストリーム
"""
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel
from starlette.types import Message

from ha_utils.api.dependencies import get_file_sync_engine
from ha_utils.infrastructure.metrics import get_error_counter
from ha_utils.schemas.error import create_error_response
from ha_utils.schemas.file import (
    ComparisonResult,
    FileRecord,
    ProcessedResult,
    StreamControl,
)
from ha_utils.services.filediff.sync import FileSyncEngine
from ha_utils.utils.error_handler import error_code_of, exception_to_ws_close_code
from ha_utils.utils.exceptions import AppError, ValidationError

router = APIRouter()
logger = structlog.get_logger(__name__)

StreamRunner = Callable[
    [AsyncIterator[FileRecord], Callable[[BaseModel], Awaitable[None]]],
    Awaitable[int],
]


@router.post(
    "/send",
    response_model=ProcessedResult,
    summary="ファイル送信",
)
async def send_file(
    record: FileRecord,
    engine: FileSyncEngine = Depends(get_file_sync_engine),
):
    """
    ファイル内容が異なる場合のみ上書きします。

    - 内容が同一: `processed=false`、`error` は空
    - 上書き成功: `processed=true`、`file_name` にパス
    - 上書き失敗: `processed=false`、`error` にメッセージ
    """
    return await engine.send_file(record)


@router.post(
    "/compare",
    response_model=ComparisonResult,
    summary="ファイル比較",
)
async def compare_file(
    record: FileRecord,
    engine: FileSyncEngine = Depends(get_file_sync_engine),
):
    """ファイル内容を比較します。ファイルが存在しない場合は404を返します。"""
    return await engine.compare_file(record)


@router.websocket("/send/stream")
async def send_files_stream(
    websocket: WebSocket,
    engine: FileSyncEngine = Depends(get_file_sync_engine),
):
    """
    ファイル送信ストリーム

    クライアントは FileRecord をJSONフレームで順に送信し、
    `{"event": "end"}` で入力を終了します。結果は受信順に返されます。
    """
    await _serve_stream(websocket, "send", engine.send_files)


@router.websocket("/compare/stream")
async def compare_files_stream(
    websocket: WebSocket,
    engine: FileSyncEngine = Depends(get_file_sync_engine),
):
    """ファイル比較ストリーム"""
    await _serve_stream(websocket, "compare", engine.compare_files)


class _RecordReceiver:
    """受信フレームを FileRecord として順に読み出す

    終了イベントまたはクライアント切断で入力終了とする。
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.disconnected = False

    async def records(self) -> AsyncIterator[FileRecord]:
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                self.disconnected = True
                return

            payload = _decode_frame(message)
            if isinstance(payload, dict) and "event" in payload:
                StreamControl.model_validate(payload)
                return
            yield FileRecord.model_validate(payload)


def _decode_frame(message: Message) -> Any:
    """テキスト・バイナリどちらのフレームもJSONとして解釈"""
    data = message.get("text")
    if data is None:
        data = message.get("bytes")
    if data is None:
        raise ValidationError("frame", "フレームが空です")

    try:
        return json.loads(data)
    except ValueError as e:
        # JSONDecodeError と UTF-8 でないバイナリの UnicodeDecodeError
        raise ValidationError("frame", f"フレームをJSONとして解釈できません: {e}") from e


async def _serve_stream(
    websocket: WebSocket,
    operation: str,
    run: StreamRunner,
) -> None:
    await websocket.accept()
    receiver = _RecordReceiver(websocket)

    async def send(result: BaseModel) -> None:
        await websocket.send_json(result.model_dump())

    try:
        await run(receiver.records(), send)
    except WebSocketDisconnect as e:
        logger.info("送信中にクライアント切断", operation=operation, close_code=e.code)
        return
    except Exception as e:
        await _abort_stream(websocket, operation, e)
        return

    if receiver.disconnected:
        logger.info("クライアント切断で入力終了", operation=operation)
        return

    await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)


async def _abort_stream(websocket: WebSocket, operation: str, exc: Exception) -> None:
    """エラーフレームを1件送信してからストリームを閉じる"""
    code = error_code_of(exc)
    close_code = exception_to_ws_close_code(exc)
    get_error_counter().inc(type="stream", code=code)

    if isinstance(exc, AppError):
        message = exc.message
        details = [{"field": k, "message": str(v)} for k, v in exc.details.items() if v]
    elif close_code == status.WS_1007_INVALID_FRAME_PAYLOAD_DATA:
        message = "ストリームのフレームが不正です"
        details = [{"message": str(exc)}]
    else:
        logger.error(
            "ストリーム処理で予期しないエラー",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        message = "内部サーバーエラーが発生しました"
        details = None

    payload = create_error_response(
        code=code,
        message=message,
        details=details,
        request_id=getattr(websocket.state, "request_id", None),
    )

    try:
        await websocket.send_json(payload)
        await websocket.close(code=close_code, reason=code)
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.warning("エラーフレーム送信失敗（切断済み）", operation=operation, error=str(e))
