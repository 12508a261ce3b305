"""
ファイル同期エンジン
単発のファイル送信・比較と、順序を保証するストリーム処理を提供する

ストリーム処理フロー（1レコードごと）:
  1. 受信順にレコードを1件取り出す
  2. 単発処理と同じ手順で結果を計算
  3. ストリーム専用バッファにロック内で追加し、スナップショットを取ってクリア
  4. ロック解放後にスナップショットを順に送信
"""
import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable
from enum import Enum
from typing import Generic, TypeVar

import structlog

from ha_utils.infrastructure.metrics import get_active_streams, get_file_sync_records
from ha_utils.schemas.file import ComparisonResult, FileRecord, ProcessedResult
from ha_utils.services.filediff.file_management import (
    decode_content,
    file_exists,
    is_same_content,
    is_same_file,
    write_content,
)
from ha_utils.utils.exceptions import AppError, FileOperationError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RecordOutcome(str, Enum):
    """ファイルレコード処理の終端状態"""

    SKIPPED = "skipped"  # 内容が同一のため書き込みなし
    WRITTEN = "written"  # 上書き成功
    WRITE_FAILED = "write_failed"  # 上書き失敗（結果のerrorに格納）
    CHECK_FAILED = "check_failed"  # デコード・読み込み失敗（呼び出しエラー）


class StreamResponseBuffer(Generic[T]):
    """1ストリーム呼び出し専用の送信待ちバッファ

    ロックは追加・スナップショット・クリアの間だけ保持し、送信中は保持しない。
    """

    def __init__(self) -> None:
        self._items: list[T] = []
        self._lock = asyncio.Lock()

    async def push(self, item: T) -> list[T]:
        """結果を追加し、送信待ちの全結果を追加順で取り出す"""
        async with self._lock:
            self._items.append(item)
            pending = list(self._items)
            self._items.clear()
        return pending

    def __len__(self) -> int:
        return len(self._items)


class FileSyncEngine:
    """ファイル比較・置換のシーケンサー

    プロセス全体で共有する状態は持たない（バッファはストリーム呼び出しごとに生成）。
    """

    async def send_file(self, record: FileRecord) -> ProcessedResult:
        """
        内容が異なる場合のみファイルを置換

        Returns:
            書き込み成功: processed=True, file_name
            内容同一: processed=False（error空）
            書き込み失敗: processed=False, error=メッセージ
        """
        log = logger.bind(file_name=record.file_name)

        try:
            # デコードはファイル操作より先に行う
            content = decode_content(record.file_name, record.encoded_content)
            if await file_exists(record.file_name):
                same = await is_same_content(record.file_name, content)
            else:
                same = False
        except AppError as e:
            self._record("send", RecordOutcome.CHECK_FAILED)
            log.warning("ファイルチェック失敗", error=e.message)
            raise

        if same:
            self._record("send", RecordOutcome.SKIPPED)
            log.debug("内容同一のためスキップ")
            return ProcessedResult(processed=False)

        try:
            await write_content(record.file_name, content)
        except FileOperationError as e:
            self._record("send", RecordOutcome.WRITE_FAILED)
            log.error("ファイル書き込み失敗", error=e.original_error)
            return ProcessedResult(processed=False, error=e.original_error or e.message)

        self._record("send", RecordOutcome.WRITTEN)
        log.info("ファイル書き込み完了", size=len(content))
        return ProcessedResult(processed=True, file_name=record.file_name)

    async def compare_file(self, record: FileRecord) -> ComparisonResult:
        """ファイル内容を比較（書き込みは行わない）"""
        try:
            same = await is_same_file(record.file_name, record.encoded_content)
        except AppError as e:
            self._record("compare", RecordOutcome.CHECK_FAILED)
            logger.warning("ファイル比較失敗", file_name=record.file_name, error=e.message)
            raise

        get_file_sync_records().inc(
            operation="compare", outcome="same" if same else "different"
        )
        return ComparisonResult(is_same=same)

    async def send_files(
        self,
        records: AsyncIterable[FileRecord],
        send: Callable[[ProcessedResult], Awaitable[None]],
    ) -> int:
        """ストリームで受信したファイルを順に送信処理し、結果を受信順に返す"""
        return await self._run_stream("send", records, self.send_file, send)

    async def compare_files(
        self,
        records: AsyncIterable[FileRecord],
        send: Callable[[ComparisonResult], Awaitable[None]],
    ) -> int:
        """ストリームで受信したファイルを順に比較し、結果を受信順に返す"""
        return await self._run_stream("compare", records, self.compare_file, send)

    async def _run_stream(
        self,
        operation: str,
        records: AsyncIterable[FileRecord],
        process: Callable[[FileRecord], Awaitable[T]],
        send: Callable[[T], Awaitable[None]],
    ) -> int:
        """
        ストリーム共通処理

        処理・送信エラーはストリーム全体を中断する（送信済みの結果は取り消さない）。

        Returns:
            送信した結果の件数
        """
        buffer: StreamResponseBuffer[T] = StreamResponseBuffer()
        sent = 0
        active = get_active_streams()
        active.inc(operation=operation)
        logger.info("ストリーム開始", operation=operation)

        try:
            async for record in records:
                result = await process(record)
                for item in await buffer.push(result):
                    await send(item)
                    sent += 1
        except Exception as e:
            logger.warning(
                "ストリーム中断",
                operation=operation,
                sent=sent,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            active.dec(operation=operation)

        logger.info("ストリーム完了", operation=operation, sent=sent)
        return sent

    @staticmethod
    def _record(operation: str, outcome: RecordOutcome) -> None:
        get_file_sync_records().inc(operation=operation, outcome=outcome.value)
