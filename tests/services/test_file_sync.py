"""
ファイル同期エンジンの単体テスト
"""
import asyncio
import base64
from unittest.mock import AsyncMock, patch

import pytest

from ha_utils.schemas.file import ComparisonResult, FileRecord, ProcessedResult
from ha_utils.services.filediff.sync import FileSyncEngine, StreamResponseBuffer
from ha_utils.utils.exceptions import (
    ContentDecodeError,
    FileNotFoundOnHostError,
    FileOperationError,
)


def record(path, data: bytes) -> FileRecord:
    return FileRecord(
        file_name=str(path),
        encoded_content=base64.b64encode(data).decode("ascii"),
    )


async def iterate(items):
    for item in items:
        yield item


class Collector:
    """送信された結果を記録する"""

    def __init__(self):
        self.items = []

    async def __call__(self, item):
        self.items.append(item)


class TestSendFile:
    """単発ファイル送信のテスト"""

    @pytest.mark.unit
    async def test_send_new_file(self, file_sync: FileSyncEngine, tmp_path):
        """存在しないファイルは作成される"""
        path = tmp_path / "configuration.yaml"

        result = await file_sync.send_file(record(path, b"This is a test"))

        assert result == ProcessedResult(processed=True, file_name=str(path))
        assert path.read_bytes() == b"This is a test"

    @pytest.mark.unit
    async def test_send_twice_is_idempotent(self, file_sync: FileSyncEngine, tmp_path):
        """同じ内容の2回目の送信は書き込まない"""
        path = tmp_path / "configuration.yaml"
        rec = record(path, b"This is a test")

        first = await file_sync.send_file(rec)
        second = await file_sync.send_file(rec)

        assert first.processed is True
        assert second.processed is False
        assert second.error == ""
        assert second.file_name == ""

    @pytest.mark.unit
    async def test_send_different_content_overwrites(
        self, file_sync: FileSyncEngine, tmp_path
    ):
        """内容が異なれば上書き"""
        path = tmp_path / "automations.yaml"
        path.write_bytes(b"old")

        result = await file_sync.send_file(record(path, b"new"))

        assert result.processed is True
        assert path.read_bytes() == b"new"

    @pytest.mark.unit
    async def test_send_invalid_base64_raises(self, file_sync: FileSyncEngine, tmp_path):
        """不正なBase64はファイル操作前にエラー"""
        path = tmp_path / "configuration.yaml"
        path.write_bytes(b"keep")

        with pytest.raises(ContentDecodeError):
            await file_sync.send_file(
                FileRecord(file_name=str(path), encoded_content="@@invalid@@")
            )

        assert path.read_bytes() == b"keep"

    @pytest.mark.unit
    async def test_write_failure_is_folded(self, file_sync: FileSyncEngine, tmp_path):
        """書き込み失敗は呼び出しエラーではなく結果のerrorに格納"""
        path = tmp_path / "missing-dir" / "configuration.yaml"

        result = await file_sync.send_file(record(path, b"x"))

        assert result.processed is False
        assert result.error != ""


class TestCompareFile:
    """単発ファイル比較のテスト"""

    @pytest.mark.unit
    async def test_compare_same(self, file_sync: FileSyncEngine, tmp_path):
        """送信後の比較は一致"""
        path = tmp_path / "secrets.yaml"
        await file_sync.send_file(record(path, b"B"))

        assert await file_sync.compare_file(record(path, b"B")) == ComparisonResult(
            is_same=True
        )

    @pytest.mark.unit
    async def test_compare_different(self, file_sync: FileSyncEngine, tmp_path):
        """内容が異なれば不一致"""
        path = tmp_path / "secrets.yaml"
        path.write_bytes(b"B1")

        result = await file_sync.compare_file(record(path, b"B2"))

        assert result.is_same is False

    @pytest.mark.unit
    async def test_compare_missing_file(self, file_sync: FileSyncEngine, tmp_path):
        """存在しないパスとの比較は未検出エラー"""
        with pytest.raises(FileNotFoundOnHostError):
            await file_sync.compare_file(record(tmp_path / "nope.yaml", b"x"))

    @pytest.mark.unit
    async def test_compare_never_writes(self, file_sync: FileSyncEngine, tmp_path):
        """比較ではファイルを変更しない"""
        path = tmp_path / "groups.yaml"
        path.write_bytes(b"original")

        await file_sync.compare_file(record(path, b"other"))

        assert path.read_bytes() == b"original"


class TestStreams:
    """ストリーム処理のテスト"""

    @pytest.mark.unit
    async def test_send_stream_preserves_order(self, file_sync: FileSyncEngine, tmp_path):
        """N件の入力に対してN件の結果が同じ順序で返る"""
        records = [record(tmp_path / f"file{i}.yaml", f"content {i}".encode()) for i in range(5)]
        send = Collector()

        sent = await file_sync.send_files(iterate(records), send)

        assert sent == 5
        assert [r.file_name for r in send.items] == [r.file_name for r in records]
        assert all(r.processed for r in send.items)

    @pytest.mark.unit
    async def test_send_stream_mixed_outcomes(self, file_sync: FileSyncEngine, tmp_path):
        """スキップ・書き込み・書き込み失敗が受信順に並ぶ"""
        same = tmp_path / "same.yaml"
        same.write_bytes(b"same")
        records = [
            record(same, b"same"),
            record(tmp_path / "new.yaml", b"new"),
            record(tmp_path / "no-dir" / "fail.yaml", b"x"),
        ]
        send = Collector()

        await file_sync.send_files(iterate(records), send)

        assert [r.processed for r in send.items] == [False, True, False]
        assert send.items[0].error == ""
        assert send.items[2].error != ""

    @pytest.mark.unit
    async def test_compare_stream(self, file_sync: FileSyncEngine, tmp_path):
        """比較ストリームも受信順に結果を返す"""
        a = tmp_path / "a.yaml"
        a.write_bytes(b"A")
        b = tmp_path / "b.yaml"
        b.write_bytes(b"B")
        send = Collector()

        sent = await file_sync.compare_files(
            iterate([record(a, b"A"), record(b, b"X"), record(a, b"A")]), send
        )

        assert sent == 3
        assert [r.is_same for r in send.items] == [True, False, True]

    @pytest.mark.unit
    async def test_empty_stream(self, file_sync: FileSyncEngine):
        """入力が空なら何も送信しない"""
        send = Collector()

        assert await file_sync.send_files(iterate([]), send) == 0
        assert send.items == []

    @pytest.mark.unit
    async def test_decode_error_aborts_stream(self, file_sync: FileSyncEngine, tmp_path):
        """デコードエラーでストリーム全体が中断し、送信済みの結果は残る"""
        untouched = tmp_path / "after.yaml"
        records = [
            record(tmp_path / "before.yaml", b"ok"),
            FileRecord(file_name=str(tmp_path / "bad.yaml"), encoded_content="***"),
            record(untouched, b"never"),
        ]
        send = Collector()

        with pytest.raises(ContentDecodeError):
            await file_sync.send_files(iterate(records), send)

        assert len(send.items) == 1
        assert not untouched.exists()

    @pytest.mark.unit
    async def test_missing_file_aborts_compare_stream(
        self, file_sync: FileSyncEngine, tmp_path
    ):
        """比較ストリームで存在しないファイルは中断"""
        send = Collector()

        with pytest.raises(FileNotFoundOnHostError):
            await file_sync.compare_files(iterate([record(tmp_path / "x.yaml", b"x")]), send)

        assert send.items == []

    @pytest.mark.unit
    async def test_read_error_aborts_send_stream(self, file_sync: FileSyncEngine, tmp_path):
        """送信ストリームで読み込みエラーは中断"""
        path = tmp_path / "conf.yaml"
        path.write_bytes(b"x")
        send = Collector()

        with patch(
            "ha_utils.services.filediff.sync.is_same_content",
            AsyncMock(side_effect=FileOperationError("読み込み", str(path), "EIO")),
        ):
            with pytest.raises(FileOperationError):
                await file_sync.send_files(iterate([record(path, b"y")]), send)

        assert send.items == []

    @pytest.mark.unit
    async def test_send_failure_aborts_stream(self, file_sync: FileSyncEngine, tmp_path):
        """結果の送信に失敗した場合もストリームは中断"""
        send = AsyncMock(side_effect=ConnectionError("closed"))

        with pytest.raises(ConnectionError):
            await file_sync.send_files(iterate([record(tmp_path / "a.yaml", b"a")]), send)


class TestStreamResponseBuffer:
    """ストリームバッファのテスト"""

    @pytest.mark.unit
    async def test_push_returns_pending_and_clears(self):
        """追加した結果を取り出し、バッファは空になる"""
        buffer: StreamResponseBuffer[int] = StreamResponseBuffer()

        assert await buffer.push(1) == [1]
        assert len(buffer) == 0
        assert await buffer.push(2) == [2]

    @pytest.mark.unit
    async def test_concurrent_push_never_duplicates(self):
        """並行して追加しても各結果はちょうど1回だけ取り出される"""
        buffer: StreamResponseBuffer[int] = StreamResponseBuffer()

        snapshots = await asyncio.gather(*(buffer.push(i) for i in range(50)))

        flushed = [item for snapshot in snapshots for item in snapshot]
        assert sorted(flushed) == list(range(50))
