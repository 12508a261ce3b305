"""
設定ファイル同期
Base64ペイロードの比較・置換と、順序保証付きのストリーム処理
"""
from ha_utils.services.filediff.file_management import (
    decode_content,
    file_exists,
    is_same_file,
    read_file,
    replace_file,
)
from ha_utils.services.filediff.sync import (
    FileSyncEngine,
    RecordOutcome,
    StreamResponseBuffer,
)

__all__ = [
    "FileSyncEngine",
    "RecordOutcome",
    "StreamResponseBuffer",
    "decode_content",
    "file_exists",
    "is_same_file",
    "read_file",
    "replace_file",
]
