"""
ファイル比較・置換
Base64ペイロードのデコードと、ディスク上のファイルとのバイト単位比較・上書きを担当
"""
import base64
import binascii
import os

import aiofiles
import aiofiles.os

from ha_utils.utils.exceptions import (
    ContentDecodeError,
    FileNotFoundOnHostError,
    FileOperationError,
)

# 新規作成時のファイルパーミッション
NEW_FILE_MODE = 0o600


def decode_content(file_name: str, encoded_content: str) -> bytes:
    """
    標準Base64をデコード

    アルファベット外の文字やパディング不正はエラー（黙って無視しない）。
    """
    try:
        return base64.b64decode(encoded_content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ContentDecodeError(file_name, str(e)) from e


async def file_exists(file_name: str) -> bool:
    """パスにファイルが存在するか"""
    return await aiofiles.os.path.exists(file_name)


async def read_file(file_name: str) -> bytes:
    """ファイル内容をバイト列で読み込み"""
    try:
        async with aiofiles.open(file_name, mode="rb") as f:
            return await f.read()
    except FileNotFoundError as e:
        raise FileNotFoundOnHostError(file_name) from e
    except OSError as e:
        raise FileOperationError("読み込み", file_name, str(e)) from e


async def is_same_content(file_name: str, content: bytes) -> bool:
    """デコード済みの内容と現在のファイルがバイト単位で一致するか（正規化なし）"""
    return await read_file(file_name) == content


async def is_same_file(file_name: str, encoded_content: str) -> bool:
    """
    Base64ペイロードと現在のファイルを比較

    デコードはファイル読み込みより先に行う。
    """
    content = decode_content(file_name, encoded_content)
    return await is_same_content(file_name, content)


def _create_private(path: str, flags: int) -> int:
    return os.open(path, flags, NEW_FILE_MODE)


async def write_content(file_name: str, content: bytes) -> None:
    """ファイルを上書き（存在しなければ 0600 で作成）"""
    try:
        async with aiofiles.open(file_name, mode="wb", opener=_create_private) as f:
            await f.write(content)
    except OSError as e:
        raise FileOperationError("書き込み", file_name, str(e)) from e


async def replace_file(file_name: str, encoded_content: str) -> None:
    """
    Base64ペイロードでファイルを置換

    デコードに失敗した場合はファイルに一切触れない。
    """
    content = decode_content(file_name, encoded_content)
    await write_content(file_name, content)
