"""
ファイル同期スキーマ
Base64エンコードされたファイル全体を単一パスで扱う
"""
from typing import Literal

from pydantic import BaseModel, Field


class FileRecord(BaseModel):
    """ファイルレコード（1メッセージにつき1件）"""

    file_name: str = Field(..., description="ファイルパス（そのまま使用される）")
    encoded_content: str = Field(..., description="ファイル内容の標準Base64")


class ComparisonResult(BaseModel):
    """ファイル比較結果"""

    is_same: bool = Field(..., description="現在のファイルとバイト単位で一致するか")


class ProcessedResult(BaseModel):
    """ファイル送信結果

    processed=False かつ error が空の場合は、内容が同一のため書き込みをスキップしたことを示す。
    """

    processed: bool = Field(..., description="ファイルを書き込んだか")
    file_name: str = Field("", description="書き込んだファイルパス")
    error: str = Field("", description="書き込みエラー（空ならエラーなし）")


class StreamControl(BaseModel):
    """ストリーム制御メッセージ（入力終了の通知）"""

    event: Literal["end"]
