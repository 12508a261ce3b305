"""
コンテナ関連スキーマ
"""
from pydantic import BaseModel, Field


class ContainerRequest(BaseModel):
    """コンテナ操作リクエスト"""

    container_name: str = Field(..., min_length=1, description="コンテナ名")


class ContainerResponse(BaseModel):
    """コンテナ操作レスポンス

    GetContainerでコンテナが存在しない場合は両フィールドとも空文字になる。
    """

    container_id: str = Field("", description="コンテナID")
    status: str = Field("", description="エンジンが報告する状態")


class ContainerListResponse(BaseModel):
    """起動中コンテナ一覧レスポンス"""

    container_ids: list[str] = Field(default_factory=list, description="コンテナID一覧")
