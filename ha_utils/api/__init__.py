"""
APIルーター
"""
from fastapi import APIRouter

from ha_utils.api import containers, files

api_router = APIRouter()

api_router.include_router(
    containers.router,
    prefix="/containers",
    tags=["コンテナ管理"],
)
api_router.include_router(
    files.router,
    prefix="/files",
    tags=["ファイル同期"],
)
