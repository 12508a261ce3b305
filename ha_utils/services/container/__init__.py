"""
コンテナライフサイクル制御
名前付きコンテナ1つのpull・作成・起動・停止・削除・参照を提供する
"""
from ha_utils.services.container.base import ContainerEngineBase
from ha_utils.services.container.config import (
    default_container_settings,
    get_container_create_config,
    profile_from_settings,
)
from ha_utils.services.container.lifecycle import ContainerLifecycleController
from ha_utils.services.container.models import (
    ContainerHandle,
    ContainerProfile,
    ContainerSettings,
    ContainerState,
)

__all__ = [
    "ContainerEngineBase",
    "ContainerHandle",
    "ContainerLifecycleController",
    "ContainerProfile",
    "ContainerSettings",
    "ContainerState",
    "default_container_settings",
    "get_container_create_config",
    "profile_from_settings",
]
