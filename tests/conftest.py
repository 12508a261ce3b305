"""
テスト用共通設定
Dockerデーモン不要のフェイクエンジンとアプリケーション fixtures
"""
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from ha_utils.api.dependencies import get_container_controller, get_file_sync_engine
from ha_utils.config import clear_settings_cache
from ha_utils.core.app_factory import create_app
from ha_utils.services.container.base import ContainerEngineBase
from ha_utils.services.container.lifecycle import ContainerLifecycleController
from ha_utils.services.container.models import (
    ContainerHandle,
    ContainerProfile,
    ContainerState,
)
from ha_utils.services.filediff.sync import FileSyncEngine
from ha_utils.utils.exceptions import AppError, ContainerEngineError, ContainerNotFoundError


class FakeContainerEngine(ContainerEngineBase):
    """インメモリのコンテナエンジン

    ContainerState の遷移規則に従い、許可されない遷移はエンジンエラーとして送出する。
    fail_on に操作名と例外を登録すると、その操作で例外を送出する。
    """

    def __init__(self) -> None:
        self.images: list[str] = []
        self.containers: dict[str, dict] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: dict[str, AppError] = {}
        self.healthy = True
        self.closed = False

    def _enter(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def _resolve(self, container: str) -> str:
        if container in self.containers:
            return container
        for container_id, entry in self.containers.items():
            if entry["name"] == container:
                return container_id
        raise ContainerNotFoundError(
            container, engine_message=f"No such container: {container}"
        )

    def _transition(self, operation: str, container_id: str, target: ContainerState) -> None:
        entry = self.containers[container_id]
        if not entry["state"].can_transition_to(target):
            raise ContainerEngineError(
                operation,
                container_id,
                f"cannot move from {entry['state'].value} to {target.value}",
                status=409,
            )
        entry["state"] = target

    def state_of(self, container: str) -> ContainerState:
        try:
            return self.containers[self._resolve(container)]["state"]
        except ContainerNotFoundError:
            return ContainerState.ABSENT

    async def pull_image(self, image_name: str) -> None:
        self._enter("pull", image_name)
        self.images.append(image_name)

    async def create_container(self, name: str, config: dict) -> str:
        self._enter("create", name)
        if any(entry["name"] == name for entry in self.containers.values()):
            raise ContainerEngineError(
                "create", name, "Conflict. The container name is already in use", status=409
            )
        container_id = uuid.uuid4().hex
        self.containers[container_id] = {
            "name": name,
            "config": config,
            "state": ContainerState.CREATED,
        }
        return container_id

    async def start_container(self, container: str) -> None:
        self._enter("start", container)
        self._transition("start", self._resolve(container), ContainerState.RUNNING)

    async def stop_container(self, container: str, timeout: int | None = None) -> None:
        self._enter("stop", container)
        container_id = self._resolve(container)
        status = self.containers[container_id]["state"]
        if status != ContainerState.RUNNING:
            # Dockerアダプターと同じく 304 のエンジンエラー
            raise ContainerEngineError(
                "stop",
                container,
                f"container {container} is not running (status: {status.value})",
                status=304,
            )
        self._transition("stop", container_id, ContainerState.EXITED)

    async def remove_container(
        self, container: str, force: bool = True, remove_volumes: bool = True
    ) -> None:
        self._enter("remove", container)
        container_id = self._resolve(container)
        self._transition("remove", container_id, ContainerState.REMOVED)
        del self.containers[container_id]

    async def inspect_container(self, container: str) -> ContainerHandle:
        self._enter("inspect", container)
        container_id = self._resolve(container)
        return ContainerHandle(
            id=container_id,
            status=self.containers[container_id]["state"].value,
        )

    async def list_containers(self) -> list[str]:
        self._enter("list", "*")
        return [
            container_id
            for container_id, entry in self.containers.items()
            if entry["state"] == ContainerState.RUNNING
        ]

    async def ping(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """テスト間で設定キャッシュを共有しない"""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def fake_engine() -> FakeContainerEngine:
    return FakeContainerEngine()


@pytest.fixture
def container_profile() -> ContainerProfile:
    return ContainerProfile()


@pytest.fixture
def controller(
    fake_engine: FakeContainerEngine, container_profile: ContainerProfile
) -> ContainerLifecycleController:
    return ContainerLifecycleController(fake_engine, container_profile)


@pytest.fixture
def file_sync() -> FileSyncEngine:
    return FileSyncEngine()


@pytest.fixture
def app(
    fake_engine: FakeContainerEngine,
    controller: ContainerLifecycleController,
    file_sync: FileSyncEngine,
) -> FastAPI:
    """フェイクエンジンを注入したアプリケーション（lifespanは実行しない）"""
    application = create_app()
    application.state.container_engine = fake_engine
    application.dependency_overrides[get_container_controller] = lambda: controller
    application.dependency_overrides[get_file_sync_engine] = lambda: file_sync
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """テスト用HTTPクライアント"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def ws_client(app: FastAPI) -> TestClient:
    """WebSocketストリーム用クライアント"""
    return TestClient(app)
