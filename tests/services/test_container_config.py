"""
コンテナ作成設定の単体テスト
"""
import pytest

from ha_utils.config import Settings
from ha_utils.services.container.config import (
    default_container_settings,
    get_container_create_config,
    profile_from_settings,
)
from ha_utils.services.container.models import ContainerProfile, ContainerSettings


@pytest.fixture
def container() -> ContainerSettings:
    return ContainerSettings(
        image_name="homeassistant/home-assistant",
        container_name="c1",
        env_vars=("TZ=America/Chicago",),
    )


class TestCreateConfig:
    """Docker作成設定のテスト"""

    @pytest.mark.unit
    def test_default_profile(self, container):
        """既定プロファイルは 8123/tcp を 0.0.0.0:8123 に公開"""
        config = get_container_create_config(container, ContainerProfile())

        assert config["Image"] == "homeassistant/home-assistant"
        assert config["Hostname"] == "c1"
        assert config["Env"] == ["TZ=America/Chicago"]
        assert config["ExposedPorts"] == {"8123/tcp": {}}

        host = config["HostConfig"]
        assert host["PortBindings"] == {
            "8123/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8123"}]
        }
        assert host["RestartPolicy"] == {"Name": "unless-stopped"}
        assert host["LogConfig"]["Type"] == "json-file"

        endpoints = config["NetworkingConfig"]["EndpointsConfig"]
        assert endpoints == {"bridge": {"Gateway": "gatewayname"}}

    @pytest.mark.unit
    def test_custom_profile(self, container):
        """プロファイルのポート・ネットワークが反映される"""
        profile = ContainerProfile(
            container_port=53,
            protocol="udp",
            host_ip="127.0.0.1",
            host_port=5353,
            restart_policy="always",
            network_name="ha-net",
        )

        config = get_container_create_config(container, profile)

        assert "53/udp" in config["ExposedPorts"]
        assert config["HostConfig"]["PortBindings"]["53/udp"] == [
            {"HostIp": "127.0.0.1", "HostPort": "5353"}
        ]
        assert config["HostConfig"]["RestartPolicy"]["Name"] == "always"
        assert "ha-net" in config["NetworkingConfig"]["EndpointsConfig"]


class TestSettingsMapping:
    """アプリケーション設定からの変換テスト"""

    @pytest.mark.unit
    def test_profile_from_settings(self):
        """container_ 設定がプロファイルに写される"""
        settings = Settings(container_port=8124, container_host_port=18124)

        profile = profile_from_settings(settings)

        assert profile.port_key == "8124/tcp"
        assert profile.host_port == 18124

    @pytest.mark.unit
    def test_default_container_settings(self):
        """呼び出し元が指定するのは名前のみ"""
        settings = Settings(
            container_image="homeassistant/home-assistant:stable",
            container_env="TZ=Asia/Tokyo, LANG=C.UTF-8",
        )

        container = default_container_settings("living-room", settings)

        assert container.container_name == "living-room"
        assert container.image_name == "homeassistant/home-assistant:stable"
        assert container.env_vars == ("TZ=Asia/Tokyo", "LANG=C.UTF-8")
