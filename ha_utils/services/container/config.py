"""
コンテナ作成設定
Docker APIに渡すコンテナ設定を生成する
"""
from ha_utils.config import Settings, get_settings
from ha_utils.services.container.models import ContainerProfile, ContainerSettings


def profile_from_settings(settings: Settings | None = None) -> ContainerProfile:
    """アプリケーション設定からコンテナプロファイルを生成"""
    settings = settings or get_settings()
    return ContainerProfile(
        container_port=settings.container_port,
        protocol=settings.container_protocol,
        host_ip=settings.container_host_ip,
        host_port=settings.container_host_port,
        restart_policy=settings.container_restart_policy,
        log_driver=settings.container_log_driver,
        network_name=settings.container_network_name,
        gateway=settings.container_gateway,
    )


def default_container_settings(
    container_name: str, settings: Settings | None = None
) -> ContainerSettings:
    """StartContainerで使用するコンテナ指定を生成（名前のみ呼び出し元が指定）"""
    settings = settings or get_settings()
    return ContainerSettings(
        image_name=settings.container_image,
        container_name=container_name,
        env_vars=tuple(settings.container_env_list),
    )


def get_container_create_config(
    container: ContainerSettings, profile: ContainerProfile
) -> dict:
    """
    コンテナ作成用Docker API設定を生成

    Args:
        container: 作成するコンテナの指定
        profile: ポート・ネットワーク等の固定プロファイル

    Returns:
        aiodocker.Docker.containers.create() に渡す設定辞書
    """
    port = profile.port_key

    return {
        "Image": container.image_name,
        "Env": list(container.env_vars),
        "Hostname": container.container_name,
        "ExposedPorts": {port: {}},
        "HostConfig": {
            "PortBindings": {
                port: [
                    {
                        "HostIp": profile.host_ip,
                        "HostPort": str(profile.host_port),
                    }
                ],
            },
            "RestartPolicy": {"Name": profile.restart_policy},
            "LogConfig": {"Type": profile.log_driver, "Config": {}},
        },
        "NetworkingConfig": {
            "EndpointsConfig": {
                # ゲートウェイ値はプレースホルダ（エンジン側で割り当て）
                profile.network_name: {"Gateway": profile.gateway},
            },
        },
    }
