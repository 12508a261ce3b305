"""
Home Assistant ユーティリティ メインアプリケーション
"""
import uvicorn

from ha_utils.config import get_settings
from ha_utils.core.app_factory import create_app

app = create_app()


def main() -> None:
    """サーバーを起動"""
    settings = get_settings()
    uvicorn.run(
        "ha_utils.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_development,
        timeout_keep_alive=settings.uvicorn_timeout_keep_alive,
        log_config=None,
    )


if __name__ == "__main__":
    main()
