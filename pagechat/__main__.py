from __future__ import annotations

import os

import uvicorn

from pagechat.config import Settings
from pagechat.logging_config import configure_logging
from pagechat.main import create_app


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    port = int(os.environ.get("PORT", "8080"))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
