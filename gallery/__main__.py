# gallery/__main__.py
# Run: python -m gallery  (HOST / PORT / LOG_LEVEL from the environment)

import uvicorn

from gallery.config import Settings
from gallery.logging_conf import logging_config


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "gallery.main:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=logging_config(settings.log_level),
    )


if __name__ == "__main__":
    main()
