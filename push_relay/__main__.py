from __future__ import annotations

import uvicorn

from push_relay.config import get_settings
from push_relay.logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "push_relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    main()
