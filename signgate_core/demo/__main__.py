"""Serve the demo application: ``python -m signgate_core.demo``."""

import os

import uvicorn

from ..config import GatewayConfig
from ..logging_config import setup_logging
from .app import create_demo_app


def main() -> None:
    config = GatewayConfig.from_env()
    setup_logging(config.service_name, level=config.log_level, json_output=config.log_json)
    app = create_demo_app(config=config)
    uvicorn.run(
        app,
        host=os.getenv("SIGNGATE_HOST", "127.0.0.1"),
        port=int(os.getenv("SIGNGATE_PORT", "3000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
