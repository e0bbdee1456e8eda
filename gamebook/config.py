"""Runtime configuration (strict parsing, logging, server address)."""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ENV_FILE = Path.cwd() / ".env"

_CONFIG_DEFAULTS: dict[str, Any] = {
    "strict": False,
    "log_level": "INFO",
    "host": "127.0.0.1",
    "port": 8000,
}

_TRUE_VALUES = ("1", "true", "yes", "on")


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with environment values."""
    load_dotenv(ENV_FILE)
    config = dict(_CONFIG_DEFAULTS)
    if "GAMEBOOK_STRICT" in os.environ:
        config["strict"] = os.environ["GAMEBOOK_STRICT"].strip().lower() in _TRUE_VALUES
    if os.getenv("LOG_LEVEL"):
        config["log_level"] = os.environ["LOG_LEVEL"].strip().upper()
    if os.getenv("HOST"):
        config["host"] = os.environ["HOST"]
    if os.getenv("PORT"):
        config["port"] = int(os.environ["PORT"])
    return config


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_config()["log_level"]).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
