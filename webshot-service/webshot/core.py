"""
FILE DESCRIPTION: Foundational module for service configuration and logging.
KEY FUNCTIONS/CLASSES: StorageConfig, RenderConfig, ServerConfig, setup_logger, ServiceFormatter
"""

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the working directory before anything reads the environment
load_dotenv()

# Render option defaults and limits
DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768
DEFAULT_DELAY_MS = 0
DEFAULT_USER_AGENT = ""
MAX_DELAY_MS = 10000

# Playwright navigation timeout (seconds)
DEFAULT_NAVIGATION_TIMEOUT = 30
DEFAULT_MAX_CONCURRENT_RENDERS = 3

# aws-sdk's getSignedUrl default lifetime (seconds)
DEFAULT_SIGNED_URL_TTL = 900

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class StorageConfig:
    """
    Object storage settings, read once at process start and handed to the storage backend.
    Key layout: <base_directory>/<name> inside `bucket`.
    """
    bucket: str
    base_directory: str = ""
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    signed_url_ttl: int = DEFAULT_SIGNED_URL_TTL
    conditional_put: bool = False

    @staticmethod
    def from_env() -> "StorageConfig":
        return StorageConfig(
            bucket=os.getenv("AWS_S3_BUCKET", ""),
            base_directory=os.getenv("AWS_S3_DIRECTORY", ""),
            region=os.getenv("AWS_REGION") or None,
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID") or None,
            secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY") or None,
            endpoint_url=os.getenv("AWS_S3_ENDPOINT_URL") or None,
            signed_url_ttl=_env_int("WEBSHOT_SIGNED_URL_TTL", DEFAULT_SIGNED_URL_TTL),
            conditional_put=_env_flag("WEBSHOT_CONDITIONAL_PUT"),
        )


@dataclass(frozen=True)
class RenderConfig:
    navigation_timeout: int = DEFAULT_NAVIGATION_TIMEOUT
    max_concurrent_renders: int = DEFAULT_MAX_CONCURRENT_RENDERS

    @staticmethod
    def from_env() -> "RenderConfig":
        return RenderConfig(
            navigation_timeout=_env_int("WEBSHOT_NAVIGATION_TIMEOUT", DEFAULT_NAVIGATION_TIMEOUT),
            max_concurrent_renders=_env_int("WEBSHOT_MAX_CONCURRENT_RENDERS", DEFAULT_MAX_CONCURRENT_RENDERS),
        )


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_file: Optional[str] = None

    @staticmethod
    def from_env() -> "ServerConfig":
        return ServerConfig(
            host=os.getenv("WEBSHOT_HOST", "0.0.0.0"),
            port=_env_int("WEBSHOT_PORT", 3000),
            debug=_env_flag("WEBSHOT_DEBUG"),
            log_file=os.getenv("WEBSHOT_LOG_FILE") or None,
        )


# === LOGGING SECTION ===

class ServiceFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Formats its timestamp (e.g. [ Tue Jan 06 05:32:41 AM UTC 2026 ]) ->
    Prepends level and context (defaults to the logger name) -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, "context", record.name)
        line = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logger(name="webshot", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Child loggers propagate to 'webshot' -> Root gets a console and an optional file handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != "webshot":
        logger.propagate = True
        setup_logger("webshot", log_file=log_file, level=level)
        return logger

    if logger.handlers:
        if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            _attach_file_handler(logger, log_file)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ServiceFormatter())
    logger.addHandler(console_handler)

    if log_file:
        _attach_file_handler(logger, log_file)

    return logger


def _attach_file_handler(logger, log_file):
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(ServiceFormatter())
    logger.addHandler(file_handler)


# Global logger instance
logger = setup_logger()
