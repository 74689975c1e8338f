# backlog_sync/config.py

import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import load_dotenv

from .exceptions import ConfigurationError, MissingArgumentError

# Load environment variables from .env file
load_dotenv()


class Config:
    # Backlog API Configuration. BACKLOG_API_KEY, BACKLOG_SPACE_ID and
    # BACKLOG_PROJECT_ID are read by the CLI options directly.
    BACKLOG_HOST = os.getenv("BACKLOG_HOST", "backlog.com")

    # Number of issues requested per listing call
    PAGE_SIZE = int(os.getenv("PAGE_SIZE", 100))

    # File Storage Configuration
    DOWNLOAD_DIR = os.getenv("DOWNLOAD_DIR", os.getcwd())
    CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", 64 * 1024))

    # Logging, an empty LOG_FILE disables the file handler
    LOG_FILE = os.getenv(
        "LOG_FILE",
        f"logs/backlog_sync_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log",
    )


@dataclass(frozen=True)
class Settings:
    """Per-run configuration handed to the API client, paths and downloader."""

    api_key: str
    space_id: str
    host: str = Config.BACKLOG_HOST
    page_size: int = Config.PAGE_SIZE
    base_dir: str = field(default_factory=lambda: Config.DOWNLOAD_DIR)
    chunk_size: int = Config.CHUNK_SIZE

    def validate(self):
        required = {"api_key": self.api_key, "space_id": self.space_id}
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise MissingArgumentError(
                f"Missing required settings: {', '.join(missing)}"
            )
        if self.page_size < 1:
            raise ConfigurationError("page_size must be a positive integer")
