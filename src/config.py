"""Environment-driven settings for the complaint desk."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from src.models.enums import StorageBackend

logger = logging.getLogger(__name__)

# Defaults
DEFAULT_MONGODB_DB = "univoice"
DEFAULT_MONGODB_COLLECTION = "complaints"
DEFAULT_DATA_DIR = Path("data/complaints")
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60.0
DEFAULT_RATE_LIMIT_MAX = 6
SECRET_HEADER = "X-Function-Secret"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _split_origins(raw: str) -> tuple[str, ...]:
    origins = tuple(part.strip() for part in raw.split(",") if part.strip())
    return origins or ("*",)


@dataclass
class Settings:
    """Configuration shared by the handlers, storage and CLI."""

    storage_backend: StorageBackend = StorageBackend.MEMORY
    mongodb_uri: str = ""
    mongodb_db: str = DEFAULT_MONGODB_DB
    mongodb_collection: str = DEFAULT_MONGODB_COLLECTION
    data_dir: Path = DEFAULT_DATA_DIR
    function_secret: str = ""
    rate_limit_window_seconds: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX
    allowed_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    audit_log_dir: Path | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.rate_limit_window_seconds <= 0:
            raise ValueError("rate_limit_window_seconds must be positive")
        if self.rate_limit_max < 1:
            raise ValueError("rate_limit_max must be at least 1")
        if self.storage_backend == StorageBackend.MONGO and not self.mongodb_uri:
            raise ValueError(
                "MONGODB_URI environment variable is required for the mongo backend"
            )

    @property
    def secret_required(self) -> bool:
        """Whether submissions must present the shared secret."""
        return bool(self.function_secret)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Optional environment variables:
            STORAGE_BACKEND: memory, file or mongo (default: memory)
            MONGODB_URI / MONGO_URI: MongoDB connection string
            MONGODB_DB: Database name (default: univoice)
            MONGODB_COLLECTION: Collection name (default: complaints)
            COMPLAINTS_DATA_DIR: Directory for the file backend
            FUNCTION_SECRET: Shared secret for submissions (default: disabled)
            RATE_LIMIT_WINDOW_SECONDS: Rate limit window (default: 60)
            RATE_LIMIT_MAX: Submissions per window per caller (default: 6)
            ALLOWED_ORIGINS: Comma-separated CORS origins (default: *)
            AUDIT_LOG_DIR: Audit log directory (default: disabled)
            LOG_LEVEL: Logging level (default: INFO)

        Raises:
            ValueError: If a variable is present but malformed.
        """
        backend_raw = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
        try:
            backend = StorageBackend(backend_raw)
        except ValueError:
            valid = ", ".join(b.value for b in StorageBackend)
            raise ValueError(
                f"STORAGE_BACKEND must be one of {valid}, got {backend_raw!r}"
            ) from None

        audit_dir = os.getenv("AUDIT_LOG_DIR", "").strip()

        return cls(
            storage_backend=backend,
            mongodb_uri=(
                os.getenv("MONGODB_URI", "").strip()
                or os.getenv("MONGO_URI", "").strip()
            ),
            mongodb_db=os.getenv("MONGODB_DB", DEFAULT_MONGODB_DB),
            mongodb_collection=os.getenv(
                "MONGODB_COLLECTION", DEFAULT_MONGODB_COLLECTION
            ),
            data_dir=Path(os.getenv("COMPLAINTS_DATA_DIR", str(DEFAULT_DATA_DIR))),
            function_secret=os.getenv("FUNCTION_SECRET", ""),
            rate_limit_window_seconds=_float_env(
                "RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW_SECONDS
            ),
            rate_limit_max=_int_env("RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
            allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS", "*")),
            audit_log_dir=Path(audit_dir) if audit_dir else None,
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler for entry points and the CLI."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
