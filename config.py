import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent


class ConfigError(ValueError):
    """Raised when an environment value cannot be used."""


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def _parse_port(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return 3000
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {raw!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")
    return port


@dataclass
class Settings:
    db_prefix: str = "mongodb://"
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "localhost:27017"
    db_params: str = ""
    db_name: str = "lessons_shop"
    database_url: Optional[str] = None
    port: int = 3000
    images_dir: Path = BASE_DIR / "images"
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def connection_string(self) -> str:
        """Full Mongo URI, either DATABASE_URL or the composed parts."""
        if self.database_url:
            return self.database_url
        return self._compose(quote_plus(self.db_password or ""))

    @property
    def safe_connection_string(self) -> str:
        """Connection string with the password masked, for logs."""
        if self.database_url:
            prefix, sep, rest = self.database_url.partition("://")
            if sep and "@" in rest:
                creds, _, host = rest.rpartition("@")
                user = creds.split(":", 1)[0]
                return f"{prefix}://{user}:****@{host}"
            return self.database_url
        return self._compose("****" if self.db_password else "")

    def _compose(self, password: str) -> str:
        host = self.db_host
        if self.db_user:
            creds = quote_plus(self.db_user)
            if password:
                creds += ":" + password
            if not host.startswith("@"):
                host = "@" + host
            return f"{self.db_prefix}{creds}{host}{self.db_params}"
        return f"{self.db_prefix}{host.lstrip('@')}{self.db_params}"

    @classmethod
    def from_env(cls) -> "Settings":
        images = os.getenv("IMAGES_DIR")
        return cls(
            db_prefix=os.getenv("DB_PREFIX", "mongodb://"),
            db_user=os.getenv("DB_USER") or None,
            db_password=os.getenv("DB_PASSWORD") or None,
            db_host=os.getenv("DB_HOST", "localhost:27017"),
            db_params=os.getenv("DB_PARAMS", ""),
            db_name=os.getenv("DB_NAME") or os.getenv("DATABASE_NAME") or "lessons_shop",
            database_url=os.getenv("DATABASE_URL") or None,
            port=_parse_port(os.getenv("PORT")),
            images_dir=Path(images) if images else BASE_DIR / "images",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
        )


@lru_cache()
def get_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
