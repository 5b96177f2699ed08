"""Application configuration handled via environment variables."""

# pylint: disable=invalid-name, arguments-differ

from pathlib import Path
from typing import Dict
import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# === Load .env and .env.local (if exists) ===
load_dotenv(dotenv_path=".env")
if Path(".env.local").exists():
    load_dotenv(dotenv_path=".env.local", override=True)

# === Dynamically detect project root ===
PROJECT_ROOT = Path(__file__).resolve().parent
FALLBACK_CACHE = PROJECT_ROOT / ".cache"
FALLBACK_CACHE.mkdir(parents=True, exist_ok=True)


class Config(BaseSettings):  # pylint: disable=too-few-public-methods
    """Centralized application settings."""

    # === General ===
    ENVIRONMENT: str = Field("development", env="ENVIRONMENT")
    DEBUG: bool = Field(True, env="DEBUG")
    PORT: int = Field(8000, env="PORT")

    # === Paths ===
    STORE_PATH: Path = Field(PROJECT_ROOT / "data/store.yaml", env="STORE_PATH")
    LOG_DIR: Path = Field(PROJECT_ROOT / "data/logs", env="LOG_DIR")
    DATA_ROOT: Path = Field(PROJECT_ROOT / "data", env="DATA_ROOT")

    # === Public links ===
    PUBLIC_ORIGIN: str = Field("http://localhost:8000", env="PUBLIC_ORIGIN")
    DEFAULT_LANG: str = Field("es", env="DEFAULT_LANG")
    REDIRECT_STATUS: int = Field(308, env="REDIRECT_STATUS")

    # === Subdomains ===
    MAIN_SUBDOMAIN: str = Field("mi-menu-komin", env="MAIN_SUBDOMAIN")
    # Hosts that map straight to a restaurant slug, e.g. a dedicated site.
    SUBDOMAIN_ALIASES: Dict[str, str] = Field(
        default_factory=dict, env="SUBDOMAIN_ALIASES"
    )

    # === Optional tokens ===
    API_KEY: str = Field(default="", env="API_KEY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def model_post_init(self, __context):  # type: ignore[override]
        """Expand user home in path settings and pick a writable data root."""
        self.STORE_PATH = self.STORE_PATH.expanduser()
        self.LOG_DIR = self.LOG_DIR.expanduser()
        data_root = PROJECT_ROOT / "data"
        use_fallback = False
        try:
            data_root.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            use_fallback = True
        else:
            if not os.access(data_root, os.W_OK):
                use_fallback = True
        if use_fallback:
            fallback_data = FALLBACK_CACHE / "data"
            fallback_data.mkdir(parents=True, exist_ok=True)
            self.STORE_PATH = fallback_data / self.STORE_PATH.name
            self.LOG_DIR = fallback_data / "logs"
            self.DATA_ROOT = fallback_data
        else:
            self.DATA_ROOT = data_root
        self.LOG_DIR.mkdir(parents=True, exist_ok=True)


config = Config()
