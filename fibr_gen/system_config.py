# fibr_gen/system_config.py
import logging
import os
from pathlib import Path
from typing import Optional

# Project root: the directory holding the fibr_gen package
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


class SystemConfig:
    """Process-level settings resolved from environment variables (and a project-root .env)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SystemConfig, cls).__new__(cls)
            cls._instance._load_env_file()
        return cls._instance

    def _load_env_file(self):
        """Load .env into os.environ without overriding variables that are already set."""
        env_path = PROJECT_ROOT / ".env"
        if not env_path.exists():
            return
        try:
            with open(env_path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip("'").strip('"')
                    if key and key not in os.environ:
                        os.environ[key] = value
            logger.info("Loaded .env file for environment configuration.")
        except OSError as e:
            logger.warning(f"Failed to read .env file: {e}")

    @property
    def config_path(self) -> Path:
        return self._resolve_path("FIBR_CONFIG", "test/config.yaml")

    @property
    def templates_dir(self) -> Path:
        return self._resolve_path("TEMPLATES_DIR", "test/templates")

    @property
    def output_dir(self) -> Path:
        return self._resolve_path("OUTPUT_DIR", "test/output")

    @property
    def csv_data_dir(self) -> Path:
        return self._resolve_path("CSV_DATA_DIR", "test/data_csv")

    @property
    def run_log_dir(self) -> Path:
        return self._resolve_path("RUN_LOG_DIR", "run_log")

    @property
    def fetcher(self) -> str:
        return os.getenv("FETCHER", "csv")

    @property
    def db_dsn(self) -> Optional[str]:
        return os.getenv("DB_DSN") or None

    def _resolve_path(self, env_key: str, default_relative: str) -> Path:
        env_val = os.getenv(env_key)
        if env_val:
            path_obj = Path(env_val)
            if path_obj.is_absolute():
                return path_obj.resolve()
            return (PROJECT_ROOT / path_obj).resolve()
        return (PROJECT_ROOT / default_relative).resolve()


# Singleton instance
sys_config = SystemConfig()
