"""
Configuration Management for the salary ingestion pipeline

This module provides centralized configuration management with:
- Environment variable loading
- Type validation
- Sensible defaults
- Configuration documentation
"""

import os
from pathlib import Path
from typing import Callable, List, Optional, Union
from dotenv import load_dotenv

from salary_ingest.core.errors import ConfigurationError


def _env_number(
    name: str,
    default: str,
    cast: Callable[[str], Union[int, float]],
    errors: List[str],
) -> Union[int, float]:
    """Read a numeric setting; a bad value is recorded in errors and the default is used."""
    raw = os.getenv(name, default).strip()
    try:
        return cast(raw)
    except ValueError:
        kind = "an integer" if cast is int else "a number"
        errors.append(f"{name} must be {kind}, got {raw!r}")
        return cast(default)


class Config:
    """
    Application configuration loaded from environment variables.

    All configuration is read from configs/.env file or environment variables.
    See configs/.env.example for documentation of all settings.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)
        parse_errors: List[str] = []

        # === Supabase Configuration ===
        self.supabase_enabled: bool = os.getenv("SUPABASE_ENABLED", "1") not in {"0", "false", "False"}
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.salary_table: str = os.getenv("SALARY_TABLE", "salary_records")
        self.load_batch_size: int = _env_number("LOAD_BATCH_SIZE", "100", int, parse_errors)

        # === Source Configuration ===
        self.umsalary_base_url: str = os.getenv("UMSALARY_BASE_URL", "https://www.umsalary.info")
        self.pdf_url: Optional[str] = os.getenv("PDF_URL") or None
        self.pdf_dir: Path = Path(os.getenv("PDF_DIR", "salaries"))

        # === Fetch / politeness Configuration ===
        self.request_delay_s: float = _env_number("REQUEST_DELAY_S", "1.5", float, parse_errors)
        self.fetch_max_retries: int = _env_number("FETCH_MAX_RETRIES", "2", int, parse_errors)
        self.fetch_backoff_s: float = _env_number("FETCH_BACKOFF_S", "2.0", float, parse_errors)
        self.http_timeout_s: float = _env_number("HTTP_TIMEOUT_S", "30", float, parse_errors)

        # === Failure ledger ===
        self.failures_log: Path = Path(os.getenv("FAILURES_LOG", "import-failures.log"))

        # === Logging Configuration ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: Path = Path(os.getenv("LOG_DIR", "logs"))

        if parse_errors:
            raise ConfigurationError(
                "Configuration could not be parsed:\n" + "\n".join(f"  - {e}" for e in parse_errors)
            )

    def validate(self, require_store: bool = True) -> None:
        """
        Validate required configuration is present.

        Args:
            require_store: Whether Supabase credentials are needed (False for dry runs)

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        errors = []

        if require_store:
            if not self.supabase_enabled:
                errors.append("SUPABASE_ENABLED is off; use --dry-run to parse without a store")
            else:
                if not self.supabase_url:
                    errors.append("SUPABASE_URL is required when Supabase is enabled")
                if not self.supabase_service_role_key:
                    errors.append("SUPABASE_SERVICE_ROLE_KEY is required when Supabase is enabled")

        if self.load_batch_size <= 0:
            errors.append(f"LOAD_BATCH_SIZE must be positive, got {self.load_batch_size}")

        if self.request_delay_s < 0:
            errors.append(f"REQUEST_DELAY_S must be non-negative, got {self.request_delay_s}")

        if self.fetch_max_retries < 0:
            errors.append(f"FETCH_MAX_RETRIES must be non-negative, got {self.fetch_max_retries}")

        if self.fetch_backoff_s <= 0:
            errors.append(f"FETCH_BACKOFF_S must be positive, got {self.fetch_backoff_s}")

        if self.http_timeout_s <= 0:
            errors.append(f"HTTP_TIMEOUT_S must be positive, got {self.http_timeout_s}")

        if errors:
            raise ConfigurationError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  supabase_enabled={self.supabase_enabled},\n"
            f"  supabase_url={self.supabase_url or 'NOT SET'},\n"
            f"  supabase_service_role_key={'***' if self.supabase_service_role_key else 'NOT SET'},\n"
            f"  salary_table={self.salary_table},\n"
            f"  request_delay_s={self.request_delay_s},\n"
            f"  fetch_max_retries={self.fetch_max_retries},\n"
            f"  failures_log={self.failures_log},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance

    Example:
        >>> config = get_config()
        >>> print(config.salary_table)
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config
