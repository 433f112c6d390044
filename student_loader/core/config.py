import logging
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError

from student_loader.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Loader settings with environment variable support.

    All settings can be configured via .env file or environment variables.
    The object is built once at startup and passed explicitly to the store.
    """

    # =============================================================================
    # POSTGRESQL DATABASE - Individual components
    # =============================================================================
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "student_db"

    # Explicit URL wins; otherwise built from the components above
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    # =============================================================================
    # DATABASE POOL SETTINGS
    # =============================================================================
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_TIMEOUT: int = Field(default=30, ge=1)
    DB_POOL_RECYCLE: int = 3600
    DB_CONNECT_TIMEOUT: int = Field(default=10, ge=1)
    DB_ECHO_SQL: bool = False

    # =============================================================================
    # INPUT FILE
    # =============================================================================
    CSV_PATH: str = "data/students.csv"
    CSV_DELIMITER: str = ","
    CSV_STRICT: bool = False
    CSV_ENCODING: str = "utf-8-sig"

    # =============================================================================
    # TARGET TABLE
    # =============================================================================
    STUDENT_TABLE: str = Field(default="students", min_length=1)
    CREATE_TABLE: bool = True

    # =============================================================================
    # LOGGING
    # =============================================================================
    LOG_LEVEL: str = "INFO"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def build_database_url(cls, v: Optional[str], info) -> str:
        """
        Build DATABASE_URL from components if not provided.

        Priority:
        1. Use DATABASE_URL if explicitly set
        2. Build from POSTGRES_* components
        """
        if isinstance(v, str) and v:
            return v

        user = info.data.get("POSTGRES_USER")
        password = info.data.get("POSTGRES_PASSWORD")
        host = info.data.get("POSTGRES_HOST")
        port = info.data.get("POSTGRES_PORT")
        db = info.data.get("POSTGRES_DB")

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"

    @field_validator("DATABASE_URL")
    @classmethod
    def check_database_url(cls, v: str) -> str:
        """The URL must parse and its dialect and driver must be importable."""
        try:
            url = make_url(v)
        except ArgumentError as e:
            raise ValueError(f"not a valid database URL: {e}") from e
        try:
            url.get_dialect().import_dbapi()
        except (NoSuchModuleError, ImportError) as e:
            raise ValueError(f"database driver for '{url.drivername}' is not available: {e}") from e
        return v

    @field_validator("CSV_DELIMITER")
    @classmethod
    def check_delimiter(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("delimiter must be a single character")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{v}'")
        return level

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.DATABASE_URL).get_backend_name() == "sqlite"

    def describe(self) -> Dict[str, Any]:
        """Current configuration with the password hidden, for logging."""
        return {
            "database_url": make_url(self.DATABASE_URL).render_as_string(hide_password=True),
            "pool_size": self.DB_POOL_SIZE,
            "max_overflow": self.DB_MAX_OVERFLOW,
            "echo_sql": self.DB_ECHO_SQL,
            "csv_path": self.CSV_PATH,
            "csv_delimiter": self.CSV_DELIMITER,
            "csv_strict": self.CSV_STRICT,
            "table": self.STUDENT_TABLE,
            "create_table": self.CREATE_TABLE,
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def get_settings(**overrides: Any) -> Settings:
    """
    Build and validate settings.

    Keyword overrides take precedence over the environment and .env file.
    Raises ConfigurationError instead of pydantic's ValidationError so the
    caller can fail before touching the input file or the database.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        details = {}
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"]) or "settings"
            details[field] = error["msg"]
        raise ConfigurationError("Invalid loader configuration", details=details) from e
