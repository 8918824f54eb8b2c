"""
Centralized configuration management.

All application configuration is loaded and validated here. The analysis
engine itself never reads settings; the API layer passes values in.
"""
import os
import logging
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Application settings with validation."""

    # File upload settings
    max_file_size_mb: int = Field(default=50, ge=1, le=1000, description="Maximum file size in MB")
    max_dataset_rows: int = Field(default=1000, ge=100, le=100000, description="Maximum rows returned in a response")
    max_file_rows: int = Field(default=1000000, ge=1000, description="Maximum rows in uploaded file")
    max_file_columns: int = Field(default=1000, ge=10, description="Maximum columns in uploaded file")
    max_cell_size_bytes: int = Field(default=100000, ge=1000, description="Maximum cell value size in bytes")

    # Rate limiting / timeouts
    rate_limit_per_minute: int = Field(default=10, ge=1, le=1000, description="Rate limit per minute per IP")
    request_timeout_seconds: int = Field(default=300, ge=1, le=3600, description="Request timeout in seconds")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Analysis policy
    date_dayfirst: bool = Field(default=False, description="Read 01/02/2024 as 1 February instead of 2 January")
    recommendation_limit: int = Field(default=4, ge=1, le=20, description="Number of recommended charts")

    # Chart data shaping thresholds
    scatter_sample_threshold: int = Field(default=1000, ge=10, description="Rows above which scatter data is sampled")
    scatter_sample_size: int = Field(default=500, ge=10, description="Rows kept when sampling scatter data")
    bar_top_n: int = Field(default=20, ge=1, le=200, description="Categories kept for high-cardinality bar charts")
    pie_max_slices: int = Field(default=6, ge=1, le=50, description="Groups kept for pie/doughnut charts")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", "50")),
            max_dataset_rows=int(os.getenv("MAX_DATASET_ROWS", "1000")),
            max_file_rows=int(os.getenv("MAX_FILE_ROWS", "1000000")),
            max_file_columns=int(os.getenv("MAX_FILE_COLUMNS", "1000")),
            max_cell_size_bytes=int(os.getenv("MAX_CELL_SIZE_BYTES", "100000")),
            rate_limit_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "10")),
            request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "300")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            date_dayfirst=_env_bool("DATE_DAYFIRST"),
            recommendation_limit=int(os.getenv("RECOMMENDATION_LIMIT", "4")),
            scatter_sample_threshold=int(os.getenv("SCATTER_SAMPLE_THRESHOLD", "1000")),
            scatter_sample_size=int(os.getenv("SCATTER_SAMPLE_SIZE", "500")),
            bar_top_n=int(os.getenv("BAR_TOP_N", "20")),
            pie_max_slices=int(os.getenv("PIE_MAX_SLICES", "6")),
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
