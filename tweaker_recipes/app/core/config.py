import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    segment_output_dir: Path = Field(Path("segments"), alias="TWEAKER_SEGMENT_OUTPUT_DIR")
    segment_prefix: str = Field("segments", alias="TWEAKER_SEGMENT_PREFIX")
    segment_include_raw: bool = Field(True, alias="TWEAKER_SEGMENT_INCLUDE_RAW")
    dispatch_concurrency: int = Field(1, ge=1, alias="TWEAKER_DISPATCH_CONCURRENCY")
    dispatch_timeout_seconds: Optional[float] = Field(None, alias="TWEAKER_DISPATCH_TIMEOUT_SECONDS")
    # "surface" keeps results without a normalizer mapping as format="unsupported"
    unsupported_format_policy: Literal["surface", "drop"] = Field(
        "surface", alias="TWEAKER_UNSUPPORTED_FORMAT_POLICY"
    )
    stats_max_unhandled: int = Field(5, ge=0, alias="TWEAKER_STATS_MAX_UNHANDLED")

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
