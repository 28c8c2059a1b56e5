"""
Configuration for the navigation database.

Loaded from YAML and validated with pydantic; unknown keys are rejected.

Usage:
    from navi_generator.database.config_interface import load_config

    config = load_config("config/navi_database.yaml")
    config.max_rows_per_shard
"""
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DATABASE_NAME = "navi.sqlite"

# Maximum number of rows kept in one navi_data_{id} shard table
MAX_ROWS_PER_SHARD = 10000


class StrictModel(BaseModel):
    """Base model that forbids extra fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class DatabaseConfig(StrictModel):
    """Settings of the navigation database."""

    database_path: Path = Path(DEFAULT_DATABASE_NAME)
    max_rows_per_shard: int = Field(default=MAX_ROWS_PER_SHARD, gt=0)
    busy_timeout_s: float = Field(default=30.0, ge=0.0)


def load_config(config_path: Union[str, Path]) -> DatabaseConfig:
    """Load and validate configuration from a YAML file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    # An empty file means all defaults
    return DatabaseConfig.model_validate(raw_config or {})
