"""
Ingestion Configuration

Tunable thresholds and fallbacks, loaded from ``config/ingest.yaml``.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "STATEMENT_INGEST_CONFIG_DIR"


class IngestSettings(BaseModel):
    """Validated ingestion settings."""

    row_tolerance: float = Field(default=2.0, gt=0)
    column_threshold: float = Field(default=80.0, gt=0)
    fallback_withdrawal_x: float = 344.0
    fallback_deposit_x: float = 435.0
    fallback_balance_x: float = 517.0
    default_currency: str = "SGD"
    description_separator: str = " | "
    big_expense_ratio: float = Field(default=0.05, gt=0)
    big_expense_fallback: float = Field(default=500.0, ge=0)


def default_config_dir() -> Path:
    """Resolve the configuration directory.

    Returns:
        ``$STATEMENT_INGEST_CONFIG_DIR`` when set, else the repository ``config/``
    """
    env_dir = os.getenv(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path(__file__).parent.parent.parent / "config"


def load_settings(config_dir: Path | str | None = None) -> IngestSettings:
    """Load settings from ``ingest.yaml``, falling back to defaults.

    Args:
        config_dir: Directory holding ``ingest.yaml``

    Returns:
        IngestSettings instance
    """
    config_dir = Path(config_dir) if config_dir else default_config_dir()
    settings_file = config_dir / "ingest.yaml"

    if not settings_file.exists():
        logger.debug(f"No settings file at {settings_file}, using defaults")
        return IngestSettings()

    with open(settings_file) as f:
        data = yaml.safe_load(f) or {}

    return IngestSettings(**data)
