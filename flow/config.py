"""Dashboard settings read from ``FLOW_*`` environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlowSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FLOW_", frozen=True)

    data_path: Path = Path("data/transactions.json")
    horizon_years: int = Field(default=1, ge=1)
    verbose: bool = False
    log_json: bool = False
