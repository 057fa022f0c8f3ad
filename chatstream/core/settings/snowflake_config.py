"""Snowflake id generator configuration."""

from pydantic import BaseModel, Field


class SnowflakeConfig(BaseModel, frozen=True):
    """Worker identity baked into every generated message id."""

    datacenter_id: int = Field(ge=0, le=31)
    machine_id: int = Field(ge=0, le=31)
