"""HTTP transport configuration for vendor streams."""

import httpx
from pydantic import BaseModel


class HttpConfig(BaseModel, frozen=True):
    """Timeouts applied to streaming vendor requests."""

    timeout_seconds: float
    connect_timeout_seconds: float

    def to_timeout(self) -> httpx.Timeout:
        """Build an httpx timeout from these settings."""
        return httpx.Timeout(self.timeout_seconds, connect=self.connect_timeout_seconds)
