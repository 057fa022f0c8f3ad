"""Domain-specific configuration models."""

from chatstream.core.settings.http_config import HttpConfig
from chatstream.core.settings.llm_config import LLMConfig
from chatstream.core.settings.snowflake_config import SnowflakeConfig
from chatstream.core.settings.title_config import TitleConfig

__all__ = [
    "HttpConfig",
    "LLMConfig",
    "SnowflakeConfig",
    "TitleConfig",
]
