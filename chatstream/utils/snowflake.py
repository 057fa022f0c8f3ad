"""Time-ordered 64-bit identifiers rendered as decimal strings."""

import re
import threading
import time
from dataclasses import dataclass
from typing import Any

import structlog

from chatstream.core.config import settings
from chatstream.core.settings import SnowflakeConfig

logger = structlog.get_logger()

EPOCH_MS = 1640995200000  # 2022-01-01T00:00:00Z
DATACENTER_ID_BITS = 5
MACHINE_ID_BITS = 5
SEQUENCE_BITS = 12

MAX_DATACENTER_ID = (1 << DATACENTER_ID_BITS) - 1
MAX_MACHINE_ID = (1 << MACHINE_ID_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1

MACHINE_ID_SHIFT = SEQUENCE_BITS
DATACENTER_ID_SHIFT = SEQUENCE_BITS + MACHINE_ID_BITS
TIMESTAMP_SHIFT = SEQUENCE_BITS + MACHINE_ID_BITS + DATACENTER_ID_BITS

_DIGITS = re.compile(r"^\d+$")


class ClockMovedBackwardsError(RuntimeError):
    """The wall clock went backwards; refusing to generate an id."""


@dataclass(frozen=True)
class SnowflakeParts:
    """Decomposed snowflake id."""

    timestamp_ms: int
    datacenter_id: int
    machine_id: int
    sequence: int


class SnowflakeIdGenerator:
    """Generate unique ids that sort by creation time."""

    def __init__(self, datacenter_id: int = 1, machine_id: int = 1) -> None:
        self.datacenter_id = datacenter_id & MAX_DATACENTER_ID
        self.machine_id = machine_id & MAX_MACHINE_ID
        self._sequence = 0
        self._last_timestamp = -1
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: SnowflakeConfig) -> "SnowflakeIdGenerator":
        return cls(datacenter_id=config.datacenter_id, machine_id=config.machine_id)

    @staticmethod
    def _now_ms() -> int:
        return time.time_ns() // 1_000_000

    def generate_id(self) -> str:
        with self._lock:
            timestamp = self._now_ms()
            if timestamp < self._last_timestamp:
                raise ClockMovedBackwardsError(
                    "Clock moved backwards. Refusing to generate id"
                )

            if timestamp == self._last_timestamp:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    timestamp = self._wait_next_millis(self._last_timestamp)
            else:
                self._sequence = 0

            self._last_timestamp = timestamp
            snowflake = (
                ((timestamp - EPOCH_MS) << TIMESTAMP_SHIFT)
                | (self.datacenter_id << DATACENTER_ID_SHIFT)
                | (self.machine_id << MACHINE_ID_SHIFT)
                | self._sequence
            )
            return str(snowflake)

    def _wait_next_millis(self, last_timestamp: int) -> int:
        timestamp = self._now_ms()
        while timestamp <= last_timestamp:
            timestamp = self._now_ms()
        return timestamp


def parse_snowflake_id(snowflake_id: str) -> SnowflakeParts:
    """Split an id back into timestamp, datacenter, machine and sequence."""
    value = int(snowflake_id)
    return SnowflakeParts(
        timestamp_ms=(value >> TIMESTAMP_SHIFT) + EPOCH_MS,
        datacenter_id=(value >> DATACENTER_ID_SHIFT) & MAX_DATACENTER_ID,
        machine_id=(value >> MACHINE_ID_SHIFT) & MAX_MACHINE_ID,
        sequence=value & MAX_SEQUENCE,
    )


def validate_snowflake_id(value: Any) -> tuple[bool, str, list[str]]:
    """Check an id's type and shape.

    Returns:
        Tuple of (is_valid, corrected string id, list of issues).
    """
    if value is None:
        return False, "", ["ID is None"]

    issues: list[str] = []
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        issues.append(f"ID has unexpected type: {type(value).__name__}")
    elif isinstance(value, int):
        issues.append("ID is an integer, expected a decimal string")

    corrected = str(value)
    if not _DIGITS.match(corrected):
        issues.append("ID contains non-numeric characters")
        return False, corrected, issues
    if not 15 <= len(corrected) <= 20:
        issues.append(f"ID length {len(corrected)} is outside expected range (15-20)")

    return not issues, corrected, issues


def ensure_snowflake_id_string(value: Any) -> str:
    """Coerce ``value`` to the canonical string form, logging any issues."""
    _, corrected, issues = validate_snowflake_id(value)
    if issues:
        logger.warning(
            "Snowflake id validation issues",
            original_id=value,
            corrected_id=corrected,
            issues=issues,
        )
    return corrected


snowflake_generator = SnowflakeIdGenerator.from_config(settings.snowflake)


def generate_snowflake_id() -> str:
    """Generate an id from the process-wide generator."""
    return snowflake_generator.generate_id()
