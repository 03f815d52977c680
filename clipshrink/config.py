from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from clipshrink.logger import get_logger

if TYPE_CHECKING:
    from clipshrink.settings_manager import SettingsManager

_logger = get_logger("config")


class OutputFormat(str, Enum):
    """Output codec preference. Values are the persisted representation."""

    ORIGINAL = "Original"
    PNG = "PNG"
    JPEG = "JPEG"
    HEIC = "HEIC"

    @classmethod
    def parse(cls, value: Any) -> OutputFormat:
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for fmt in cls:
            if fmt.value.lower() == text:
                return fmt
        raise ValueError(f"unknown output format: {value!r}")


@dataclass(frozen=True)
class TranscodeConfig:
    """Immutable snapshot of the user's transcode settings."""

    max_width: float = 1000.0
    use_custom_height: bool = False
    max_height: float = 1000.0
    output_format: OutputFormat = OutputFormat.ORIGINAL
    quality: float = 0.8
    strip_metadata: bool = True
    auto_shrink_enabled: bool = False

    @property
    def height_limit(self) -> float | None:
        """Height cap to apply, or None when the custom height is disabled."""
        return self.max_height if self.use_custom_height else None

    def with_value(self, field: str, value: Any) -> TranscodeConfig:
        return replace(self, **{field: coerce_config_value(field, value)})


CONFIG_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(TranscodeConfig))
DEFAULT_CONFIG = TranscodeConfig()


def _positive_dimension(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number, got {value!r}")
    v = float(value)
    if not math.isfinite(v) or v < 1:
        raise ValueError(f"{field} must be a number of at least 1 pixel, got {value!r}")
    return v


def _flag(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
    raise ValueError(f"{field} must be a boolean, got {value!r}")


def coerce_config_value(field: str, value: Any) -> Any:
    """Validate and normalize a single config field value.

    Raises KeyError for unknown fields and ValueError for values that cannot
    be represented. Quality is clamped into [0, 1] rather than rejected.
    """
    if field not in CONFIG_FIELDS:
        raise KeyError(field)
    if field in ("max_width", "max_height"):
        return _positive_dimension(field, value)
    if field == "quality":
        if isinstance(value, bool):
            raise ValueError(f"quality must be a number, got {value!r}")
        q = float(value)
        if math.isnan(q):
            raise ValueError("quality must not be NaN")
        return min(1.0, max(0.0, q))
    if field == "output_format":
        return OutputFormat.parse(value)
    return _flag(field, value)


def serialize_config_value(value: Any) -> Any:
    """Convert a coerced value into its JSON representation."""
    if isinstance(value, OutputFormat):
        return value.value
    return value


def config_from_settings(settings: SettingsManager) -> TranscodeConfig:
    """Build a snapshot from persisted settings, one key at a time."""
    values: dict[str, Any] = {}
    for name in CONFIG_FIELDS:
        if not settings.has(name):
            continue
        raw = settings.get(name)
        try:
            values[name] = coerce_config_value(name, raw)
        except (TypeError, ValueError) as e:
            _logger.warning("invalid setting %s=%r ignored: %s", name, raw, e)
    return replace(DEFAULT_CONFIG, **values)
