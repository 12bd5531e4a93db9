"""Parser settings and the JSON settings file that carries them.

A settings file is a JSON object such as:

    {
      "DefaultOctave": 1,
      "DefaultDuration": "1/4",
      "FoldRanges": true,
      "StrictParams": {"value": false},
      "Schema": "my_tags.json"
    }

Every entry is optional and may be wrapped as ``{"value": ...}``. A value
that cannot be read is logged and the default is kept. A relative schema
path is resolved against the settings file's directory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gmnscore.context import Context
from gmnscore.duration import WHOLE, Duration
from gmnscore.tag_definitions import TagDefinitions, TagValidator

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


@dataclass
class ParserSettings:
    """Configuration for one parse."""
    name: str = "default"

    # Inherited by the first note/rest that omits octave or duration
    default_octave: int = 1
    default_duration: Duration = WHOLE

    # Fold xBegin/xEnd pairs into range tags after parsing
    fold_ranges: bool = False

    # Check parameter literal shapes against the schema
    strict_params: bool = False

    # Tag schema file; None means the packaged one
    schema_path: Path | None = None

    def load_definitions(self) -> TagDefinitions:
        return TagDefinitions.load(self.schema_path)

    def make_context(self, definitions: TagDefinitions | None = None) -> Context:
        """Build a fresh parse context from these settings."""
        if definitions is None:
            definitions = self.load_definitions()
        return Context(
            definitions=definitions,
            validator=TagValidator(strict_params=self.strict_params),
            octave=self.default_octave,
            duration=self.default_duration,
        )


def _get_value(data: dict, key: str, default: Any = None) -> Any:
    """Extract a value, unwrapping ``{"value": ...}`` entries."""
    if key not in data:
        return default
    entry = data[key]
    if isinstance(entry, dict) and "value" in entry:
        return entry["value"]
    return entry


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_duration(value: Any) -> Duration:
    if isinstance(value, bool):
        raise TypeError(f"not a duration: {value!r}")
    if isinstance(value, int):
        return Duration(value, 1)
    if isinstance(value, list) and len(value) == 2:
        return Duration(int(value[0]), int(value[1]))
    if isinstance(value, str):
        return Duration.parse_fraction(value)
    raise TypeError(f"not a duration: {value!r}")


def _ignored(key: str, value: Any, path: Path, err: Exception) -> None:
    logger.warning("Ignoring %s=%r in %s: %s", key, value, path, err)


def parse_settings_file(path: str | Path) -> ParserSettings:
    """Parse a settings file.

    Args:
        path: Path to the JSON settings file

    Returns:
        ParserSettings with the values found, defaults elsewhere
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must hold a JSON object")

    settings = ParserSettings(name=path.stem)

    val = _get_value(data, "DefaultOctave")
    if val is not None:
        try:
            if isinstance(val, bool) or int(val) != float(val):
                raise ValueError("not an integer")
            settings.default_octave = int(val)
        except (ValueError, TypeError) as e:
            _ignored("DefaultOctave", val, path, e)

    val = _get_value(data, "DefaultDuration")
    if val is not None:
        try:
            settings.default_duration = _to_duration(val)
        except (ValueError, TypeError) as e:
            _ignored("DefaultDuration", val, path, e)

    val = _get_value(data, "FoldRanges")
    if val is not None:
        try:
            settings.fold_ranges = _to_bool(val)
        except ValueError as e:
            _ignored("FoldRanges", val, path, e)

    val = _get_value(data, "StrictParams")
    if val is not None:
        try:
            settings.strict_params = _to_bool(val)
        except ValueError as e:
            _ignored("StrictParams", val, path, e)

    val = _get_value(data, "Schema")
    if val is not None:
        if isinstance(val, str) and val:
            schema = Path(val)
            settings.schema_path = schema if schema.is_absolute() else path.parent / schema
        else:
            _ignored("Schema", val, path, ValueError("not a path"))

    logger.debug("Loaded settings %s from %s", settings, path)
    return settings
