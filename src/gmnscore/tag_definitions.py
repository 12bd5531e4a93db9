"""Tag schema: which shape each tag takes and which parameters it accepts.

The schema is a JSON object keyed by canonical tag id:

    {
      "accidental": {
        "type": "range",
        "alternatives": ["acc"],
        "params": [{"name": "style", "type": "string", "optional": true}]
      },
      ...
    }

- type: any, position, begin, end or range
- alternatives: other spellings that resolve to this id
- params: declared parameter slots, in positional order. Types are
  boolean, float, integer, string, stringOrInt and unit.

The packaged default lives in data/tag_defs.json. A schema is an explicit
value: build one with ``TagDefinitions.load()`` or ``from_dict()`` and hand
it to the parser.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gmnscore.ast_nodes import Tag, TagId, TagParam, TagType
from gmnscore.errors import ParamError, SchemaError, TagTypeError, UnknownTagError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = Path(__file__).parent / "data" / "tag_defs.json"

# The bar line shorthand is part of the grammar, not of the schema
FIXED_ALIASES: dict[str, TagId] = {"|": TagId.BAR}

PARAM_TYPES = ("boolean", "float", "integer", "string", "stringOrInt", "unit")

_BOOLEAN_WORDS = {"true", "false", "on", "off"}


@dataclass
class TagParamDefinition:
    name: str
    type: str
    optional: bool = True

    def accepts(self, param: TagParam) -> bool:
        """Whether a parsed parameter has a literal shape fit for this slot."""
        value = param.value
        if self.type == "string":
            return param.is_string
        if self.type == "unit":
            return param.is_number
        if self.type == "boolean":
            if param.is_string:
                return value in _BOOLEAN_WORDS
            return param.unit is None and value in (0, 1)
        if self.type == "float":
            return param.is_number and param.unit is None
        if self.type == "integer":
            return param.is_number and param.unit is None and float(value).is_integer()
        if self.type == "stringOrInt":
            if param.is_string:
                return True
            return param.unit is None and float(value).is_integer()
        return False


@dataclass
class TagDefinition:
    type: TagType
    alternatives: list[str] = field(default_factory=list)
    params: list[TagParamDefinition] = field(default_factory=list)

    def param(self, name: str) -> TagParamDefinition | None:
        for p in self.params:
            if p.name == name:
                return p
        return None


class TagDefinitions:
    """Lookup table from tag ids and spellings to their definitions."""

    def __init__(self, defs: dict[TagId, TagDefinition]) -> None:
        self._defs = dict(defs)
        self._aliases: dict[str, TagId] = dict(FIXED_ALIASES)
        for tag_id, definition in self._defs.items():
            for alt in definition.alternatives:
                if alt in self._aliases and self._aliases[alt] is not tag_id:
                    raise SchemaError(
                        f"Alternative {alt!r} is claimed by both "
                        f"{self._aliases[alt].value} and {tag_id.value}"
                    )
                self._aliases[alt] = tag_id

    @classmethod
    def load(cls, path: str | Path | None = None) -> TagDefinitions:
        """Load a JSON schema file (default: the packaged schema)."""
        path = Path(path) if path is not None else DEFAULT_SCHEMA
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SchemaError(f"Cannot load tag schema {path}: {e}") from e

        defs = cls.from_dict(data)
        logger.debug("Loaded %d tag definitions from %s", len(defs), path)
        return defs

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TagDefinitions:
        """Build a schema from an in-memory mapping shaped like the JSON file."""
        if not isinstance(data, dict):
            raise SchemaError("Tag schema must be an object keyed by tag id")

        defs: dict[TagId, TagDefinition] = {}
        for key, entry in data.items():
            try:
                tag_id = TagId(key)
            except ValueError:
                raise SchemaError(f"Unknown tag id in schema: {key!r}") from None
            defs[tag_id] = _parse_definition(key, entry)
        return cls(defs)

    def get(self, tag_id: TagId) -> TagDefinition | None:
        return self._defs.get(tag_id)

    def lookup(self, name: str) -> TagId:
        """Resolve a tag spelling: fixed aliases and alternatives first,
        then canonical ids (case-sensitive).
        """
        if name in self._aliases:
            return self._aliases[name]
        try:
            return TagId(name)
        except ValueError:
            raise UnknownTagError(f"Unknown tag: \\{name}") from None

    def is_canonical(self, name: str) -> bool:
        return name in TagId._value2member_map_

    def __contains__(self, tag_id: TagId) -> bool:
        return tag_id in self._defs

    def __len__(self) -> int:
        return len(self._defs)


def _parse_definition(key: str, entry: Any) -> TagDefinition:
    if not isinstance(entry, dict) or "type" not in entry:
        raise SchemaError(f"Schema entry {key!r} must declare a type")
    try:
        tag_type = TagType(entry["type"])
    except ValueError:
        raise SchemaError(
            f"Schema entry {key!r} has unknown type {entry['type']!r}"
        ) from None

    params = []
    for p in entry.get("params", []):
        if not isinstance(p, dict) or "name" not in p or "type" not in p:
            raise SchemaError(f"Malformed parameter declaration in {key!r}: {p!r}")
        if p["type"] not in PARAM_TYPES:
            raise SchemaError(
                f"Parameter {p['name']!r} of {key!r} has unknown type {p['type']!r}"
            )
        params.append(TagParamDefinition(
            name=p["name"], type=p["type"], optional=bool(p.get("optional", True)),
        ))

    return TagDefinition(
        type=tag_type,
        alternatives=list(entry.get("alternatives", [])),
        params=params,
    )


def type_accepted(found: TagType, expected: TagType) -> bool:
    """A position tag needs a position or any schema entry; every other
    shape is fine unless the schema insists on a position tag.
    """
    if found is TagType.POSITION:
        return expected in (TagType.POSITION, TagType.ANY)
    return expected is not TagType.POSITION


class TagValidator:
    """Checks parsed tags against a schema."""

    def __init__(self, strict_params: bool = False) -> None:
        self.strict_params = strict_params

    def validate(self, tag: Tag, defs: TagDefinitions) -> None:
        definition = defs.get(tag.id)
        if definition is None:
            raise SchemaError(f"Undefined tag id: {tag.id.value}")

        if not type_accepted(tag.type, definition.type):
            raise TagTypeError(
                f"Invalid tag type for \\{tag.id.value} "
                f"(expected: {definition.type.value}, found: {tag.type.value})"
            )

        if self.strict_params:
            self._validate_params(tag, definition)

    def _validate_params(self, tag: Tag, definition: TagDefinition) -> None:
        positional = [p for p in tag.params if p.name is None]
        for index, param in enumerate(positional):
            if index < len(definition.params):
                slot = definition.params[index]
                if not slot.accepts(param):
                    raise ParamError(
                        f"Parameter {index + 1} of \\{tag.id.value} "
                        f"({slot.name}) must be {slot.type}"
                    )

        for param in tag.params:
            if param.name is None:
                continue
            slot = definition.param(param.name)
            if slot is not None and not slot.accepts(param):
                raise ParamError(
                    f"Parameter {param.name} of \\{tag.id.value} must be {slot.type}"
                )
