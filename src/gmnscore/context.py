"""Mutable parse state threaded through every grammar production.

The context carries the implicit octave and duration that a note or rest
inherits when it omits them, and the registry of the last tag seen per
id. It also holds the tag schema and the validator, so the parser needs
no global state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from gmnscore.ast_nodes import Tag, TagId
from gmnscore.duration import WHOLE, Duration
from gmnscore.tag_definitions import TagDefinitions, TagValidator

logger = logging.getLogger(__name__)


class Context:
    def __init__(
        self,
        definitions: TagDefinitions | None = None,
        validator: TagValidator | None = None,
        octave: int = 1,
        duration: Duration = WHOLE,
    ) -> None:
        self.definitions = definitions if definitions is not None else TagDefinitions.load()
        self.validator = validator if validator is not None else TagValidator()
        self.octave = octave
        self.duration = duration
        self.tags: dict[TagId, Tag] = {}

    def add_tag(self, tag: Tag) -> None:
        logger.debug("Registered tag %s", tag.id.value)
        self.tags[tag.id] = tag

    def get_tag(self, tag_id: TagId) -> Tag | None:
        return self.tags.get(tag_id)

    def lookup_tag(self, name: str) -> TagId:
        return self.definitions.lookup(name)

    def validate(self, tag: Tag) -> None:
        self.validator.validate(tag, self.definitions)

    @contextmanager
    def transaction(self) -> Iterator[Context]:
        """Run a block whose state changes are kept only if it succeeds."""
        octave, duration, tags = self.octave, self.duration, dict(self.tags)
        try:
            yield self
        except BaseException:
            self.octave, self.duration, self.tags = octave, duration, tags
            raise
