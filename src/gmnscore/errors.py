"""Exception hierarchy for gmnscore."""

from __future__ import annotations


class GmnError(Exception):
    """Base exception for all gmnscore errors."""


class ParseError(GmnError, ValueError):
    """The input does not follow the grammar.

    ``position`` is the character offset of the failure; ``line`` and
    ``column`` are 1-based and filled in when the source text is known.
    """

    def __init__(self, message: str, position: int | None = None,
                 text: str | None = None) -> None:
        self.message = message
        self.position = position
        self.line: int | None = None
        self.column: int | None = None
        if position is not None and text is not None:
            self.line = text.count("\n", 0, position) + 1
            self.column = position - (text.rfind("\n", 0, position) + 1) + 1
        super().__init__(self._format())

    def _format(self) -> str:
        if self.line is not None:
            return f"{self.message} (line {self.line}, column {self.column})"
        if self.position is not None:
            return f"{self.message} (at offset {self.position})"
        return self.message

    def located(self, position: int, text: str) -> ParseError:
        """Return a copy of this error pinned to ``position`` in ``text``."""
        return type(self)(self.message, position, text)


class UnknownTagError(ParseError):
    """A tag name is neither an alternative spelling nor a canonical id."""


class TagTypeError(ParseError):
    """A tag's shape (position, begin, end, range) disagrees with the schema."""


class ParamError(ParseError):
    """A tag parameter has the wrong literal shape."""


class SchemaError(GmnError):
    """The tag schema is incomplete or malformed.

    This is a configuration defect, not a problem with the parsed input.
    """


class RangeTagError(GmnError, ValueError):
    """Begin/End tags cannot be folded into range tags."""
