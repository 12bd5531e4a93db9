"""Parser for the score notation language.

Hand-written recursive descent over the raw text. Every production takes
the text, a start offset and the parse Context, and returns the offset
after what it consumed together with the node it built:

    score   ::= voice | '{' voice (',' voice)* '}'
    voice   ::= '[' event+ ']'
    event   ::= note | chord | rest | tag
    chord   ::= '{' event (','? event)* '}'
    rest    ::= '_' duration? dots
    tag     ::= ('\\' ident | '|') (':' digits)? ('<' param (',' param)* '>')?
                ('(' event+ ')')?
    note    ::= name accidental* octave? duration? dots
    duration::= ('*' digits ('/' digits)?) | ('/' digits) ; optional "ms"
    dots    ::= '.'{0,3}

Notes and rests that omit octave or duration take them from the Context,
and write back whatever they used. Tags are validated against the schema
held by the Context and registered there by id. The first error aborts
the whole parse.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, TypeVar

from gmnscore.ast_nodes import (
    Accidentals, Chord, Chromatic, Diatonic, Dots, EmptyName, Event, Note,
    NoteName, Rest, Score, Solfege, Tag, TagId, TagParam, TagType, Unit, Voice,
    event_duration,
)
from gmnscore.comments import strip_comments
from gmnscore.context import Context
from gmnscore.duration import Duration
from gmnscore.errors import ParamError, ParseError
from gmnscore.grammar.transformer import fold_score
from gmnscore.settings_parser import ParserSettings
from gmnscore.tag_definitions import TagDefinitions

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------- Regex patterns ----------

RE_WS = re.compile(r"\s*")

# Notes: longest spellings first, so chromatic names win over their
# diatonic prefix and solfege "do"/"fa" over the letters d/f
RE_NOTE_NAME = re.compile(
    r"empty|cis|dis|fis|gis|ais|sol|do|re|mi|me|fa|la|si|ti|[a-h]"
)
RE_ACCIDENTALS = re.compile(r"[#&]+")
RE_OCTAVE = re.compile(r"-?\d+")
RE_DURATION = re.compile(r"(?:\*(\d+)(?:/(\d+))?|/(\d+))(?:ms)?")
RE_DOTS = re.compile(r"\.{0,3}")

# Tags
RE_TAG_NAME = re.compile(r"\\([A-Za-z]+)")
RE_TAG_SUFFIX = re.compile(r":(\d+)")
RE_PARAM_NAME = re.compile(r"([A-Za-z][A-Za-z0-9]*)\s*=\s*")
RE_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
RE_UNIT = re.compile(r"mm|m|cm|in|pt|pc|hs")
RE_STRING = re.compile(r'"([^"\\]*)"')

_NOTE_NAMES: dict[str, NoteName] = {
    member.value: member
    for enum in (Chromatic, Diatonic, Solfege, EmptyName)
    for member in enum
}
_NOTE_NAMES["me"] = Solfege.MI

# Shape markers stripped from non-canonical tag names
_RANGE_MARKERS = (("Begin", TagType.BEGIN), ("End", TagType.END))


# ---------- Public entry points ----------

def parse_file(path: str | Path, definitions: TagDefinitions | None = None,
               settings: ParserSettings | None = None) -> Score:
    """Read a score file and parse it."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_text(text, definitions, settings)


def parse_text(text: str, definitions: TagDefinitions | None = None,
               settings: ParserSettings | None = None) -> Score:
    """Strip comments from raw document text and parse it into a Score."""
    settings = settings if settings is not None else ParserSettings()
    context = settings.make_context(definitions)
    score = parse_score(strip_comments(text), context)
    if settings.fold_ranges:
        score = fold_score(score)
    return score


def parse_score(text: str, context: Context | None = None) -> Score:
    """Parse comment-free text holding one voice or a braced voice list."""
    context = context if context is not None else Context()
    try:
        pos, voices = _parse_voices(text, _skip_ws(text, 0), context)
    except RecursionError:
        raise ParseError("Nesting too deep", 0, text) from None
    _expect_end(text, pos)
    score = Score.from_voices(voices)
    logger.debug("Parsed score: %d voice(s) on %d staff(s)",
                 len(voices), len(score.staffs))
    return score


def parse_voice(text: str, context: Context | None = None) -> Voice:
    return _parse_whole(text, context, _parse_voice)


def parse_event(text: str, context: Context | None = None) -> Event:
    return _parse_whole(text, context, _parse_event)


def parse_note(text: str, context: Context | None = None) -> Note:
    return _parse_whole(text, context, _parse_note)


def parse_chord(text: str, context: Context | None = None) -> Chord:
    return _parse_whole(text, context, _parse_chord)


def parse_rest(text: str, context: Context | None = None) -> Rest:
    return _parse_whole(text, context, _parse_rest)


def parse_tag(text: str, context: Context | None = None) -> Tag:
    return _parse_whole(text, context, _parse_tag)


def parse_tag_param(text: str) -> TagParam:
    pos, param = _parse_param(text, _skip_ws(text, 0))
    _expect_end(text, _skip_ws(text, pos))
    return param


def parse_duration(text: str) -> Duration:
    pos, duration = _parse_duration(text, 0)
    if duration is None:
        raise ParseError("Expected a duration", 0, text)
    _expect_end(text, pos)
    return duration


def parse_dots(text: str) -> Dots:
    pos, dots = _parse_dots(text, 0)
    _expect_end(text, pos)
    return dots


def parse_accidentals(text: str) -> Accidentals:
    pos, accidentals = _parse_accidentals(text, 0)
    _expect_end(text, pos)
    return accidentals


def _parse_whole(text: str, context: Context | None,
                 production: Callable[[str, int, Context], tuple[int, T]]) -> T:
    """Run one production over the whole text (surrounding whitespace allowed)."""
    context = context if context is not None else Context()
    try:
        pos, node = production(text, _skip_ws(text, 0), context)
    except RecursionError:
        raise ParseError("Nesting too deep", 0, text) from None
    _expect_end(text, _skip_ws(text, pos))
    return node


# ---------- Helpers ----------

def _skip_ws(text: str, pos: int) -> int:
    return RE_WS.match(text, pos).end()


def _expect_end(text: str, pos: int) -> None:
    if pos < len(text):
        raise ParseError(f"Unexpected character {text[pos]!r}", pos, text)


def _expect(text: str, pos: int, char: str, what: str) -> int:
    if pos >= len(text):
        raise ParseError(f"Unexpected end of input, expected {what}", pos, text)
    if text[pos] != char:
        raise ParseError(
            f"Unexpected character {text[pos]!r}, expected {what}", pos, text
        )
    return pos + 1


# ---------- Score / voices ----------

def _parse_voices(text: str, pos: int, ctx: Context) -> tuple[int, list[Voice]]:
    if pos < len(text) and text[pos] == "[":
        pos, voice = _parse_voice(text, pos, ctx)
        return _skip_ws(text, pos), [voice]

    pos = _expect(text, pos, "{", "'[' or '{'")
    voices: list[Voice] = []
    while True:
        pos, voice = _parse_voice(text, _skip_ws(text, pos), ctx)
        voices.append(voice)
        pos = _skip_ws(text, pos)
        if pos < len(text) and text[pos] == ",":
            pos += 1
            continue
        pos = _expect(text, pos, "}", "',' or '}' after voice")
        return _skip_ws(text, pos), voices


def _parse_voice(text: str, pos: int, ctx: Context) -> tuple[int, Voice]:
    pos = _expect(text, pos, "[", "'['")
    pos, events = _parse_event_list(text, pos, ctx, "]")

    # The staff is the last \staff tag seen so far, in this voice or before
    staff = 1
    staff_tag = ctx.get_tag(TagId.STAFF)
    if staff_tag is not None:
        number = _staff_number(staff_tag)
        if number is not None:
            staff = int(number)

    logger.debug("Parsed voice: %d event(s) on staff %d", len(events), staff)
    return pos, Voice(staff=staff, events=events)


def _staff_number(tag: Tag) -> float | None:
    """Staff number of a \\staff tag: first bare number, else ``id=``."""
    number = tag.as_number()
    if number is None:
        named = tag.param("id")
        if named is not None and named.is_number:
            number = float(named.value)
    return number


# ---------- Events ----------

def _parse_event_list(text: str, pos: int, ctx: Context,
                      close: str) -> tuple[int, list[Event]]:
    """Parse events up to and including the ``close`` delimiter.

    ``pos`` is just past the opening delimiter. Events may be separated
    by whitespace or a single comma.
    """
    events: list[Event] = []
    pos = _skip_ws(text, pos)

    while True:
        if pos >= len(text):
            raise ParseError(f"Unexpected end of input, missing {close!r}", pos, text)
        if text[pos] == close:
            if not events:
                raise ParseError(f"Expected an event before {close!r}", pos, text)
            return pos + 1, events
        if text[pos] == "," and events:
            pos = _skip_ws(text, pos + 1)
            if pos >= len(text) or text[pos] == close:
                raise ParseError("Expected an event after ','", pos, text)

        pos, event = _parse_event(text, pos, ctx)
        events.append(event)
        pos = _skip_ws(text, pos)


def _parse_event(text: str, pos: int, ctx: Context) -> tuple[int, Event]:
    """Dispatch on the first character. State changes made by a failed
    event are rolled back.
    """
    if pos >= len(text):
        raise ParseError("Unexpected end of input, expected an event", pos, text)

    ch = text[pos]
    if ch in "\\|":
        production = _parse_tag
    elif ch == "{":
        production = _parse_chord
    elif ch == "_":
        production = _parse_rest
    elif ch.isalpha():
        production = _parse_note
    else:
        raise ParseError(f"Unexpected character {ch!r}", pos, text)

    with ctx.transaction():
        return production(text, pos, ctx)


def _parse_note(text: str, pos: int, ctx: Context) -> tuple[int, Note]:
    m = RE_NOTE_NAME.match(text, pos)
    if m is None:
        raise ParseError("Expected a note name", pos, text)
    name = _NOTE_NAMES[m.group(0)]
    pos = m.end()

    pos, accidentals = _parse_accidentals(text, pos)

    octave = None
    m = RE_OCTAVE.match(text, pos)
    if m:
        octave = int(m.group(0))
        pos = m.end()

    pos, duration = _parse_duration(text, pos)
    pos, dots = _parse_dots(text, pos)

    octave = octave if octave is not None else ctx.octave
    duration = duration if duration is not None else ctx.duration
    ctx.octave = octave
    ctx.duration = duration

    return pos, Note(name, octave, accidentals, duration, dots)


def _parse_rest(text: str, pos: int, ctx: Context) -> tuple[int, Rest]:
    pos = _expect(text, pos, "_", "'_'")
    pos, duration = _parse_duration(text, pos)
    pos, dots = _parse_dots(text, pos)

    duration = duration if duration is not None else ctx.duration
    ctx.duration = duration

    return pos, Rest(duration, dots)


def _parse_chord(text: str, pos: int, ctx: Context) -> tuple[int, Chord]:
    pos = _expect(text, pos, "{", "'{'")
    pos, events = _parse_event_list(text, pos, ctx, "}")

    durations = [d for d in map(event_duration, events) if d is not None]
    duration = max(durations) if durations else ctx.duration

    return pos, Chord(tuple(events), duration)


# ---------- Rhythm primitives ----------

def _parse_accidentals(text: str, pos: int) -> tuple[int, Accidentals]:
    m = RE_ACCIDENTALS.match(text, pos)
    if m is None:
        return pos, Accidentals.NATURAL
    try:
        return m.end(), Accidentals(m.group(0))
    except ValueError:
        raise ParseError(f"Invalid accidentals {m.group(0)!r}", pos, text) from None


def _parse_duration(text: str, pos: int) -> tuple[int, Duration | None]:
    """Parse ``*n``, ``*n/d`` or ``/d``, with an optional ``ms`` marker.

    The marker is accepted and ignored: the numbers are used as they are.
    """
    m = RE_DURATION.match(text, pos)
    if m is None:
        if pos < len(text) and text[pos] in "*/":
            raise ParseError("Malformed duration", pos, text)
        return pos, None
    if m.group(3) is not None:
        return m.end(), Duration(1, int(m.group(3)))
    return m.end(), Duration(int(m.group(1)), int(m.group(2) or 1))


def _parse_dots(text: str, pos: int) -> tuple[int, Dots]:
    m = RE_DOTS.match(text, pos)
    return m.end(), Dots.from_count(len(m.group(0)))


# ---------- Tags ----------

def _parse_tag(text: str, pos: int, ctx: Context) -> tuple[int, Tag]:
    start = pos
    if text.startswith("|", pos):
        name = "|"
        pos += 1
    else:
        m = RE_TAG_NAME.match(text, pos)
        if m is None:
            raise ParseError("Expected a tag name after '\\'", pos, text)
        name = m.group(1)
        pos = m.end()

    tag_id, tag_type = _resolve_tag_name(name, ctx, start, text)
    pos = _skip_ws(text, pos)

    suffix = 0
    m = RE_TAG_SUFFIX.match(text, pos)
    if m:
        suffix = int(m.group(1))
        pos = _skip_ws(text, m.end())

    params: tuple[TagParam, ...] = ()
    if text.startswith("<", pos):
        pos, params = _parse_params(text, pos + 1)
        pos = _skip_ws(text, pos)

    events: tuple[Event, ...] = ()
    if text.startswith("(", pos):
        pos, nested = _parse_event_list(text, pos + 1, ctx, ")")
        events = tuple(nested)
        if tag_type is TagType.POSITION:
            tag_type = TagType.RANGE

    # Only Begin/End markers are paired by suffix
    if tag_type not in (TagType.BEGIN, TagType.END):
        suffix = 0

    tag = Tag(id=tag_id, type=tag_type, params=params, events=events, suffix=suffix)
    try:
        ctx.validate(tag)
    except ParseError as e:
        raise e.located(start, text) from None

    ctx.add_tag(tag)
    return pos, tag


def _resolve_tag_name(name: str, ctx: Context, start: int,
                      text: str) -> tuple[TagId, TagType]:
    """Map a written tag name to its id and the shape its spelling implies.

    ``slurBegin``/``slurEnd`` mark the two ends of a slur, but a name that
    is itself canonical (``repeatBegin``) is kept whole.
    """
    base, tag_type = name, TagType.POSITION
    if not ctx.definitions.is_canonical(name):
        for marker, marker_type in _RANGE_MARKERS:
            if name.endswith(marker) and len(name) > len(marker):
                base, tag_type = name[:-len(marker)], marker_type
                break

    try:
        return ctx.lookup_tag(base), tag_type
    except ParseError as e:
        raise e.located(start, text) from None


def _parse_params(text: str, pos: int) -> tuple[int, tuple[TagParam, ...]]:
    """Parse a parameter list; ``pos`` is just past the opening '<'."""
    params: list[TagParam] = []
    while True:
        pos, param = _parse_param(text, _skip_ws(text, pos))
        params.append(param)
        pos = _skip_ws(text, pos)
        if text.startswith(",", pos):
            pos += 1
            continue
        pos = _expect(text, pos, ">", "',' or '>' in tag parameters")
        return pos, tuple(params)


def _parse_param(text: str, pos: int) -> tuple[int, TagParam]:
    """Parse one parameter. Shapes are tried in priority order: named
    string, named number with unit, named number, string, number with
    unit, number.
    """
    name = None
    m = RE_PARAM_NAME.match(text, pos)
    if m:
        name = m.group(1)
        pos = m.end()

    if text.startswith('"', pos):
        m = RE_STRING.match(text, pos)
        if m is None:
            raise ParseError("Unterminated string", pos, text)
        if not m.group(1):
            raise ParamError("Empty string parameter", pos, text)
        return m.end(), TagParam(m.group(1), name=name)

    m = RE_NUMBER.match(text, pos)
    if m is None:
        raise ParamError("Invalid tag parameter", pos, text)
    value = float(m.group(0))
    pos = m.end()

    unit = None
    m = RE_UNIT.match(text, pos)
    if m:
        unit = Unit(m.group(0))
        pos = m.end()

    return pos, TagParam(value, unit, name)
