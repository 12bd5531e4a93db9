"""Visitor over a parsed Score, and a text dump built on it."""

from __future__ import annotations

from gmnscore.ast_nodes import (
    Chord, Event, Note, Rest, Score, Staff, Tag, TagParam, TagType, Voice,
)
from gmnscore.duration import Duration


class ScoreVisitor:
    """Base visitor: every callback is a no-op.

    ``walk_score`` keeps ``depth`` current before each event callback:
    0 for events directly in a voice, 1 for members of a chord or tag at
    depth 0, and so on.
    """

    depth = 0

    def on_staff_begin(self, number: int, staff: Staff) -> None:
        pass

    def on_staff_end(self, number: int, staff: Staff) -> None:
        pass

    def on_voice(self, voice: Voice) -> None:
        pass

    def on_note(self, note: Note) -> None:
        pass

    def on_chord(self, chord: Chord) -> None:
        pass

    def on_rest(self, rest: Rest) -> None:
        pass

    def on_tag(self, tag: Tag) -> None:
        pass


def walk_score(score: Score, visitor: ScoreVisitor) -> None:
    """Call the visitor for every staff, voice and event, in document order."""
    for number, staff in score.staffs.items():
        visitor.on_staff_begin(number, staff)
        for voice in staff.voices:
            visitor.on_voice(voice)
            for event in voice.events:
                _walk_event(event, visitor, 0)
        visitor.on_staff_end(number, staff)


def _walk_event(event: Event, visitor: ScoreVisitor, depth: int) -> None:
    visitor.depth = depth
    if isinstance(event, Note):
        visitor.on_note(event)
    elif isinstance(event, Rest):
        visitor.on_rest(event)
    elif isinstance(event, Chord):
        visitor.on_chord(event)
    else:
        visitor.on_tag(event)

    if isinstance(event, (Chord, Tag)):
        for member in event.events:
            _walk_event(member, visitor, depth + 1)


# --- Text dump ---

def _format_duration(duration: Duration) -> str:
    return f"*{duration.num}/{duration.denom}"


def format_param(param: TagParam) -> str:
    if param.is_string:
        value = f'"{param.value}"'
    else:
        value = f"{param.value:g}{param.unit or ''}"
    return f"{param.name}={value}" if param.name else value


def format_event(event: Event) -> str:
    """One-line rendering of an event, without its members."""
    if isinstance(event, Note):
        return (f"{event.name.value}{event.accidentals.value}{event.octave}"
                f"{_format_duration(event.duration)}{'.' * event.dots.count}")
    if isinstance(event, Rest):
        return f"_{_format_duration(event.duration)}{'.' * event.dots.count}"
    if isinstance(event, Chord):
        return f"chord {_format_duration(event.duration)}"

    text = f"\\{event.id.value}"
    if event.type is TagType.BEGIN:
        text += f"Begin:{event.suffix}"
    elif event.type is TagType.END:
        text += f"End:{event.suffix}"
    if event.params:
        text += "<" + ", ".join(format_param(p) for p in event.params) + ">"
    if event.type is TagType.RANGE:
        text += " (range)"
    return text


class EventPrinter(ScoreVisitor):
    """Collects an indented listing of a score."""

    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent
        self.lines: list[str] = []

    def render(self, score: Score) -> str:
        self.lines = []
        walk_score(score, self)
        return "\n".join(self.lines)

    def _emit(self, level: int, text: str) -> None:
        self.lines.append(self.indent * level + text)

    def on_staff_begin(self, number: int, staff: Staff) -> None:
        self._emit(0, f"staff {number}")

    def on_voice(self, voice: Voice) -> None:
        self._emit(1, "voice")

    def on_note(self, note: Note) -> None:
        self._emit(self.depth + 2, format_event(note))

    def on_chord(self, chord: Chord) -> None:
        self._emit(self.depth + 2, format_event(chord))

    def on_rest(self, rest: Rest) -> None:
        self._emit(self.depth + 2, format_event(rest))

    def on_tag(self, tag: Tag) -> None:
        self._emit(self.depth + 2, format_event(tag))
