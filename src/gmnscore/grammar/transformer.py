"""Post-parse passes over a parsed Score.

The parser keeps ``\\slurBegin ... \\slurEnd`` markers flat, exactly as
written. ``fold_range_tags`` turns each matching pair into one Range tag
that owns the events between the markers; ``validate_score`` reports
structural oddities without raising.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Iterable, Iterator

from gmnscore.ast_nodes import (
    Chord, Event, Score, Staff, Tag, TagId, TagType, Voice,
)
from gmnscore.errors import RangeTagError


def walk_events(events: Iterable[Event]) -> Iterator[Event]:
    """Yield events in document order, each container before its members."""
    for event in events:
        yield event
        if isinstance(event, (Chord, Tag)):
            yield from walk_events(event.events)


def collect_tag_ids(score: Score) -> set[TagId]:
    """Collect the ids of all tags in a score, nested ones included."""
    ids: set[TagId] = set()
    for voice in score.voices():
        for event in walk_events(voice.events):
            if isinstance(event, Tag):
                ids.add(event.id)
    return ids


# --- Begin/End folding ---

def _marker(tag: Tag) -> str:
    kind = "Begin" if tag.type is TagType.BEGIN else "End"
    return f"\\{tag.id.value}{kind}:{tag.suffix}"


def _fold_nested(event: Event) -> Event:
    if isinstance(event, (Chord, Tag)) and event.events:
        return replace(event, events=tuple(fold_range_tags(event.events)))
    return event


def fold_range_tags(events: Iterable[Event]) -> list[Event]:
    """Fold matching ``xBegin:n`` / ``xEnd:n`` pairs into Range tags.

    Pairs are matched within one event sequence (nested sequences are
    folded on their own). The folded tag keeps the Begin tag's params;
    its events are the Begin tag's nested events, everything between the
    markers, then the End tag's nested events. Pairs must nest properly.
    """
    root: list[Event] = []
    # Open Begin tags with the events collected for each so far
    stack: list[tuple[Tag, list[Event]]] = []

    for event in map(_fold_nested, events):
        if isinstance(event, Tag) and event.type is TagType.BEGIN:
            stack.append((event, list(event.events)))
            continue

        if isinstance(event, Tag) and event.type is TagType.END:
            if not stack:
                raise RangeTagError(f"{_marker(event)} has no matching Begin")
            begin, body = stack[-1]
            if (begin.id, begin.suffix) != (event.id, event.suffix):
                raise RangeTagError(
                    f"{_marker(event)} closes across open {_marker(begin)}"
                )
            stack.pop()
            body.extend(event.events)
            event = Tag(id=begin.id, type=TagType.RANGE,
                        params=begin.params, events=tuple(body))

        (stack[-1][1] if stack else root).append(event)

    if stack:
        raise RangeTagError(f"{_marker(stack[-1][0])} has no matching End")
    return root


def fold_score(score: Score) -> Score:
    """Return a copy of ``score`` with Begin/End pairs folded in every voice."""
    return Score(staffs={
        number: Staff(voices=[
            Voice(staff=voice.staff, events=fold_range_tags(voice.events))
            for voice in staff.voices
        ])
        for number, staff in score.staffs.items()
    })


# --- Validation ---

def validate_score(score: Score) -> list[str]:
    """Check a score for structural problems.

    Returns a list of warning messages (empty if the score looks sound).
    """
    warnings: list[str] = []

    if not score.staffs:
        warnings.append("Score has no staffs")

    for number, staff in score.staffs.items():
        if not staff.voices:
            warnings.append(f"Staff {number} has no voices")
        for index, voice in enumerate(staff.voices, start=1):
            where = f"Staff {number}, voice {index}"
            if not voice.events:
                warnings.append(f"{where} is empty")
            _check_markers(voice.events, where, warnings)

    return warnings


def _check_markers(events: list[Event], where: str, warnings: list[str]) -> None:
    """Count Begin and End markers per (id, suffix) across a voice."""
    begins: Counter = Counter()
    ends: Counter = Counter()
    for event in walk_events(events):
        if isinstance(event, Tag) and event.type is TagType.BEGIN:
            begins[event.id, event.suffix] += 1
        elif isinstance(event, Tag) and event.type is TagType.END:
            ends[event.id, event.suffix] += 1

    for (tag_id, suffix) in sorted(begins.keys() | ends.keys(),
                                   key=lambda k: (k[0].value, k[1])):
        opened, closed = begins[tag_id, suffix], ends[tag_id, suffix]
        if opened > closed:
            warnings.append(
                f"{where}: \\{tag_id.value}Begin:{suffix} has no matching End"
            )
        elif closed > opened:
            warnings.append(
                f"{where}: \\{tag_id.value}End:{suffix} has no matching Begin"
            )
