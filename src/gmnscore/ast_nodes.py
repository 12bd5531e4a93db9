"""Score model produced by the parser.

The four event kinds (Note, Chord, Rest, Tag) form a closed union,
``Event``. Event nodes are frozen and hold their children in tuples, so
equality is structural and a deep copy always compares equal to its
source. Voice, Staff and Score are the assembled containers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Union

from gmnscore import note_converter
from gmnscore.duration import WHOLE, Duration


# --- Rhythm ---

class Dots(Enum):
    NONE = 0
    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3

    @classmethod
    def from_count(cls, count: int) -> Dots:
        return cls(min(count, 3))

    @property
    def count(self) -> int:
        return self.value

    def duration(self) -> Duration | None:
        """Extra fraction added by the dots: 1/2, 3/4, 7/8.

        ``None`` for no dots, since a zero Duration degrades to a whole.
        """
        if self is Dots.NONE:
            return None
        return Duration(2 ** self.value - 1, 2 ** self.value)

    def multiplier(self) -> Duration:
        """Factor applied to a base duration: 1, 3/2, 7/4, 15/8."""
        extra = self.duration()
        if extra is None:
            return WHOLE
        return WHOLE + extra


class Accidentals(Enum):
    NATURAL = ""
    SHARP = "#"
    FLAT = "&"
    DOUBLE_SHARP = "##"
    DOUBLE_FLAT = "&&"

    @property
    def alteration(self) -> int:
        return note_converter.ALTERATIONS[self.value]


# --- Note names ---

class _NoteNameMixin:
    """Pitch accessors shared by every naming system."""

    value: str

    def diatonic_pitch(self) -> int:
        return note_converter.diatonic_step(self.value)

    def chromatic_pitch(self) -> int:
        return note_converter.semitone(self.value)


class Diatonic(_NoteNameMixin, Enum):
    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    F = "f"
    G = "g"
    H = "h"


class Chromatic(_NoteNameMixin, Enum):
    CIS = "cis"
    DIS = "dis"
    FIS = "fis"
    GIS = "gis"
    AIS = "ais"


class Solfege(_NoteNameMixin, Enum):
    DO = "do"
    RE = "re"
    MI = "mi"
    FA = "fa"
    SOL = "sol"
    LA = "la"
    SI = "si"
    TI = "ti"


class EmptyName(_NoteNameMixin, Enum):
    """Placeholder name for a pitchless note."""
    EMPTY = "empty"


NoteName = Union[Diatonic, Chromatic, Solfege, EmptyName]


# --- Events ---

@dataclass(frozen=True)
class Note:
    name: NoteName
    octave: int = 1
    accidentals: Accidentals = Accidentals.NATURAL
    duration: Duration = WHOLE
    dots: Dots = Dots.NONE

    @classmethod
    def from_name(cls, name: NoteName) -> Note:
        return cls(name=name)

    def with_duration(self, num: int, denom: int) -> Note:
        return replace(self, duration=Duration(num, denom))

    def with_octave(self, octave: int) -> Note:
        return replace(self, octave=octave)

    def with_accidentals(self, accidentals: Accidentals) -> Note:
        return replace(self, accidentals=accidentals)

    def with_dots(self, dots: Dots) -> Note:
        return replace(self, dots=dots)

    def diatonic_pitch(self) -> int:
        return self.name.diatonic_pitch() + 7 * (self.octave - 1)

    def chromatic_pitch(self) -> int:
        return self.name.chromatic_pitch() + 12 * (self.octave - 1)

    def sounding_pitch(self) -> int:
        """Chromatic pitch including the accidental alteration."""
        return self.chromatic_pitch() + self.accidentals.alteration

    @property
    def has_stem(self) -> bool:
        return self.duration != WHOLE

    @property
    def num_beams(self) -> int:
        beams = {8: 1, 16: 2, 32: 3}.get(self.duration.denom)
        if beams is None:
            raise ValueError(f"No beam count for duration {self.duration}")
        return beams

    def full_duration(self) -> Duration:
        return self.duration * self.dots.multiplier()


@dataclass(frozen=True)
class Rest:
    duration: Duration = WHOLE
    dots: Dots = Dots.NONE

    def full_duration(self) -> Duration:
        return self.duration * self.dots.multiplier()


@dataclass(frozen=True)
class Chord:
    events: tuple[Event, ...] = ()
    duration: Duration = WHOLE


# --- Tags ---

class Unit(Enum):
    M = "m"
    CM = "cm"
    MM = "mm"
    IN = "in"
    PT = "pt"
    PC = "pc"
    HS = "hs"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TagParam:
    """A tag argument: ``1``, ``1cm``, ``"text"``, ``dx=1``, ``dx=1cm``
    or ``type="text"``.
    """
    value: float | str
    unit: Unit | None = None
    name: str | None = None

    @property
    def is_string(self) -> bool:
        return isinstance(self.value, str)

    @property
    def is_number(self) -> bool:
        return not self.is_string

    @property
    def kind(self) -> str:
        """One of number, numberUnit, string, varNumber, varNumberUnit,
        varString.
        """
        if self.is_string:
            base = "string"
        elif self.unit is not None:
            base = "numberUnit"
        else:
            base = "number"
        if self.name is None:
            return base
        return "var" + base[0].upper() + base[1:]


class TagType(Enum):
    ANY = "any"
    POSITION = "position"
    BEGIN = "begin"
    END = "end"
    RANGE = "range"


class TagId(Enum):
    # Accidentals
    ACCIDENTAL = "accidental"
    ALTER = "alter"

    # Articulations
    ACCENT = "accent"
    BOW = "bow"
    BREATH_MARK = "breathMark"
    FERMATA = "fermata"
    GLISSANDO = "glissando"
    MARCATO = "marcato"
    PEDAL_ON = "pedalOn"
    PEDAL_OFF = "pedalOff"
    PIZZICATO = "pizzicato"
    SLUR = "slur"
    STACCATO = "staccato"
    TENUTO = "tenuto"

    # Barlines
    BAR = "bar"
    BAR_FORMAT = "barFormat"
    DOUBLE_BAR = "doubleBar"
    END_BAR = "endBar"

    # Beaming
    BEAM = "beam"
    BEAMS_AUTO = "beamsAuto"
    BEAMS_OFF = "beamsOff"
    BEAMS_FULL = "beamsFull"
    F_BEAM = "fBeam"

    # Clef key meter
    CLEF = "clef"
    KEY = "key"
    METER = "meter"

    # Dynamics
    CRESCENDO = "crescendo"
    DECRESCENDO = "decrescendo"
    INTENSITY = "intensity"

    # Layout
    ACCOLADE = "accolade"
    NEW_PAGE = "newPage"
    NEW_LINE = "newLine"
    PAGE_FORMAT = "pageFormat"
    STAFF = "staff"
    STAFF_FORMAT = "staffFormat"
    STAFF_OFF = "staffOff"
    STAFF_ON = "staffOn"
    SYSTEM_FORMAT = "systemFormat"

    # Miscellaneous
    AUTO = "auto"
    SPACE = "space"
    SPECIAL = "special"

    # Notes
    CLUSTER = "cluster"
    CUE = "cue"
    DISPLAY_DURATION = "displayDuration"
    DOT_FORMAT = "dotFormat"
    GRACE = "grace"
    HARMONIC = "harmonic"
    MREST = "mrest"
    NOTE_FORMAT = "noteFormat"
    OCTAVA = "octava"
    REST_FORMAT = "restFormat"
    HEADS_CENTER = "headsCenter"
    HEADS_LEFT = "headsLeft"
    HEADS_RIGHT = "headsRight"
    HEADS_NORMAL = "headsNormal"
    HEADS_REVERSE = "headsReverse"
    STEMS_OFF = "stemsOff"
    STEMS_AUTO = "stemsAuto"
    STEMS_DOWN = "stemsDown"
    STEMS_UP = "stemsUp"
    TIE = "tie"
    TUPLET = "tuplet"

    # Ornaments
    ARPEGGIO = "arpeggio"
    MORDENT = "mordent"
    TRILL = "trill"
    TURN = "turn"

    # Repeat signs
    CODA = "coda"
    DA_CAPO = "daCapo"
    DA_CAPO_AL_FINE = "daCapoAlFine"
    DA_CODA = "daCoda"
    DAL_SEGNO = "dalSegno"
    DAL_SEGNO_AL_FINE = "dalSegnoAlFine"
    FINE = "fine"
    REPEAT_BEGIN = "repeatBegin"
    REPEAT_END = "repeatEnd"
    SEGNO = "segno"
    TREMOLO = "tremolo"
    VOLTA = "volta"

    # Tempo
    ACCELERANDO = "accelerando"
    RITARDANDO = "ritardando"
    TEMPO = "tempo"

    # Text
    COMPOSER = "composer"
    FINGERING = "fingering"
    FOOTER = "footer"
    HARMONY = "harmony"
    INSTRUMENT = "instrument"
    LYRICS = "lyrics"
    MARK = "mark"
    TEXT = "text"
    TITLE = "title"


@dataclass(frozen=True)
class Tag:
    id: TagId
    type: TagType = TagType.POSITION
    params: tuple[TagParam, ...] = ()
    events: tuple[Event, ...] = ()
    suffix: int = 0   # pairs xBegin:n with xEnd:n

    @classmethod
    def from_id(cls, id: TagId, type: TagType = TagType.POSITION) -> Tag:
        return cls(id=id, type=type)

    def with_type(self, type: TagType, suffix: int = 0) -> Tag:
        return replace(self, type=type, suffix=suffix)

    def with_param(self, param: TagParam) -> Tag:
        return replace(self, params=self.params + (param,))

    def with_event(self, event: Event) -> Tag:
        """Append a nested event; a Position tag becomes a Range tag."""
        type = TagType.RANGE if self.type is TagType.POSITION else self.type
        return replace(self, type=type, events=self.events + (event,))

    def has_params(self) -> bool:
        return bool(self.params)

    def as_number(self) -> float | None:
        """First parameter as a number, if it is a bare number."""
        if not self.has_params():
            return None
        first = self.params[0]
        if first.is_number and first.unit is None and first.name is None:
            return float(first.value)
        return None

    def param(self, name: str) -> TagParam | None:
        for p in self.params:
            if p.name == name:
                return p
        return None


Event = Union[Note, Chord, Rest, Tag]


def event_duration(event: Event) -> Duration | None:
    """Full duration of an event, or None if it has none."""
    if isinstance(event, (Note, Rest)):
        return event.full_duration()
    if isinstance(event, Chord):
        return event.duration
    durations = [d for d in map(event_duration, event.events) if d is not None]
    return max(durations) if durations else None


# --- Containers ---

@dataclass
class Voice:
    staff: int = 1
    events: list[Event] = field(default_factory=list)


@dataclass
class Staff:
    voices: list[Voice] = field(default_factory=list)


@dataclass
class Score:
    staffs: dict[int, Staff] = field(default_factory=dict)

    @classmethod
    def from_voices(cls, voices: list[Voice]) -> Score:
        """Group voices by staff number, keeping encounter order."""
        grouped: dict[int, Staff] = {}
        for voice in voices:
            grouped.setdefault(voice.staff, Staff()).voices.append(voice)
        return cls(staffs={n: grouped[n] for n in sorted(grouped)})

    def voices(self) -> Iterator[Voice]:
        for staff in self.staffs.values():
            yield from staff.voices
