"""Convert note spellings to pitch numbers.

Supports three naming conventions plus the empty placeholder:
- Diatonic letters: c, d, e, f, g, a, b, h (h is the German b)
- Chromatic names: cis, dis, fis, gis, ais
- Solfege: do, re, mi (also me), fa, sol, la, si, ti
- empty: a pitchless placeholder, treated as c

Pitches are relative to c of octave 1:
- diatonic pitch  = step + 7 * (octave - 1)
- chromatic pitch = semitone + 12 * (octave - 1)

Accidentals are not part of the name and are applied separately
through ``ALTERATIONS``.
"""

from __future__ import annotations

# --- Diatonic letters (c = 0) ---
_DIATONIC_BASE: dict[str, tuple[int, int]] = {
    # spelling: (diatonic step, semitone)
    "c": (0, 0), "d": (1, 2), "e": (2, 4), "f": (3, 5),
    "g": (4, 7), "a": (5, 9), "b": (6, 11), "h": (6, 11),
}

# --- Chromatic names (raised diatonic letters) ---
_CHROMATIC_BASE: dict[str, tuple[int, int]] = {
    "cis": (0, 1), "dis": (1, 3), "fis": (3, 6),
    "gis": (4, 8), "ais": (5, 10),
}

# --- Solfege (do = c) ---
_SOLFEGE_BASE: dict[str, tuple[int, int]] = {
    "do": (0, 0), "re": (1, 2), "mi": (2, 4), "me": (2, 4),
    "fa": (3, 5), "sol": (4, 7), "la": (5, 9),
    "si": (6, 11), "ti": (6, 11),
}

_EMPTY_BASE: dict[str, tuple[int, int]] = {
    "empty": (0, 0),
}

_CONVENTIONS: dict[str, dict[str, tuple[int, int]]] = {
    "chromatic": _CHROMATIC_BASE,
    "diatonic": _DIATONIC_BASE,
    "solfege": _SOLFEGE_BASE,
    "empty": _EMPTY_BASE,
}

# Accidental spelling -> semitone alteration
ALTERATIONS: dict[str, int] = {
    "": 0,
    "#": 1,
    "&": -1,
    "##": 2,
    "&&": -2,
}


def _lookup(name: str) -> tuple[int, int]:
    for table in _CONVENTIONS.values():
        if name in table:
            return table[name]
    raise ValueError(f"Unknown note name: {name!r}")


def diatonic_step(name: str) -> int:
    """Scale step of a note spelling, c = 0 ... b = 6."""
    return _lookup(name)[0]


def semitone(name: str) -> int:
    """Semitone offset of a note spelling above c."""
    return _lookup(name)[1]


def diatonic_pitch(name: str, octave: int) -> int:
    return diatonic_step(name) + 7 * (octave - 1)


def chromatic_pitch(name: str, octave: int) -> int:
    return semitone(name) + 12 * (octave - 1)


def naming_system(name: str) -> str:
    """Return the convention a spelling belongs to.

    Returns: "chromatic", "diatonic", "solfege" or "empty"
    """
    for convention, table in _CONVENTIONS.items():
        if name in table:
            return convention
    raise ValueError(f"Unknown note name: {name!r}")


def detect_convention(names: list[str]) -> str:
    """Detect the dominant naming convention of a list of spellings.

    Chromatic names count as diatonic, since they are extensions of the
    letter names. Placeholders are ignored.

    Returns: "diatonic", "solfege", "mixed" or "unknown"
    """
    found = set()
    for name in names:
        convention = naming_system(name)
        if convention == "chromatic":
            convention = "diatonic"
        if convention != "empty":
            found.add(convention)

    if not found:
        return "unknown"
    if len(found) > 1:
        return "mixed"
    return found.pop()
