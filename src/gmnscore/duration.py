"""Rhythmic duration values.

A duration is a fraction of a whole note, kept in lowest terms. A whole
note is ``Duration(1, 1)``, a quarter note ``Duration(1, 4)``. Zero in
either term is not an error: it degrades to a whole note.
"""

from __future__ import annotations

import functools
import math
import re
from dataclasses import dataclass


RE_FRACTION = re.compile(r"^\s*(\d+)\s*(?:/\s*(\d+))?\s*$")


def _gcd(a: int, b: int) -> int:
    """GCD that never returns 0, so it is always safe to divide by."""
    if a == 0 or b == 0:
        return 1
    return math.gcd(a, b)


@functools.total_ordering
@dataclass(frozen=True, eq=True, order=False)
class Duration:
    num: int = 1
    denom: int = 1

    def __post_init__(self) -> None:
        num, denom = self.num, self.denom
        if num == 0 or denom == 0:
            num, denom = 1, 1
        g = _gcd(num, denom)
        object.__setattr__(self, "num", num // g)
        object.__setattr__(self, "denom", denom // g)

    @classmethod
    def parse_fraction(cls, text: str) -> Duration:
        """Read ``"3/8"`` or ``"2"`` into a Duration."""
        m = RE_FRACTION.match(text)
        if not m:
            raise ValueError(f"Invalid duration: {text!r}")
        return cls(int(m.group(1)), int(m.group(2) or 1))

    def as_float(self) -> float:
        return self.num / self.denom

    def __float__(self) -> float:
        return self.as_float()

    def __add__(self, other: Duration) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(
            self.num * other.denom + other.num * self.denom,
            self.denom * other.denom,
        )

    def __mul__(self, other: Duration) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.num * other.num, self.denom * other.denom)

    def __lt__(self, other: Duration) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.as_float() < other.as_float()

    def __str__(self) -> str:
        return f"{self.num}/{self.denom}"


WHOLE = Duration(1, 1)
