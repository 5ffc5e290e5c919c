"""Runtime value helpers for Anubhav.

The language has two scalar kinds, 64-bit floats and strings, plus numeric
arrays and string-keyed numeric dictionaries. Python's `float`, `str`,
`list` and `dict` represent them directly; this module holds the pieces
around them: error values, the tagged statement outcome, number
rendering and parsing, and the deterministic random source.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional
import math


@dataclass
class ErrorVal:
    """Represents an Anubhav error.

    Errors carry a category name (e.g. 'NameError', 'IOError') and a
    human readable message. The name is what TRY/CATCH and the CLI see.
    """
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


class OutcomeKind(Enum):
    NORMAL = 'normal'
    BREAK = 'break'
    CONTINUE = 'continue'
    RETURN = 'return'
    FAILURE = 'failure'


@dataclass(frozen=True)
class Outcome:
    """Result of executing a statement or a statement body.

    Control transfer (BREAK, CONTINUE, RETURN) and failures travel on the
    same return path but under distinct tags, so a loop can tell a BREAK
    apart from an error raised inside its body.
    """
    kind: OutcomeKind
    value: float = 0.0
    error: Optional[ErrorVal] = None

    @staticmethod
    def normal() -> 'Outcome':
        return NORMAL

    @staticmethod
    def brk() -> 'Outcome':
        return BREAK

    @staticmethod
    def cont() -> 'Outcome':
        return CONTINUE

    @staticmethod
    def ret(value: float) -> 'Outcome':
        return Outcome(OutcomeKind.RETURN, value)

    @staticmethod
    def failure(error: ErrorVal) -> 'Outcome':
        return Outcome(OutcomeKind.FAILURE, error=error)

    @property
    def is_normal(self) -> bool:
        return self.kind is OutcomeKind.NORMAL

    @property
    def is_failure(self) -> bool:
        return self.kind is OutcomeKind.FAILURE

    def __repr__(self) -> str:
        if self.kind is OutcomeKind.RETURN:
            return f"Outcome(return {format_number(self.value)})"
        if self.kind is OutcomeKind.FAILURE:
            return f"Outcome(failure {self.error!r})"
        return f"Outcome({self.kind.value})"


NORMAL = Outcome(OutcomeKind.NORMAL)
BREAK = Outcome(OutcomeKind.BREAK)
CONTINUE = Outcome(OutcomeKind.CONTINUE)


def round_half_away_from_zero(x: float) -> float:
    """Round a floating point number to the nearest integer away from zero.

    Python's built-in round uses bankers rounding, so we implement the
    rule the language requires: halves are rounded away from zero.
    Infinities and NaN pass through unchanged.
    """
    if math.isinf(x) or math.isnan(x):
        return x
    return float(math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5))


def _odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


def ieee_pow(base: float, exponent: float) -> float:
    """`base ** exponent` with IEEE-754 results instead of exceptions."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return -math.inf if base < 0 and _odd_integer(exponent) else math.inf
    except ValueError:
        if base == 0.0 and exponent < 0:
            negative = math.copysign(1.0, base) < 0 and _odd_integer(exponent)
            return -math.inf if negative else math.inf
        return math.nan


def ieee_fmod(a: float, b: float) -> float:
    """Truncated remainder (sign of the dividend); NaN where IEEE says so."""
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


def format_number(value: float) -> str:
    """Render a number the way the language prints it.

    Shortest round-trip digits, never an exponent, and integral values
    without a trailing '.0' (10.0 -> '10', 1e-7 -> '0.0000001').
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    text = repr(float(value))
    if 'e' in text or 'E' in text:
        text = format(Decimal(text), 'f')
    if text.endswith('.0'):
        text = text[:-2]
    return text


def parse_float(text: str) -> Optional[float]:
    """Strictly parse a decimal number, returning None when it is not one.

    Surrounding whitespace and digit separators are rejected, unlike
    Python's float().
    """
    if not text or text != text.strip() or '_' in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def to_count(value: float) -> int:
    """Truncate a float toward zero for use as a count or index.

    Negative values and NaN become 0; +inf saturates.
    """
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return 2 ** 63 - 1
    return int(value)


class Lcg:
    """Linear congruential generator behind RANDOM() and SHUFFLE.

    Not cryptographically secure; it exists so that runs are reproducible
    bit for bit from the same seed and draw sequence.
    """
    MULTIPLIER = 1664525
    INCREMENT = 1013904223
    MODULUS = 2 ** 32

    def __init__(self, seed: int = 12345):
        self.seed = seed

    def next_float(self) -> float:
        self.seed = (self.seed * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self.seed / self.MODULUS
