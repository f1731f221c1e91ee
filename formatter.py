"""
Formatting layer for the value stepper.

Converts between a numeric value and the text a shell shows for it.  The
display form is grouped (``1,234.5``) with a fixed ``.`` decimal point and
``,`` grouping separator regardless of the host locale; the editing form is
the same text without grouping separators.

Display precision follows the step: a step of ``0.25`` shows two fraction
digits, a step of ``10`` shows none.  ``parse(format(v))`` recovers ``v``
to that precision, which is all the round trip promises.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal

GROUPING_SEPARATOR = ","
DECIMAL_SEPARATOR = "."

# Tolerance used when deciding whether ``x * 10**d`` is integral.
FRACTION_TOLERANCE = 1e-5

# IEEE doubles carry ~15-17 significant digits; past this, digits are noise.
MAX_FRACTION_DIGITS = 15

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def fraction_digits_for_step(step: float) -> int:
    """Smallest ``d`` such that ``step * 10**d`` is (nearly) an integer."""
    value = abs(step)
    digits = 0
    # A nonzero value below one is never integral, however small it is.
    while (
        0 < value < 1 or abs(math.remainder(value, 1.0)) > FRACTION_TOLERANCE
    ) and digits < MAX_FRACTION_DIGITS:
        digits += 1
        value *= 10.0
    return digits


def decimal_places(number: float) -> int:
    """Exact count of decimals in the shortest repr of ``number``."""
    exponent = Decimal(repr(abs(number))).normalize().as_tuple().exponent
    return max(0, -exponent)


def quantize(value: float, digits: int) -> float:
    """Round ``value`` to ``digits`` decimals, folding ``-0.0`` into ``0.0``."""
    return round(value, digits) + 0.0


def strip_grouping(text: str) -> str:
    return text.replace(GROUPING_SEPARATOR, "")


def parse(text: str | None) -> float | None:
    """Parse display or raw text; ``None`` when it is not a finite number."""
    if text is None:
        return None
    candidate = strip_grouping(text).strip()
    if not _NUMBER_RE.match(candidate):
        return None
    value = float(candidate)
    if not math.isfinite(value):
        return None
    return value + 0.0


def format(
    value: float,
    min_fraction_digits: int = 0,
    max_fraction_digits: int = 0,
    grouping: bool = True,
) -> str:
    """Render ``value`` with between min and max fraction digits."""
    max_fraction_digits = max(min_fraction_digits, max_fraction_digits)
    rounded = quantize(value, max_fraction_digits)
    pattern = f",.{max_fraction_digits}f" if grouping else f".{max_fraction_digits}f"
    text = f"{rounded:{pattern}}"

    if max_fraction_digits > min_fraction_digits:
        whole, _, fraction = text.partition(DECIMAL_SEPARATOR)
        fraction = fraction.rstrip("0")
        if len(fraction) < min_fraction_digits:
            fraction = fraction.ljust(min_fraction_digits, "0")
        text = f"{whole}{DECIMAL_SEPARATOR}{fraction}" if fraction else whole
    return text


@dataclass(frozen=True)
class NumberFormat:
    """Fraction-digit window used by a stepper for both text forms."""

    min_fraction_digits: int = 0
    max_fraction_digits: int = 0

    @classmethod
    def for_step(
        cls,
        step: float,
        anchor: float = 0.0,
        min_fraction_digits: int = 0,
    ) -> NumberFormat:
        """Precision wide enough to show every point on the step grid."""
        digits = max(fraction_digits_for_step(step), fraction_digits_for_step(anchor))
        return cls(
            min_fraction_digits=min_fraction_digits,
            max_fraction_digits=max(digits, min_fraction_digits),
        )

    @property
    def precision(self) -> int:
        return self.max_fraction_digits

    def display(self, value: float) -> str:
        return format(value, self.min_fraction_digits, self.max_fraction_digits)

    def raw(self, value: float) -> str:
        return format(
            value, self.min_fraction_digits, self.max_fraction_digits, grouping=False
        )
