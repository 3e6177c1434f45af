"""Parse money typed in pt-BR (or pasted from a settlement PDF) into a float."""

from __future__ import annotations

import math
import re
from typing import Optional, Union

_DISALLOWED = re.compile(r"[^\d.,-]")
_NUMERIC_PREFIX = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def normalize_number(value: Union[str, int, float, None]) -> float:
    """Convert a locale-formatted amount to a float. Never raises.

    Separator rules:
      - "50.889,20"    -> 50889.2   (dot = thousands, comma = decimal)
      - "123,45"       -> 123.45    (lone comma = decimal)
      - "1.234.567"    -> 1234567   (several dots = thousands)
      - "1.000"        -> 1000      (one dot, 3 fraction digits = thousands)
      - "123.45"       -> 123.45    (one dot otherwise = decimal)

    Unparseable input returns 0.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if not value:
        return 0.0

    clean = _DISALLOWED.sub("", str(value).strip())

    has_comma = "," in clean
    has_dot = "." in clean
    if has_comma and has_dot:
        clean = clean.replace(".", "").replace(",", ".", 1)
    elif has_comma:
        clean = clean.replace(",", ".", 1)
    elif has_dot:
        if clean.count(".") > 1:
            clean = clean.replace(".", "")
        else:
            fraction = clean.split(".", 1)[1]
            if len(fraction) == 3:
                clean = clean.replace(".", "")

    number = _parse_float_prefix(clean)
    if number is None or not math.isfinite(number):
        return 0.0
    return number


def _parse_float_prefix(text: str) -> Optional[float]:
    """Parse the longest leading number, ignoring trailing junk ("12-3" -> 12)."""
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(0))
