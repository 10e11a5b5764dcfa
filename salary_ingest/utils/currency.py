"""Currency parsing shared by the HTML and PDF parsers."""

import math
import re

_CURRENCY_NOISE_RE = re.compile(r"[$,\s]")


def parse_currency(text: str) -> float:
    """
    Parse a currency string such as "$100,000.00".

    Strips "$", "," and whitespace; anything that still does not parse
    (or is negative, NaN or infinite) becomes 0.

    Example:
        >>> parse_currency("$100,000.00")
        100000.0
        >>> parse_currency("n/a")
        0.0
    """
    if not text or not isinstance(text, str):
        return 0.0
    try:
        value = float(_CURRENCY_NOISE_RE.sub("", text))
    except ValueError:
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value
