import math
import statistics
from typing import List, Optional, Sequence

import regex

EMOJI_PATTERN = regex.compile(r"\p{Emoji_Presentation}|\p{Extended_Pictographic}")


def total(items: Sequence[float]) -> float:
    return sum(items) if items else 0


def mean(items: Sequence[float]) -> Optional[float]:
    if not items:
        return None
    return statistics.fmean(items)


def median(items: Sequence[float]) -> Optional[float]:
    """Middle value of ``items`` under numeric ordering.

    Even-length input averages the two central values.
    """
    if not items:
        return None
    return float(statistics.median(items))


def variance(items: Sequence[float]) -> Optional[float]:
    """Population variance (mean squared deviation from the mean)."""
    if not items:
        return None
    return float(statistics.pvariance(items))


def stdev(items: Sequence[float]) -> Optional[float]:
    if not items:
        return None
    return math.sqrt(variance(items))


def extract_emojis(text: str) -> List[str]:
    """Distinct pictographic characters in ``text`` in order of first appearance."""
    return list(dict.fromkeys(EMOJI_PATTERN.findall(text or "")))
