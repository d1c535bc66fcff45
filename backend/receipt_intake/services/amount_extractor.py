"""Heuristic total-amount extraction from OCR text.

Recognized text is noisy: thousands may be grouped with commas or
spaces and the grand total is not reliably labelled. Every money-looking
token is collected as a candidate and a selection strategy picks one.
The default strategy takes the largest value.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

# Commas and whitespace both act as thousands separators on receipts.
_SEPARATOR_RUN = re.compile(r"[,\s]+")

MONEY_PATTERN = re.compile(
    r"\b("
    r"\d{1,3}(?:\s\d{3})*\.\d{2}"  # 1 234.56
    r"|\d+\.\d{2}"  # 1234.56
    r"|\d{1,3}(?:\s\d{3})+"  # 1 234
    r")\b"
)

TOTAL_LABEL_PATTERN = re.compile(
    r"\b(?:grand\s*total|total|amount\s*due|balance\s*due|amount|balance|due|sum)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class MoneyCandidate:
    """A money-looking token found in recognized text."""

    raw: str
    value: float
    position: int = 0


SelectionStrategy = Callable[[str, list[MoneyCandidate]], MoneyCandidate]


def normalize_text(text: str) -> str:
    return _SEPARATOR_RUN.sub(" ", text)


def _parse_value(raw: str) -> Optional[float]:
    try:
        value = float(raw.replace(" ", ""))
    except ValueError:
        return None
    # Overlong digit runs overflow to inf.
    return value if math.isfinite(value) else None


def find_candidates(text: str) -> list[MoneyCandidate]:
    """All positive money candidates in *text*, positions relative to the normalized text."""
    if not text:
        return []
    normalized = normalize_text(text)
    candidates = []
    for match in MONEY_PATTERN.finditer(normalized):
        value = _parse_value(match.group(1))
        if value is None or value <= 0:
            continue
        candidates.append(MoneyCandidate(raw=match.group(1), value=value, position=match.start(1)))
    return candidates


def select_max(normalized: str, candidates: list[MoneyCandidate]) -> MoneyCandidate:
    """Largest value wins. Order-independent; ties keep the first occurrence."""
    return max(candidates, key=lambda c: c.value)


def select_last(normalized: str, candidates: list[MoneyCandidate]) -> MoneyCandidate:
    return max(candidates, key=lambda c: c.position)


def select_labelled(normalized: str, candidates: list[MoneyCandidate]) -> MoneyCandidate:
    """Nearest candidate following the last total-like label, else the maximum."""
    labels = list(TOTAL_LABEL_PATTERN.finditer(normalized))
    for label in reversed(labels):
        following = [c for c in candidates if c.position >= label.end()]
        if following:
            return min(following, key=lambda c: c.position - label.end())
    return select_max(normalized, candidates)


STRATEGIES: dict[str, SelectionStrategy] = {
    "max": select_max,
    "last": select_last,
    "labelled": select_labelled,
}


def extract_amount(
    text: str,
    strategy: SelectionStrategy = select_max,
) -> Optional[MoneyCandidate]:
    """Best-guess receipt total in *text*, or ``None`` when nothing looks like money.

    Never returns a zero or default amount and never raises for odd input.
    """
    candidates = find_candidates(text)
    if not candidates:
        return None
    return strategy(normalize_text(text), candidates)
