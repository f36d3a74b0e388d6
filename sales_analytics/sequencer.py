# sales_analytics/sequencer.py
"""
Gap-filling of sparse aggregate rows into a dense, ordered bucket series.
"""
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple

from .fetcher import to_finite
from .windows import WindowSpec

@dataclass(frozen=True)
class Bucket:
    label: str
    value: float

def index_rows(spec: WindowSpec, rows: Iterable[Tuple[Hashable, float]]) -> Dict[Hashable, float]:
    """
    Maps each normalised bucket key to its total.

    Keys are truncated to the window's granularity before comparison, so two
    timestamps on the same day (or month, or year) land in the same bucket.
    """
    totals: Dict[Hashable, float] = {}
    for key, total in rows:
        normalised = spec.key(key)
        totals[normalised] = totals.get(normalised, 0.0) + to_finite(total)
    return totals

def fill_values(spec: WindowSpec, boundaries: Sequence, rows) -> List[float]:
    totals = index_rows(spec, rows)
    return [totals.get(spec.key(boundary), 0.0) for boundary in boundaries]

def fill_gaps(spec: WindowSpec, boundaries: Sequence, rows) -> List[Bucket]:
    """Returns one bucket per boundary, oldest first, zero where nothing was sold."""
    values = fill_values(spec, boundaries, rows)
    return [
        Bucket(label=spec.label(boundary), value=value)
        for boundary, value in zip(boundaries, values)
    ]
