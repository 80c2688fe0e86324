"""Stability score derived from the most recent monthly returns."""

from __future__ import annotations

import logging
import statistics
from typing import List, Optional, Sequence

from .cache import ContentCache
from .monthly import MonthlyReturnExtractor
from .types import StabilityResult
from .utils import PathLike

LOGGER = logging.getLogger("signal_metrics.stability")

MIN_SCORE = 1.0
MAX_SCORE = 100.0
MEAN_EPSILON = 1e-4
WINDOW = 3
BREAK = "<br>"


def _clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


class StabilityCalculator:
    """
    Scores how steady a provider's recent monthly returns are.

    The score combines the relative standard deviation of up to three recent
    months with a data quality factor that favours full windows:

    * ``rsd = stddev / (|mean| + 1e-4)`` using the population deviation
    * ``base = max(1, 100 * (1 - rsd))``
    * ``final = clamp(base * (0.7 + 0.3 * n / 3), 1, 100)``

    Results for documents are memoized in the :class:`ContentCache`.
    """

    def __init__(self, cache: ContentCache, monthly: Optional[MonthlyReturnExtractor] = None) -> None:
        self._cache = cache
        self._monthly = monthly or MonthlyReturnExtractor(cache)

    def calculate(self, values: Sequence[float], labels: Optional[Sequence[str]] = None) -> StabilityResult:
        """Score *values*; *labels* are listed in the narrative when given."""

        values = list(values)
        labels = list(labels) if labels is not None else [f"{value!r}" for value in values]

        if len(values) < 2:
            narrative = (
                f"Insufficient data for stability analysis{BREAK}"
                f"Months available: {len(values)}{BREAK}"
                f"At least 2 months are required{BREAK}"
            )
            return StabilityResult(MIN_SCORE, narrative)

        mean = statistics.fmean(values)
        std_dev = statistics.pstdev(values)
        relative_std_dev = std_dev / (abs(mean) + MEAN_EPSILON)
        base = max(MIN_SCORE, 100.0 * (1.0 - relative_std_dev))
        quality = len(values) / WINDOW
        final = _clamp(base * (0.7 + 0.3 * quality))

        lines: List[str] = ["Monthly values used:"]
        lines.extend(f"- {label}" for label in labels)
        lines.extend(
            [
                "",
                f"Mean: {mean:.2f}%",
                f"Standard deviation: {std_dev:.2f}",
                f"Relative standard deviation: {relative_std_dev:.2f}",
                f"Base stability: {base:.2f}",
                f"Data quality factor: {quality:.2f}",
                f"Final stability: {final:.2f}",
            ]
        )
        return StabilityResult(final, BREAK.join(lines) + BREAK)

    def details(self, path: PathLike) -> StabilityResult:
        """Return the stability result of *path*, computing it at most once."""

        cached = self._cache.get_cached_stability(path)
        if cached is not None:
            return cached

        window = self._monthly.recent_entries(path)
        result = self.calculate([entry.percent for entry in window], [str(entry) for entry in window])
        LOGGER.debug("Stability for %s: %.2f", path, result.score)
        self._cache.cache_stability(path, result)
        return result

    def score(self, path: PathLike) -> float:
        return self.details(path).score
