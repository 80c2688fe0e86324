"""
Type definitions and dataclasses for signal-metrics.

This module defines the value objects passed between the extractors, the
orchestrator and the report renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True, slots=True)
class MonthlyReturn:
    """
    One cell of the monthly return table.

    Attributes:
        year: Four digit calendar year
        month: Month number, 1..12
        percent: Monthly return in percent
    """
    year: int
    month: int
    percent: float

    @property
    def key(self) -> str:
        return f"{self.year:04d}/{self.month:02d}"

    def __str__(self) -> str:
        return f"{self.key}:{self.percent!r}"


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """A projected point of the drawdown chart."""

    date: str
    percent: float


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar range covered by the drawdown chart."""

    start: date
    end: date

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True, slots=True)
class AxisCalibration:
    """Maps vertical pixel positions to percent values."""

    top_y: float
    bottom_y: float
    top_percent: float
    bottom_percent: float

    def value_at(self, y: float) -> float:
        if abs(self.top_y - self.bottom_y) < 1e-6:
            return self.top_percent
        fraction = (y - self.top_y) / (self.bottom_y - self.top_y)
        fraction = max(0.0, min(1.0, fraction))
        return self.top_percent + fraction * (self.bottom_percent - self.top_percent)


@dataclass(frozen=True, slots=True)
class StabilityResult:
    """
    Stability score of a provider and the narrative explaining it.

    Attributes:
        score: Value in [1, 100]
        narrative: Markup (``<br>`` separated) listing inputs and intermediates
    """
    score: float
    narrative: str


@dataclass(frozen=True, slots=True)
class ProviderMetrics:
    """
    Every metric extracted from a single root document.

    Attributes:
        source: Path of the root document
        balance: Account balance
        equity_drawdown: Drawdown as stated in the page text
        graphic_drawdown: Drawdown derived from the chart series
        average_3month_profit: Mean of the recent monthly window
        monthly_returns: Sorted ``YYYY/MM:value`` strings
        last_three_months: Recent window as ``YYYY/MM:value`` strings
        chart_series: Unordered projected chart points
        stability: Stability score and narrative
    """
    source: str
    balance: float
    equity_drawdown: float
    graphic_drawdown: float
    average_3month_profit: float
    monthly_returns: Tuple[str, ...]
    last_three_months: Tuple[str, ...]
    chart_series: Tuple[ChartPoint, ...]
    stability: StabilityResult


@dataclass
class BatchResult:
    """
    Result of a batch conversion run.

    Attributes:
        total: Number of root documents discovered
        converted: Number of reports written
        skipped: Documents skipped (missing file or skipped field errors)
        failed: Documents that raised a conversion error
        cancelled: Whether the run stopped on a cancellation request
        reports: Paths of the written reports
        errors: One entry per skipped or failed document
    """
    total: int
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    reports: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            "BatchResult(total={total}, converted={converted}, skipped={skipped}, "
            "failed={failed}, cancelled={cancelled})"
        ).format(
            total=self.total,
            converted=self.converted,
            skipped=self.skipped,
            failed=self.failed,
            cancelled=self.cancelled,
        )
