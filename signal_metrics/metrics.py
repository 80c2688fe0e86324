"""
Scalar field extraction and the provider metrics orchestrator.

Balance and the textual equity drawdown are located by ordered lists of
matcher strategies; the first strategy that yields a parseable number wins.
Both fields are required: when every strategy misses,
:class:`~signal_metrics.exceptions.MissingFieldError` is raised so that batch
callers can decide between aborting and skipping.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup

from .cache import ContentCache
from .chart import ChartSeriesExtractor
from .exceptions import MissingFieldError, ParseFailureError
from .monthly import MonthlyReturnExtractor
from .stability import StabilityCalculator
from .types import ChartPoint, MonthlyReturn, ProviderMetrics
from .utils import PathLike, parse_locale_number

LOGGER = logging.getLogger("signal_metrics.metrics")

_LABEL_CLASS = "s-list-info__label"
_VALUE_CLASS = "s-list-info__value"
_AMOUNT = re.compile(r"^\s*([-−]?[\d\s.,']*\d)\s*[A-Z]{3}\b")
_LENIENT_BALANCE = re.compile(
    r"(?:Balance|Kontostand)\s*:?\s*([-−]?\d[\d\s.,']*)\s*[A-Z]{3}\b",
    re.IGNORECASE,
)
_STRICT_DRAWDOWN = re.compile(r"Maximaler[^%]*?([0-9]+(?:[.,][0-9]+)?)%", re.IGNORECASE | re.DOTALL)
_LENIENT_DRAWDOWN = re.compile(
    r"(?:drawdown|r(?:ü|ue)ckgang)[^%\d]{0,60}?(\d+(?:[.,]\d+)?)\s*%",
    re.IGNORECASE,
)


@dataclass
class ParsedDocument:
    """Raw text of a document together with its lazily built soup."""

    html: str
    _soup: Optional[BeautifulSoup] = None

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup

    @property
    def text(self) -> str:
        return self.soup.get_text(" ", strip=True)


@dataclass(frozen=True)
class FieldStrategy:
    """A named rule returning the raw numeric text of a field, or ``None``."""

    name: str
    find: Callable[[ParsedDocument], Optional[str]]


def _labeled_value(label: str) -> Callable[[ParsedDocument], Optional[str]]:
    pattern = re.compile(rf"^\s*{label}\s*:?\s*$", re.IGNORECASE)

    def find(document: ParsedDocument) -> Optional[str]:
        for node in document.soup.find_all(class_=_LABEL_CLASS):
            if not pattern.match(node.get_text()):
                continue
            value = node.find_next(class_=_VALUE_CLASS)
            if value is None:
                continue
            match = _AMOUNT.match(value.get_text(" "))
            if match:
                return match.group(1)
        return None

    return find


def _regex_group(pattern: re.Pattern, on_text: bool) -> Callable[[ParsedDocument], Optional[str]]:
    def find(document: ParsedDocument) -> Optional[str]:
        match = pattern.search(document.text if on_text else document.html)
        return match.group(1) if match else None

    return find


BALANCE_STRATEGIES: Sequence[FieldStrategy] = (
    FieldStrategy("balance-label", _labeled_value("Balance")),
    FieldStrategy("kontostand-label", _labeled_value("Kontostand")),
    FieldStrategy("lenient-currency", _regex_group(_LENIENT_BALANCE, on_text=True)),
)

DRAWDOWN_STRATEGIES: Sequence[FieldStrategy] = (
    FieldStrategy("strict-percent", _regex_group(_STRICT_DRAWDOWN, on_text=False)),
    FieldStrategy("lenient-percent", _regex_group(_LENIENT_DRAWDOWN, on_text=True)),
)


def resolve_field(
    document: ParsedDocument,
    strategies: Sequence[FieldStrategy],
    path: PathLike,
    field: str,
) -> float:
    """Run *strategies* in order and return the first parseable value.

    Raises:
        MissingFieldError: If no strategy yields a number.
    """

    for strategy in strategies:
        raw = strategy.find(document)
        if raw is None:
            continue
        try:
            value = parse_locale_number(raw)
        except ParseFailureError as exc:
            LOGGER.debug("Strategy %s found unparseable %s: %s", strategy.name, field, exc)
            continue
        LOGGER.debug("Resolved %s=%s for %s via %s", field, value, path, strategy.name)
        return value

    LOGGER.error("Could not resolve %s for %s", field, path)
    raise MissingFieldError(path, field)


def graphic_drawdown(series: Sequence[ChartPoint]) -> float:
    """Return the absolute value of the deepest point of *series*."""

    if not series:
        return 0.0
    return abs(min(point.percent for point in series))


def average_profit(window: Sequence[MonthlyReturn]) -> float:
    if not window:
        return 0.0
    return sum(entry.percent for entry in window) / len(window)


class ProviderMetricsExtractor:
    """Builds a :class:`ProviderMetrics` record for a root document."""

    def __init__(self, cache: Optional[ContentCache] = None, jitter_seed: Optional[int] = None) -> None:
        self.cache = cache or ContentCache()
        self.monthly = MonthlyReturnExtractor(self.cache)
        self.chart = ChartSeriesExtractor(self.cache, self.monthly, jitter_seed=jitter_seed)
        self.stability = StabilityCalculator(self.cache, self.monthly)

    def balance(self, path: PathLike) -> float:
        document = ParsedDocument(self.cache.get_text(path))
        return resolve_field(document, BALANCE_STRATEGIES, path, "balance")

    def equity_drawdown(self, path: PathLike) -> float:
        document = ParsedDocument(self.cache.get_text(path))
        return resolve_field(document, DRAWDOWN_STRATEGIES, path, "equity drawdown")

    def extract(self, path: PathLike, today: Optional[date] = None) -> ProviderMetrics:
        """Extract every metric of *path*.

        Raises:
            DocumentNotFoundError: If *path* does not exist.
            MissingFieldError: If balance or equity drawdown cannot be found.
        """

        document = ParsedDocument(self.cache.get_text(path))
        balance = resolve_field(document, BALANCE_STRATEGIES, path, "balance")
        equity_drawdown = resolve_field(document, DRAWDOWN_STRATEGIES, path, "equity drawdown")

        window = self.monthly.recent_entries(path)
        series: List[ChartPoint] = self.chart.extract(
            path, month_profit_text=self.monthly.month_profit_text(path), today=today
        )

        metrics = ProviderMetrics(
            source=str(path),
            balance=balance,
            equity_drawdown=equity_drawdown,
            graphic_drawdown=graphic_drawdown(series),
            average_3month_profit=average_profit(window),
            monthly_returns=tuple(self.monthly.all(path)),
            last_three_months=tuple(str(entry) for entry in window),
            chart_series=tuple(series),
            stability=self.stability.details(path),
        )
        LOGGER.info(
            "Extracted metrics for %s: balance=%.2f drawdown=%.2f stability=%.2f",
            path,
            metrics.balance,
            metrics.equity_drawdown,
            metrics.stability.score,
        )
        return metrics
