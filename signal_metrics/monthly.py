"""Monthly return table extraction."""

from __future__ import annotations

import logging
import re
from datetime import MINYEAR
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from bs4 import BeautifulSoup

from .cache import ContentCache
from .exceptions import ParseFailureError
from .types import MonthlyReturn
from .utils import PathLike, parse_percent

LOGGER = logging.getLogger("signal_metrics.monthly")

MONTHS_PER_ROW = 12
_YEAR_LABEL = re.compile(r"\d{4}")
_MONTH_PROFIT_PAIR = re.compile(r"(\d{4})/(\d{1,2})\s*=\s*([^,\s]+)")


def parse_table_rows(html: str) -> List[MonthlyReturn]:
    """Return the monthly returns found in *html* in discovery order.

    A row is any ``<tr>`` whose first cell is a four digit year followed by at
    least twelve cells. Scanning stops for the whole document as soon as a
    ``YYYY/MM`` key repeats; the entries seen before the repeat are returned.
    """

    soup = BeautifulSoup(html, "html.parser")
    entries: List[MonthlyReturn] = []
    seen = set()

    for row in soup.find_all("tr"):
        cells = row.find_all(["td", "th"], recursive=False)
        if len(cells) < MONTHS_PER_ROW + 1:
            continue
        label = cells[0].get_text(strip=True)
        if not _YEAR_LABEL.fullmatch(label):
            continue
        year = int(label)
        if year < MINYEAR:
            LOGGER.debug("Skipping row with year label %s", label)
            continue

        for month, cell in enumerate(cells[1 : MONTHS_PER_ROW + 1], start=1):
            key = f"{year:04d}/{month:02d}"
            try:
                percent = parse_percent(cell.get_text(strip=True))
            except ParseFailureError as exc:
                LOGGER.debug("Skipping cell %s: %s", key, exc)
                continue
            if percent is None:
                continue

            if key in seen:
                LOGGER.debug("Duplicate month %s, stopping table scan", key)
                return entries
            seen.add(key)
            entries.append(MonthlyReturn(year, month, percent))

    return entries


def plain_number(value: float) -> str:
    """Shortest round-tripping representation of *value* without an exponent."""

    return format(Decimal(repr(value)), "f")


def format_month_profit(entries: Iterable[MonthlyReturn]) -> str:
    """Render entries as the ``YYYY/MM=value,...`` report field."""

    ordered = sorted(entries, key=lambda entry: entry.key)
    return ",".join(f"{entry.key}={plain_number(entry.percent)}" for entry in ordered)


def parse_month_profit(text: str) -> Dict[Tuple[int, int], float]:
    """Read a ``MonthProfitProz`` value back into a ``(year, month)`` map.

    Values go through the same normalization as table cells. Pairs with an
    unparseable value or an out-of-range year or month are ignored.
    """

    result: Dict[Tuple[int, int], float] = {}
    for year, month, raw in _MONTH_PROFIT_PAIR.findall(text or ""):
        year_number, month_number = int(year), int(month)
        if year_number < MINYEAR or not 1 <= month_number <= 12:
            continue
        try:
            value = parse_percent(raw)
        except ParseFailureError:
            LOGGER.debug("Ignoring malformed month profit value %r", raw)
            continue
        if value is not None:
            result[(year_number, month_number)] = value
    return result


class MonthlyReturnExtractor:
    """Queries the monthly return table of root documents."""

    def __init__(self, cache: ContentCache) -> None:
        self._cache = cache

    def entries(self, path: PathLike) -> List[MonthlyReturn]:
        """Return the deduplicated entries of *path* in discovery order."""

        cached = self._cache.get_cached_monthly(path)
        if cached is not None:
            return cached

        entries = parse_table_rows(self._cache.get_text(path))
        if not entries:
            LOGGER.warning("No monthly return table found in %s", path)
        else:
            LOGGER.debug("Found %d monthly returns in %s", len(entries), path)
        self._cache.cache_monthly(path, entries)
        return list(entries)

    def all(self, path: PathLike) -> List[str]:
        """Return every entry as ``"YYYY/MM:value"``, sorted by key."""

        return sorted(str(entry) for entry in self.entries(path))

    def recent_three(self, path: PathLike) -> List[str]:
        """Return the most recent months, oldest first.

        Empty when fewer than two months exist, otherwise the last
        ``min(3, n)`` months ending at the most recent one.
        """

        return [str(entry) for entry in self.recent_entries(path)]

    def recent_entries(self, path: PathLike) -> List[MonthlyReturn]:
        ordered = sorted(self.entries(path), key=lambda entry: entry.key)
        if len(ordered) < 2:
            return []
        return ordered[-3:]

    def as_mapping(self, path: PathLike) -> Dict[str, float]:
        return {entry.key: entry.percent for entry in self.entries(path)}

    def month_profit_text(self, path: PathLike) -> str:
        return format_month_profit(self.entries(path))
