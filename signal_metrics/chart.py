"""
Drawdown chart series extraction.

The profile page embeds the equity drawdown chart as an inline SVG inside
``div#tab_content_drawdown_chart``. This module locates that SVG, calibrates
its vertical axis from the percent labels, picks the red drawdown path,
runs it through :mod:`signal_metrics.svg_path` and projects the resulting
pixel points onto calendar dates and percent values.
"""

from __future__ import annotations

import calendar
import logging
import math
import random
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from .cache import ContentCache
from .exceptions import ParseFailureError
from .monthly import MonthlyReturnExtractor, parse_month_profit
from .svg_path import Point, path_points
from .types import AxisCalibration, ChartPoint, DateRange
from .utils import PathLike, parse_percent

LOGGER = logging.getLogger("signal_metrics.chart")

CHART_CONTAINER = "div#tab_content_drawdown_chart"
FALLBACK_CALIBRATION = AxisCalibration(272.585, 11.994, 1.0, 6.0)
FALLBACK_MONTHS_BACK = 3
JITTER_POINTS = 10
JITTER_RATIO = 0.05

_PERCENT_LABEL = re.compile(r"^\s*[-+−]?\s*\d+(?:[.,]\d+)?\s*%\s*$")
_TRANSFORM = re.compile(r"(translate|scale)\s*\(([^)]*)\)", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_RED_STROKE = re.compile(r"var\(--c-chart-red\)|red", re.IGNORECASE)
_RED_CLASS = re.compile(r"red|negative|drawdown", re.IGNORECASE)
_RED_CODE = re.compile(
    r"#f00\b|#ff0000\b|rgba?\(\s*255\s*,\s*0\s*,\s*0\s*[,)]",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Date range
# ---------------------------------------------------------------------------


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def infer_date_range(month_profit_text: Optional[str], today: Optional[date] = None) -> DateRange:
    """Return the calendar range covered by the monthly returns.

    The range runs from the first day of the earliest month to the last day of
    the latest month found in *month_profit_text* (``YYYY/MM=value,...``).
    Without any parseable pair it covers the three months before *today*
    through the end of *today*'s month.
    """

    months = sorted(parse_month_profit(month_profit_text or ""))
    if months:
        (first_year, first_month), (last_year, last_month) = months[0], months[-1]
        return DateRange(date(first_year, first_month, 1), _month_end(last_year, last_month))

    today = today or date.today()
    start_year, start_month = _shift_month(today.year, today.month, -FALLBACK_MONTHS_BACK)
    LOGGER.debug("No month profit pairs, using fallback range ending %s", today)
    return DateRange(date(start_year, start_month, 1), _month_end(today.year, today.month))


# ---------------------------------------------------------------------------
# Chart location and axis calibration
# ---------------------------------------------------------------------------


def locate_chart_svg(html: str) -> Optional[Tag]:
    """Return the first ``<svg>`` inside the drawdown chart container."""

    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one(CHART_CONTAINER)
    if container is None:
        return None
    return container.find("svg")


def _numbers(text: str) -> List[float]:
    return [float(token) for token in _LEADING_NUMBER.findall(text or "")]


def transform_y(transform: Optional[str], y: float) -> float:
    """Apply the ``translate``/``scale`` functions of *transform* to *y*.

    Functions are applied right to left, matching SVG composition order.
    Other transform functions are ignored.
    """

    if not transform:
        return y
    for name, args in reversed(_TRANSFORM.findall(transform)):
        values = _numbers(args)
        if not values:
            continue
        if name.lower() == "translate":
            y += values[1] if len(values) > 1 else 0.0
        else:
            y *= values[1] if len(values) > 1 else values[0]
    return y


def to_root_y(node: Tag, root: Tag, y: float) -> float:
    """Map *y*, given in *node*'s local space, into *root*'s coordinate space.

    The transforms of *node* and of every ancestor below *root* are applied,
    innermost first.
    """

    current: Optional[Tag] = node
    while current is not None and current is not root:
        y = transform_y(current.get("transform"), y)
        current = current.parent
    return y


def label_position(label: Tag, root: Tag) -> float:
    """Return the vertical position of *label* in *root*'s coordinate space."""

    values = _numbers(label.get("y", ""))
    return to_root_y(label, root, values[0] if values else 0.0)


def calibrate_axis(svg: Tag) -> AxisCalibration:
    """Derive the axis calibration from the percent labels of *svg*.

    The label drawn highest is the top of the axis and the lowest one the
    bottom. Fewer than two distinct label positions yield
    :data:`FALLBACK_CALIBRATION`.
    """

    ticks: List[Tuple[float, float]] = []
    for label in svg.find_all("text"):
        text = label.get_text(strip=True)
        if not _PERCENT_LABEL.match(text):
            continue
        try:
            percent = parse_percent(text)
        except ParseFailureError:
            continue
        if percent is None:
            continue
        ticks.append((label_position(label, svg), percent))

    if len({round(position, 6) for position, _ in ticks}) < 2:
        LOGGER.warning("No usable axis labels in drawdown chart, using fallback calibration")
        return FALLBACK_CALIBRATION

    top = min(ticks, key=lambda tick: tick[0])
    bottom = max(ticks, key=lambda tick: tick[0])
    LOGGER.debug("Axis calibration: top=%s bottom=%s", top, bottom)
    return AxisCalibration(top[0], bottom[0], top[1], bottom[1])


# ---------------------------------------------------------------------------
# Series path selection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathStrategy:
    """A named rule recognising the drawdown series among ``<path>`` elements."""

    name: str
    matches: Callable[[Tag], bool]


def _stroke_is_red(path: Tag) -> bool:
    return any(_RED_STROKE.search(path.get(attr, "")) for attr in ("stroke", "style"))


def _class_is_red(path: Tag) -> bool:
    classes = path.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return any(_RED_CLASS.search(name) for name in classes)


def _colour_code_is_red(path: Tag) -> bool:
    return any(_RED_CODE.search(path.get(attr, "")) for attr in ("stroke", "fill", "style"))


PATH_STRATEGIES: Tuple[PathStrategy, ...] = (
    PathStrategy("stroke", _stroke_is_red),
    PathStrategy("class", _class_is_red),
    PathStrategy("colour-code", _colour_code_is_red),
)


def select_series_path(svg: Tag, strategies: Sequence[PathStrategy] = PATH_STRATEGIES) -> Optional[Tag]:
    """Return the drawdown series ``<path>`` element, if any."""

    paths = svg.find_all("path")
    for strategy in strategies:
        for path in paths:
            d = (path.get("d") or "").strip()
            if d and strategy.matches(path):
                LOGGER.debug("Series path selected by %s strategy", strategy.name)
                return path
    return None


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def project(points: Sequence[Point], date_range: DateRange, calibration: AxisCalibration) -> List[ChartPoint]:
    """Map pixel points onto dates within *date_range* and calibrated percents."""

    if not points:
        return []

    min_x = min(x for x, _ in points)
    max_x = max(x for x, _ in points)
    span_days = date_range.total_days - 1

    series: List[ChartPoint] = []
    for x, y in points:
        if max_x == min_x:
            fraction = 0.5
        else:
            fraction = max(0.0, min(1.0, (x - min_x) / (max_x - min_x)))
        day = date_range.start + timedelta(days=_round_half_up(fraction * span_days))
        series.append(ChartPoint(day.isoformat(), calibration.value_at(y)))
    return series


def ensure_range_end(series: List[ChartPoint], date_range: DateRange, rng: random.Random) -> List[ChartPoint]:
    """Make sure the final date of *date_range* carries at least one point.

    When it does not, the chronologically last value is copied onto the final
    date together with ten jittered copies of it.
    """

    if not series:
        return series

    end = date_range.end.isoformat()
    if any(point.date == end for point in series):
        return series

    last = max(reversed(series), key=lambda point: point.date)
    LOGGER.debug("Padding series end %s with value %.2f", end, last.percent)
    series.append(ChartPoint(end, last.percent))
    for _ in range(JITTER_POINTS):
        factor = 1.0 + rng.uniform(-JITTER_RATIO, JITTER_RATIO)
        series.append(ChartPoint(end, last.percent * factor))
    return series


class ChartSeriesExtractor:
    """Extracts the drawdown series of root documents."""

    def __init__(
        self,
        cache: ContentCache,
        monthly: Optional[MonthlyReturnExtractor] = None,
        jitter_seed: Optional[int] = None,
    ) -> None:
        self._cache = cache
        self._monthly = monthly or MonthlyReturnExtractor(cache)
        self._rng = random.Random(jitter_seed)

    def extract(
        self,
        path: PathLike,
        month_profit_text: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[ChartPoint]:
        """Return the projected drawdown series of *path* (unordered).

        A missing chart, missing series path or empty path yields an empty
        list; these conditions are logged, never raised.
        """

        svg = locate_chart_svg(self._cache.get_text(path))
        if svg is None:
            LOGGER.warning("No drawdown chart found in %s", path)
            return []

        series_path = select_series_path(svg)
        if series_path is None:
            LOGGER.info("No red drawdown path found in %s", path)
            return []

        # Same coordinate space as the axis labels.
        points = [(x, to_root_y(series_path, svg, y)) for x, y in path_points(series_path["d"])]
        if not points:
            LOGGER.warning("Drawdown path in %s produced no points", path)
            return []

        if month_profit_text is None:
            month_profit_text = self._monthly.month_profit_text(path)
        date_range = infer_date_range(month_profit_text, today)
        calibration = calibrate_axis(svg)

        series = ensure_range_end(project(points, date_range, calibration), date_range, self._rng)
        LOGGER.info("Drawdown path in %s: %d points", path, len(series))
        return series
