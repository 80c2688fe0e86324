"""Fixed-layout text reports and the key=value reader for them."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from .monthly import format_month_profit, parse_month_profit
from .types import MonthlyReturn, ProviderMetrics
from .utils import PathLike, report_path_for, resolve_path

LOGGER = logging.getLogger("signal_metrics.report")

DELIMITER = "*" * 32
CHART_END = "-" * 17
EMPTY_CHART = "No red drawdown path data found"
EMPTY_STABILITY = "Not enough data available for a detailed stability analysis"

_COLON_SPACING = re.compile(r"[ \t]*:[ \t]*")
_MONTH_ENTRY = re.compile(r"^(\d{4})/(\d{2}):(.+)$")


def clean_markup(narrative: str) -> str:
    """Turn a ``<br>`` separated narrative into plain report text."""

    text = narrative.replace("<br>", "\n").replace("- ", " - ")
    return _COLON_SPACING.sub(": ", text).strip()


def month_profit_field(monthly_returns) -> str:
    """Render ``YYYY/MM:value`` strings as the ``MonthProfitProz`` value."""

    entries: List[MonthlyReturn] = []
    for item in monthly_returns:
        match = _MONTH_ENTRY.match(item)
        if match:
            year, month, value = match.groups()
            entries.append(MonthlyReturn(int(year), int(month), float(value)))
    return format_month_profit(entries)


class ReportRenderer:
    """Serializes :class:`ProviderMetrics` into the report text layout."""

    def render(self, metrics: ProviderMetrics) -> str:
        lines = [
            f"Balance={metrics.balance:.2f}",
            f"MaxDDGraphic={metrics.graphic_drawdown:.2f}",
            f"EquityDrawdown={metrics.equity_drawdown:.2f}",
            f"Average3MonthProfit={metrics.average_3month_profit:.2f}",
            f"StabilityValue={metrics.stability.score:.2f}",
            f"MonthProfitProz={month_profit_field(metrics.monthly_returns)}",
            DELIMITER,
            "",
            "Drawdown Chart Data=",
        ]

        if metrics.chart_series:
            for point in sorted(metrics.chart_series, key=lambda point: point.date):
                lines.append(f"{point.date}: {point.percent:.2f}%")
        else:
            lines.append(EMPTY_CHART)

        lines.extend([CHART_END, "", DELIMITER, "", "Last 3 Months Details="])
        lines.extend(metrics.last_three_months)
        lines.extend([DELIMITER, "", "Stability Details="])

        narrative = metrics.stability.narrative
        lines.append(clean_markup(narrative) if narrative and narrative.strip() else EMPTY_STABILITY)
        lines.append(DELIMITER)
        return "\n".join(lines)

    def report_path_for(self, html_path: PathLike) -> Path:
        return report_path_for(html_path)

    def write(self, metrics: ProviderMetrics, destination: Optional[PathLike] = None) -> Path:
        """Write the report next to its source document and return its path."""

        target = Path(destination) if destination is not None else report_path_for(metrics.source)
        target.write_text(self.render(metrics), encoding="utf-8")
        LOGGER.info("Wrote report %s", target)
        return target


def read_report(path: PathLike) -> Dict[str, str]:
    """Return the ``key=value`` lines of a report.

    Delimiter lines, chart dump lines and free-text blocks are ignored. Section
    headers such as ``Drawdown Chart Data=`` are returned with an empty value.
    """

    file_path = resolve_path(path)
    values: Dict[str, str] = {}
    with file_path.open("r", encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith(("*", "-")) or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip()
    return values


def report_float(path: PathLike, key: str, default: float = 0.0) -> float:
    """Return a numeric report field, or *default* when absent or malformed."""

    raw = read_report(path).get(key)
    if not raw:
        return default
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        LOGGER.warning("Report %s has a non-numeric %s: %s", path, key, raw)
        return default


def report_month_profit(path: PathLike):
    """Return the ``(year, month) -> percent`` map stored in a report."""

    return parse_month_profit(read_report(path).get("MonthProfitProz", ""))
