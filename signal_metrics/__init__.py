"""
Signal Metrics - Extract performance metrics from signal provider snapshots.

This library reads saved profile pages of signal providers
(``<name>_<id>_root.html``), extracts balance, drawdown, monthly returns, the
drawdown chart series and a stability score, and writes a fixed-layout text
report (``<name>_<id>_root.txt``) beside each page.

Quick Start:
    >>> from signal_metrics import ProviderMetricsExtractor, ReportRenderer
    >>> metrics = ProviderMetricsExtractor().extract('Alpha_123_root.html')
    >>> ReportRenderer().write(metrics)

Main Classes:
    - ContentCache: Decoded document text and stability results
    - MonthlyReturnExtractor: Monthly return table queries
    - ChartSeriesExtractor: Drawdown chart series
    - StabilityCalculator: Stability score and narrative
    - ProviderMetricsExtractor: Builds the full metrics record
    - ReportRenderer: Renders and writes reports
    - BatchConverter: Converts whole download directories

For CLI usage, use the 'signal-metrics' command after installation.
"""

# Core classes
from signal_metrics.cache import ContentCache
from signal_metrics.monthly import MonthlyReturnExtractor
from signal_metrics.chart import ChartSeriesExtractor
from signal_metrics.stability import StabilityCalculator
from signal_metrics.metrics import ProviderMetricsExtractor
from signal_metrics.report import ReportRenderer, read_report, report_float
from signal_metrics.batch import BatchConverter
from signal_metrics.config import ConverterConfig
from signal_metrics.file_stats import analyze_file_age

# Data types
from signal_metrics.types import (
    MonthlyReturn,
    ChartPoint,
    DateRange,
    AxisCalibration,
    StabilityResult,
    ProviderMetrics,
    BatchResult,
)

# Exceptions
from signal_metrics.exceptions import (
    SignalMetricsException,
    DocumentNotFoundError,
    DecodeFailureError,
    StructuralMissError,
    ParseFailureError,
    MissingFieldError,
)

__version__ = "1.0.0"

__all__ = [
    # Main classes
    "ContentCache",
    "MonthlyReturnExtractor",
    "ChartSeriesExtractor",
    "StabilityCalculator",
    "ProviderMetricsExtractor",
    "ReportRenderer",
    "BatchConverter",
    "ConverterConfig",
    # Functions
    "read_report",
    "report_float",
    "analyze_file_age",
    # Data types
    "MonthlyReturn",
    "ChartPoint",
    "DateRange",
    "AxisCalibration",
    "StabilityResult",
    "ProviderMetrics",
    "BatchResult",
    # Exceptions
    "SignalMetricsException",
    "DocumentNotFoundError",
    "DecodeFailureError",
    "StructuralMissError",
    "ParseFailureError",
    "MissingFieldError",
    # Version info
    "__version__",
]
