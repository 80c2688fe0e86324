"""Batch conversion of root documents into text reports."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from .config import ConverterConfig
from .exceptions import DocumentNotFoundError, MissingFieldError, SignalMetricsException
from .metrics import ProviderMetricsExtractor
from .report import ReportRenderer
from .types import BatchResult
from .utils import ROOT_SUFFIX, PathLike

LOGGER = logging.getLogger("signal_metrics.batch")

ProgressCallback = Callable[[int, str], None]

COMPLETE_MESSAGE = "Conversion complete"
CANCELLED_MESSAGE = "Conversion cancelled"


def progress_percent(done: int, total: int) -> int:
    """Percent shown after *done* of *total* documents; 100 is reserved for completion."""

    if total <= 0:
        return 0
    return min(99, int(done / total * 100 + 0.5))


class BatchConverter:
    """Discover root documents under a batch root and convert each of them."""

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        *,
        extractor: Optional[ProviderMetricsExtractor] = None,
        renderer: Optional[ReportRenderer] = None,
    ) -> None:
        self.config = config or ConverterConfig()
        self.extractor = extractor or ProviderMetricsExtractor(jitter_seed=self.config.jitter_seed)
        self.renderer = renderer or ReportRenderer()
        self._executor: Optional[ThreadPoolExecutor] = None

    def discover(self, root: PathLike) -> List[Path]:
        """Return the root documents below the configured version directories.

        Missing version directories contribute no files.
        """

        root_path = Path(root)
        found: List[Path] = []
        for name in self.config.version_dirs:
            directory = root_path / name
            if not directory.is_dir():
                LOGGER.debug("Version directory %s does not exist", directory)
                continue
            pattern = directory.rglob if self.config.recursive else directory.glob
            found.extend(sorted(path for path in pattern(f"*{ROOT_SUFFIX}") if path.is_file()))
        return found

    def convert_file(self, path: PathLike) -> Path:
        """Extract the metrics of *path* and write its report."""

        metrics = self.extractor.extract(path)
        return self.renderer.write(metrics, self.renderer.report_path_for(path))

    def run(
        self,
        root: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Convert every discovered document under *root*.

        Missing documents are skipped and conversion errors are recorded as
        failures. A missing balance or drawdown aborts the run by re-raising
        :class:`MissingFieldError` unless the configuration asks to skip.
        *cancel_event* is checked between documents only.
        """

        self.extractor.cache.clear()
        files = self.discover(root)
        result = BatchResult(total=len(files))
        LOGGER.info("Converting %d documents under %s", len(files), root)

        for index, html_file in enumerate(files, start=1):
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.warning("Conversion cancelled after %d of %d documents", index - 1, len(files))
                result.cancelled = True
                break

            try:
                report = self.convert_file(html_file)
            except DocumentNotFoundError as exc:
                LOGGER.warning("Skipping missing document %s", html_file)
                result.skipped += 1
                result.errors.append({"file": str(html_file), "status": "skipped", "error": str(exc)})
                message = f"Skipped {html_file.name}"
            except MissingFieldError as exc:
                if self.config.on_missing_field == "abort":
                    LOGGER.error("Aborting conversion: %s", exc)
                    raise
                LOGGER.warning("Skipping %s: %s", html_file, exc)
                result.skipped += 1
                result.errors.append({"file": str(html_file), "status": "skipped", "error": str(exc)})
                message = f"Skipped {html_file.name}"
            except (SignalMetricsException, OSError) as exc:
                LOGGER.error("Failed to convert %s: %s", html_file, exc)
                result.failed += 1
                result.errors.append({"file": str(html_file), "status": "failure", "error": str(exc)})
                message = f"Failed {html_file.name}"
            else:
                result.converted += 1
                result.reports.append(str(report))
                message = f"Converted {html_file.name}"

            if progress_callback:
                progress_callback(progress_percent(index, len(files)), message)

        if progress_callback:
            if result.cancelled:
                done = result.converted + result.skipped + result.failed
                progress_callback(progress_percent(done, len(files)), CANCELLED_MESSAGE)
            else:
                progress_callback(100, COMPLETE_MESSAGE)

        LOGGER.info("%s", result)
        return result

    def submit(
        self,
        root: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[BatchResult]":
        """Run :meth:`run` on the dedicated background worker."""

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="signal-metrics-batch")
        return self._executor.submit(self.run, root, progress_callback, cancel_event)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "BatchConverter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
