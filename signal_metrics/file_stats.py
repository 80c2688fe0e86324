"""Age distribution of downloaded root documents."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional

from .utils import ROOT_SUFFIX, PathLike

LOGGER = logging.getLogger("signal_metrics.file_stats")

SECONDS_PER_DAY = 24 * 60 * 60


def analyze_file_age(directory: PathLike, max_days: int, now: Optional[float] = None) -> Dict[int, int]:
    """
    Count root documents in *directory* by age in whole days.

    Args:
        directory: Directory holding ``*_root.html`` files (not searched recursively)
        max_days: Largest bucket; older files are counted in it
        now: Reference timestamp in seconds, defaults to the current time

    Returns:
        Mapping of every age ``0..max_days`` to its file count
    """
    if max_days < 0:
        raise ValueError("max_days must not be negative")

    distribution = {day: 0 for day in range(max_days + 1)}
    path = Path(directory)
    if not path.is_dir():
        LOGGER.warning("Directory does not exist or is not a directory: %s", path)
        return distribution

    reference = time.time() if now is None else now
    total = 0
    for html_file in path.glob(f"*{ROOT_SUFFIX}"):
        if not html_file.is_file():
            continue
        age_days = int(max(0.0, reference - html_file.stat().st_mtime) // SECONDS_PER_DAY)
        distribution[min(age_days, max_days)] += 1
        total += 1

    LOGGER.info("Analyzed %d root documents in %s", total, path)
    return distribution
