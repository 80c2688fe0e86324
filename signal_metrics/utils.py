"""Utility helpers shared by the signal-metrics extractors."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .exceptions import ParseFailureError

PathLike = Union[str, os.PathLike]

ROOT_SUFFIX = "_root.html"
REPORT_SUFFIX = "_root.txt"

_MINUS_VARIANTS = ("−", "‒", "–", "—", "﹣", "－")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_GROUPING_SPACES = re.compile(r"[\s']+")


def resolve_path(path: PathLike) -> Path:
    """Resolve *path* into an absolute :class:`~pathlib.Path`."""

    return Path(path).expanduser().resolve()


def cache_key(path: PathLike) -> str:
    """Return the key under which *path* is memoized.

    The key is built lexically so that cache hits never touch the file system.
    """

    return os.path.abspath(os.path.expanduser(os.fspath(path)))


def normalize_minus(text: str) -> str:
    for variant in _MINUS_VARIANTS:
        text = text.replace(variant, "-")
    return text


def normalize_percent_text(text: str) -> str:
    """Apply the monthly-table normalization rules to a raw cell value.

    Decimal commas become periods, unicode minus signs become ``-`` and every
    character outside ``[0-9.-]`` is dropped.
    """

    return _NON_NUMERIC.sub("", normalize_minus(text.strip().replace(",", ".")))


def parse_percent(text: str) -> Optional[float]:
    """Parse a monthly-table cell. Returns ``None`` for blank cells.

    Raises:
        ParseFailureError: If the cell holds something other than a number.
    """

    if not text or not text.strip():
        return None
    normalized = normalize_percent_text(text)
    if not normalized:
        raise ParseFailureError(f"No numeric content in cell: {text!r}")
    try:
        return float(normalized)
    except ValueError as exc:
        raise ParseFailureError(f"Malformed numeric token: {text!r}") from exc


def parse_locale_number(text: str) -> float:
    """Parse a number that may use locale grouping and decimal separators.

    ``"12 345.67"``, ``"12.345,67"``, ``"12,345.67"`` and ``"12345,67"`` all
    yield ``12345.67``. When only one kind of separator occurs more than once
    it is treated as grouping.

    Raises:
        ParseFailureError: If no number can be recovered.
    """

    cleaned = normalize_minus(_GROUPING_SPACES.sub("", text))
    cleaned = re.sub(r"[^0-9.,\-]", "", cleaned)
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif cleaned.count(",") > 1:
        cleaned = cleaned.replace(",", "")
    elif cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")
    else:
        cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ParseFailureError(f"Malformed number: {text!r}") from exc


def report_path_for(html_path: PathLike) -> Path:
    """Return the companion report path for a root document."""

    path = Path(html_path)
    name = path.name
    if name.endswith(ROOT_SUFFIX):
        return path.with_name(name[: -len(ROOT_SUFFIX)] + REPORT_SUFFIX)
    return path.with_suffix(".txt")


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500 KB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


def configure_logging(verbose: bool = False) -> None:
    """Route package logging through a rich console handler."""

    logger = logging.getLogger("signal_metrics")
    logger.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
