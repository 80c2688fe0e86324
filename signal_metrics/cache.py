"""Per-document cache for decoded text and the results derived from it.

One :class:`ContentCache` is owned by a conversion run and handed to every
extractor that needs document text. Entries are never evicted; call
:meth:`ContentCache.clear` between runs.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .exceptions import DecodeFailureError, DocumentNotFoundError
from .types import MonthlyReturn, StabilityResult
from .utils import PathLike, cache_key, resolve_path

LOGGER = logging.getLogger("signal_metrics.cache")

# Tried in order; the raw byte reinterpretation below is the total fallback.
ENCODING_CHAIN = ("utf-8", "iso-8859-15", "cp1252")
RAW_FALLBACK = "raw-latin-1"


def decode_bytes(data: bytes) -> tuple[str, str]:
    """Decode *data* returning ``(text, encoding_name)``. Never fails."""

    for encoding in ENCODING_CHAIN:
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            LOGGER.debug("Decoding with %s failed, trying next encoding", encoding)
    return "".join(map(chr, data)), RAW_FALLBACK


class ContentCache:
    """Memoizes decoded document text and the results computed from it."""

    def __init__(self) -> None:
        self._texts: Dict[str, str] = {}
        self._encodings: Dict[str, str] = {}
        self._stability: Dict[str, StabilityResult] = {}
        self._monthly: Dict[str, List[MonthlyReturn]] = {}

    def get_text(self, path: PathLike) -> str:
        """Return the decoded text of *path*, reading the file on first access.

        Raises:
            DocumentNotFoundError: If the file does not exist.
            DecodeFailureError: If the file exists but cannot be read.
        """

        key = cache_key(path)
        cached = self._texts.get(key)
        if cached is not None:
            return cached

        file_path = resolve_path(path)
        if not file_path.is_file():
            LOGGER.warning("Document does not exist: %s", file_path)
            raise DocumentNotFoundError(file_path)

        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise DecodeFailureError(file_path, f"Unable to read {file_path}: {exc}") from exc

        text, encoding = decode_bytes(data)
        if encoding != ENCODING_CHAIN[0]:
            LOGGER.warning("UTF-8 decoding failed for %s, used %s", file_path, encoding)
        else:
            LOGGER.debug("Decoded %s as %s", file_path, encoding)

        self._texts[key] = text
        self._encodings[key] = encoding
        return text

    def encoding_for(self, path: PathLike) -> Optional[str]:
        """Return the encoding used for a cached document, if any."""

        return self._encodings.get(cache_key(path))

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, bytes)) and not hasattr(path, "__fspath__"):
            return False
        return cache_key(path) in self._texts  # type: ignore[arg-type]

    def cache_stability(self, path: PathLike, result: StabilityResult) -> None:
        if result is None:
            return
        self._stability[cache_key(path)] = result
        LOGGER.debug("Cached stability result for %s", path)

    def get_cached_stability(self, path: PathLike) -> Optional[StabilityResult]:
        return self._stability.get(cache_key(path))

    def has_stability(self, path: PathLike) -> bool:
        return cache_key(path) in self._stability

    def cache_monthly(self, path: PathLike, entries: List[MonthlyReturn]) -> None:
        self._monthly[cache_key(path)] = list(entries)

    def get_cached_monthly(self, path: PathLike) -> Optional[List[MonthlyReturn]]:
        entries = self._monthly.get(cache_key(path))
        return None if entries is None else list(entries)

    def clear(self) -> None:
        """Drop every cached entry."""

        self._texts.clear()
        self._encodings.clear()
        self._stability.clear()
        self._monthly.clear()
        LOGGER.info("Content cache cleared")
