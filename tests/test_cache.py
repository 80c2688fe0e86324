from __future__ import annotations

from pathlib import Path

import pytest

from signal_metrics import cache as cache_module
from signal_metrics.cache import ContentCache, decode_bytes
from signal_metrics.exceptions import DocumentNotFoundError
from signal_metrics.types import MonthlyReturn, StabilityResult


def test_get_text_prefers_utf8(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "utf8_root.html"
    path.write_bytes("Maximaler Rückgang −2,5%".encode("utf-8"))

    assert cache.get_text(path) == "Maximaler Rückgang −2,5%"
    assert cache.encoding_for(path) == "utf-8"


def test_get_text_falls_back_for_invalid_utf8(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "latin_root.html"
    path.write_bytes("Rückgang €".encode("iso-8859-15"))

    assert cache.get_text(path) == "Rückgang €"
    assert cache.encoding_for(path) == "iso-8859-15"


def test_raw_fallback_is_used_when_chain_is_exhausted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cache_module, "ENCODING_CHAIN", ("utf-8", "ascii"))

    text, encoding = decode_bytes(b"A\xff\x81")

    assert encoding == cache_module.RAW_FALLBACK
    assert text == "A\xff\x81"


def test_get_text_missing_file_raises(tmp_path: Path, cache: ContentCache) -> None:
    missing = tmp_path / "missing_root.html"

    with pytest.raises(DocumentNotFoundError) as excinfo:
        cache.get_text(missing)

    assert str(missing) in str(excinfo.value)


def test_second_read_is_served_from_memory(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "memo_root.html"
    path.write_text("first", encoding="utf-8")

    assert cache.get_text(path) == "first"
    path.unlink()

    assert cache.get_text(path) == "first"
    assert path in cache


def test_relative_and_absolute_paths_share_an_entry(
    tmp_path: Path, cache: ContentCache, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path.resolve() / "shared_root.html"
    path.write_text("content", encoding="utf-8")
    monkeypatch.chdir(path.parent)

    cache.get_text("shared_root.html")
    path.write_text("changed", encoding="utf-8")

    assert cache.get_text(path) == "content"


def test_stability_store_is_independent(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "doc_root.html"
    result = StabilityResult(42.0, "narrative")

    assert cache.get_cached_stability(path) is None
    assert not cache.has_stability(path)

    cache.cache_stability(path, result)

    assert cache.has_stability(path)
    assert cache.get_cached_stability(path) is result
    assert path not in cache


def test_clear_empties_every_store(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "clear_root.html"
    path.write_text("before", encoding="utf-8")
    cache.get_text(path)
    cache.cache_stability(path, StabilityResult(1.0, ""))
    cache.cache_monthly(path, [MonthlyReturn(2025, 1, 1.0)])

    cache.clear()
    path.write_text("after", encoding="utf-8")

    assert not cache.has_stability(path)
    assert cache.get_cached_monthly(path) is None
    assert cache.encoding_for(path) is None
    assert path not in cache
    assert cache.get_text(path) == "after"


def test_cached_lookup_does_not_touch_the_file_system(
    tmp_path: Path, cache: ContentCache, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "fs_root.html"
    path.write_text("content", encoding="utf-8")
    cache.get_text(path)

    def no_fs_access(*args, **kwargs):
        raise AssertionError("file system accessed")

    monkeypatch.setattr(Path, "resolve", no_fs_access)
    monkeypatch.setattr(Path, "is_file", no_fs_access)
    monkeypatch.setattr(Path, "read_bytes", no_fs_access)

    assert cache.get_text(path) == "content"
    assert cache.encoding_for(path) == "utf-8"


def test_monthly_store_returns_copies(tmp_path: Path, cache: ContentCache) -> None:
    path = tmp_path / "monthly_root.html"
    cache.cache_monthly(path, [MonthlyReturn(2025, 1, 1.0)])

    cache.get_cached_monthly(path).clear()

    assert cache.get_cached_monthly(path) == [MonthlyReturn(2025, 1, 1.0)]
