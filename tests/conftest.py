from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from signal_metrics.cache import ContentCache  # noqa: E402
from snapshots import build_snapshot  # noqa: E402


@pytest.fixture()
def cache() -> ContentCache:
    return ContentCache()


@pytest.fixture()
def snapshot_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(name: str = "Alpha_123_root.html", directory: Optional[Path] = None, **kwargs) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(build_snapshot(**kwargs), encoding="utf-8")
        return path

    return _create


@pytest.fixture()
def sample_snapshot(snapshot_factory: Callable[..., Path]) -> Path:
    return snapshot_factory()
