"""Runtime configuration for signal-metrics conversions."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

LOGGER = logging.getLogger("signal_metrics.config")

DEFAULT_VERSION_DIRS: Tuple[str, ...] = ("mql4", "mql5")
MISSING_FIELD_POLICIES = ("abort", "skip")

_TRUTHY = {"1", "true", "yes", "on"}
_ENV_PREFIX = "SIGNAL_METRICS_"


@dataclass(frozen=True)
class ConverterConfig:
    """Settings shared by the batch converter and the CLI.

    Attributes:
        version_dirs: Subdirectories of the batch root scanned for snapshots.
        recursive: Walk the version directories recursively.
        on_missing_field: ``"abort"`` stops the batch when balance or drawdown
            cannot be resolved, ``"skip"`` records the document and continues.
        jitter_seed: Seed for the end-of-range jitter; ``None`` is unseeded.
    """

    version_dirs: Tuple[str, ...] = field(default=DEFAULT_VERSION_DIRS)
    recursive: bool = False
    on_missing_field: str = "abort"
    jitter_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.on_missing_field not in MISSING_FIELD_POLICIES:
            raise ValueError(
                f"Unknown missing-field policy: {self.on_missing_field!r}. "
                f"Expected one of {', '.join(MISSING_FIELD_POLICIES)}."
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConverterConfig":
        env = os.environ if environ is None else environ
        kwargs = {}

        dirs = env.get(_ENV_PREFIX + "VERSION_DIRS")
        if dirs:
            kwargs["version_dirs"] = tuple(part.strip() for part in dirs.split(",") if part.strip())

        recursive = env.get(_ENV_PREFIX + "RECURSIVE")
        if recursive is not None:
            kwargs["recursive"] = recursive.strip().lower() in _TRUTHY

        policy = env.get(_ENV_PREFIX + "ON_MISSING_FIELD")
        if policy:
            kwargs["on_missing_field"] = policy.strip().lower()

        seed = env.get(_ENV_PREFIX + "JITTER_SEED")
        if seed:
            try:
                kwargs["jitter_seed"] = int(seed)
            except ValueError:
                LOGGER.warning("Ignoring non-integer %sJITTER_SEED: %s", _ENV_PREFIX, seed)

        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "ConverterConfig":
        """Return a copy with every non-``None`` override applied."""

        return replace(self, **{key: value for key, value in overrides.items() if value is not None})
