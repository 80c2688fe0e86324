from __future__ import annotations

import math
from pathlib import Path
from typing import Callable

import pytest

from signal_metrics.cache import ContentCache
from signal_metrics.stability import StabilityCalculator


@pytest.fixture()
def calculator(cache: ContentCache) -> StabilityCalculator:
    return StabilityCalculator(cache)


def test_opposite_values_saturate_to_minimum(calculator: StabilityCalculator) -> None:
    result = calculator.calculate([1.0, -1.0])

    assert result.score == 1.0
    assert "Mean: 0.00%" in result.narrative
    assert "Standard deviation: 1.00" in result.narrative
    assert "Relative standard deviation: 10000.00" in result.narrative


def test_identical_values_score_by_data_quality(calculator: StabilityCalculator) -> None:
    assert calculator.calculate([2.0, 2.0, 2.0]).score == pytest.approx(100.0)
    assert calculator.calculate([2.0, 2.0]).score == pytest.approx(90.0)


def test_formula_for_moderate_spread(calculator: StabilityCalculator) -> None:
    values = [2.0, 3.0, 4.0]
    std_dev = math.sqrt(2.0 / 3.0)
    expected = 100.0 * (1.0 - std_dev / (3.0 + 1e-4))

    assert calculator.calculate(values).score == pytest.approx(expected)


@pytest.mark.parametrize("values", [[], [5.0]])
def test_insufficient_data(calculator: StabilityCalculator, values) -> None:
    result = calculator.calculate(values)

    assert result.score == 1.0
    assert "Insufficient data" in result.narrative


def test_narrative_lists_inputs(calculator: StabilityCalculator) -> None:
    result = calculator.calculate([1.5, -2.0], ["2025/03:1.5", "2025/04:-2.0"])
    lines = result.narrative.split("<br>")

    assert lines[:3] == ["Monthly values used:", "- 2025/03:1.5", "- 2025/04:-2.0"]
    assert "Data quality factor: 0.67" in lines
    assert "Base stability: 1.00" in lines


def test_end_to_end_details(sample_snapshot: Path, calculator: StabilityCalculator) -> None:
    result = calculator.details(sample_snapshot)

    assert result.score == 1.0
    assert "Mean: 0.10%" in result.narrative
    assert "- 2025/05:0.8" in result.narrative


def test_details_are_cached(
    snapshot_factory: Callable[..., Path], cache: ContentCache, calculator: StabilityCalculator
) -> None:
    path = snapshot_factory(months={2025: {1: "2", 2: "2", 3: "2"}})

    first = calculator.details(path)

    assert cache.has_stability(path)
    assert calculator.details(path) is first
    assert calculator.score(path) == pytest.approx(100.0)
