"""Interpreter for the vector path mini-language used by the drawdown chart.

Only the geometry needed to project the series is modelled. Cubic curves
are sampled; smooth cubics, quadratics and arcs collapse into one straight
line to the end point of the command, even when its parameters repeat.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

LOGGER = logging.getLogger("signal_metrics.svg_path")

Point = Tuple[float, float]

BEZIER_SAMPLES = 10

# Numbers consumed by one repetition of each command.
ARITY = {
    "M": 2,
    "L": 2,
    "H": 1,
    "V": 1,
    "C": 6,
    "S": 4,
    "Q": 4,
    "T": 2,
    "A": 7,
    "Z": 0,
}

_SEGMENT = re.compile(r"([MLHVCSQTAZmlhvcsqtaz])([^MLHVCSQTAZmlhvcsqtaz]*)")
_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One command letter and the numbers that follow it."""

    command: str
    numbers: Tuple[float, ...]

    @property
    def relative(self) -> bool:
        return self.command.islower()

    @property
    def kind(self) -> str:
        return self.command.upper()


def tokenize(d: str) -> List[PathSegment]:
    """Split a path string into segments.

    Segments carrying fewer numbers than their command needs are dropped.
    """

    segments: List[PathSegment] = []
    for command, body in _SEGMENT.findall(d or ""):
        numbers = tuple(float(token) for token in _NUMBER.findall(body))
        arity = ARITY[command.upper()]
        if len(numbers) < arity:
            LOGGER.debug("Skipping %s segment with %d numbers", command, len(numbers))
            continue
        segments.append(PathSegment(command, numbers))
    return segments


def cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    """Evaluate a cubic Bezier curve at *t* using the Bernstein form."""

    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    e = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + e * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + e * p3[1],
    )


def _chunks(numbers: Sequence[float], size: int):
    for index in range(0, len(numbers) - size + 1, size):
        yield numbers[index : index + size]


def execute(segments: Sequence[PathSegment]) -> List[Point]:
    """Run *segments* and return every emitted pixel point in order."""

    points: List[Point] = []
    x = y = 0.0
    start_x = start_y = 0.0

    def target(px: float, py: float, relative: bool) -> Point:
        if relative:
            return x + px, y + py
        return px, py

    for segment in segments:
        kind = segment.kind
        relative = segment.relative
        numbers = segment.numbers

        if kind == "Z":
            x, y = start_x, start_y
            continue

        if kind == "M":
            for index, (px, py) in enumerate(_chunks(numbers, 2)):
                x, y = target(px, py, relative)
                if index == 0:
                    start_x, start_y = x, y
                points.append((x, y))
        elif kind == "L":
            for px, py in _chunks(numbers, 2):
                x, y = target(px, py, relative)
                points.append((x, y))
        elif kind == "H":
            for value in numbers:
                x = x + value if relative else value
                points.append((x, y))
        elif kind == "V":
            for value in numbers:
                y = y + value if relative else value
                points.append((x, y))
        elif kind == "C":
            for chunk in _chunks(numbers, 6):
                p0 = (x, y)
                p1 = target(chunk[0], chunk[1], relative)
                p2 = target(chunk[2], chunk[3], relative)
                p3 = target(chunk[4], chunk[5], relative)
                for step in range(1, BEZIER_SAMPLES + 1):
                    points.append(cubic_point(p0, p1, p2, p3, step / BEZIER_SAMPLES))
                x, y = p3
        else:
            # S, Q, T and A: one straight line to the end of the last repetition.
            for chunk in _chunks(numbers, ARITY[kind]):
                x, y = target(chunk[-2], chunk[-1], relative)
            points.append((x, y))

    return points


def path_points(d: str) -> List[Point]:
    """Return the pixel points described by the path string *d*."""

    return execute(tokenize(d))
