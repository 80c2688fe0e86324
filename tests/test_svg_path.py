from __future__ import annotations

import pytest

from signal_metrics.svg_path import PathSegment, cubic_point, execute, path_points, tokenize


def test_tokenize_splits_at_command_letters() -> None:
    segments = tokenize("M0,0 L10 20l-5,5Z")

    assert segments == [
        PathSegment("M", (0.0, 0.0)),
        PathSegment("L", (10.0, 20.0)),
        PathSegment("l", (-5.0, 5.0)),
        PathSegment("Z", ()),
    ]
    assert segments[2].relative
    assert segments[2].kind == "L"


def test_tokenize_handles_compact_numbers() -> None:
    assert path_points("M1e1-5L.5.5") == [(10.0, -5.0), (0.5, 0.5)]


def test_tokenize_skips_segments_with_too_few_numbers() -> None:
    segments = tokenize("M0,0 L5 H3")

    assert [segment.command for segment in segments] == ["M", "H"]
    assert execute(segments) == [(0.0, 0.0), (3.0, 0.0)]


def test_move_with_extra_pairs_draws_lines() -> None:
    assert path_points("M0,0 10,10 20,5") == [(0.0, 0.0), (10.0, 10.0), (20.0, 5.0)]


def test_relative_commands_and_close_path() -> None:
    points = path_points("m10,10 l5,5 h5 v-5 z l1,1")

    assert points == [(10.0, 10.0), (15.0, 15.0), (20.0, 15.0), (20.0, 10.0), (11.0, 11.0)]


def test_absolute_horizontal_and_vertical() -> None:
    assert path_points("M1,2 H7 V9") == [(1.0, 2.0), (7.0, 2.0), (7.0, 9.0)]


def test_cubic_emits_exactly_ten_points() -> None:
    points = path_points("M0,0 C0,10 10,10 10,0")

    assert len(points) == 11
    assert points[5] == pytest.approx((5.0, 7.5))
    assert points[-1] == pytest.approx((10.0, 0.0))


def test_relative_cubic_is_offset_from_current_point() -> None:
    points = path_points("M10,10 c0,10 10,10 10,0")

    assert len(points) == 11
    assert points[-1] == pytest.approx((20.0, 10.0))


def test_repeated_cubic_parameters() -> None:
    points = path_points("M0,0 C1,1 2,2 3,3 4,4 5,5 6,6")

    assert len(points) == 21
    assert points[-1] == pytest.approx((6.0, 6.0))


@pytest.mark.parametrize(
    "d",
    [
        "M0,0 S5,5 10,0",
        "M0,0 Q5,5 10,0",
        "M0,0 T10,0",
        "M0,0 A5,5 0 0 1 10,0",
    ],
)
def test_simplified_commands_draw_a_line_to_their_end_point(d: str) -> None:
    assert path_points(d) == [(0.0, 0.0), (10.0, 0.0)]


@pytest.mark.parametrize(
    "d, end",
    [
        ("M0,0 S1,1 2,2 3,3 4,4", (4.0, 4.0)),
        ("M0,0 s1,1 2,2 3,3 4,4", (6.0, 6.0)),
        ("M0,0 T1,1 2,2 3,3", (3.0, 3.0)),
    ],
)
def test_repeated_simplified_parameters_draw_a_single_line(d: str, end: tuple) -> None:
    assert path_points(d) == [(0.0, 0.0), end]


def test_cubic_point_endpoints() -> None:
    p0, p1, p2, p3 = (0.0, 0.0), (1.0, 5.0), (4.0, 5.0), (5.0, 0.0)

    assert cubic_point(p0, p1, p2, p3, 0.0) == p0
    assert cubic_point(p0, p1, p2, p3, 1.0) == p3


def test_empty_path() -> None:
    assert path_points("") == []
