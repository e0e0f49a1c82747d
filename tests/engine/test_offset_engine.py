from __future__ import annotations

import logging

import numpy as np
import pytest
from shapely.geometry import Polygon

from varoffset.common.errors import (
    DegenerateEdgeError,
    DegenerateIntersectionError,
    InvalidInputError,
)
from varoffset.engine.edge_map import EdgeOffsetMap
from varoffset.engine.offset import (
    build_offset_lines,
    edge_normals,
    intersect_lines,
    offset_polygon,
)


def _regular_polygon(n: int, r: float = 5.0) -> np.ndarray:
    ang = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    return np.column_stack([r * np.cos(ang), r * np.sin(ang)])


def _point_line_distance(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    d = b - a
    return abs(d[0] * (p[1] - a[1]) - d[1] * (p[0] - a[0])) / float(np.hypot(d[0], d[1]))


@pytest.mark.smoke
def test_square_uniform_outward(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, [1.0, 1.0, 1.0, 1.0])
    expected = np.array([[-1.0, -1.0], [11.0, -1.0], [11.0, 11.0], [-1.0, 11.0]])
    np.testing.assert_allclose(out, expected, atol=1e-12)


def test_square_uniform_inward(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, [], default_offset=-1.0)
    expected = np.array([[1.0, 1.0], [9.0, 1.0], [9.0, 9.0], [1.0, 9.0]])
    np.testing.assert_allclose(out, expected, atol=1e-12)


def test_zero_offsets_return_original_corners(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, [0.0, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(out, square_ccw, atol=1e-12)


def test_single_edge_offset_moves_only_that_edge(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, [1.0], default_offset=0.0)
    expected = np.array([[0.0, -1.0], [10.0, -1.0], [10.0, 10.0], [0.0, 10.0]])
    np.testing.assert_allclose(out, expected, atol=1e-12)


def test_empty_map_uses_default_for_every_edge(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, EdgeOffsetMap(), default_offset=2.0)
    lines = build_offset_lines(square_ccw, np.full(4, 2.0))
    # 各オフセット線は元の辺からちょうど 2 離れている
    for i in range(4):
        a, b = square_ccw[i], square_ccw[(i + 1) % 4]
        assert _point_line_distance(lines[i, 0], a, b) == pytest.approx(2.0)
    np.testing.assert_allclose(out, [[-2, -2], [12, -2], [12, 12], [-2, 12]], atol=1e-12)


def test_closing_point_is_not_an_extra_edge(square_ccw: np.ndarray) -> None:
    closed = np.vstack([square_ccw, square_ccw[:1]])
    out = offset_polygon(closed, [], default_offset=1.0)
    assert out.shape == (4, 2)
    np.testing.assert_allclose(out[0], [-1.0, -1.0])


def test_prepared_ring_is_not_stripped_again(square_ccw: np.ndarray) -> None:
    closed = np.vstack([square_ccw, square_ccw[:1]])
    with pytest.raises(DegenerateEdgeError) as ei:
        offset_polygon(closed, [], default_offset=1.0, strip_closing=False)
    assert ei.value.edge_index == 4
    doubled = np.vstack([closed, square_ccw[:1]])
    with pytest.raises(DegenerateEdgeError):
        offset_polygon(doubled, [], default_offset=1.0)


def test_extra_columns_are_ignored(square_ccw: np.ndarray) -> None:
    pts3 = np.column_stack([square_ccw, np.full(4, 7.0)])
    out = offset_polygon(pts3, [], default_offset=1.0)
    assert out.shape == (4, 2)


def test_legacy_mode_processes_m_minus_one_edges(square_ccw: np.ndarray) -> None:
    out = offset_polygon(square_ccw, [], default_offset=1.0, edge_mode="legacy")
    # 閉じ辺（左辺）はオフセット線を持たず、角 0 は上辺と下辺の平行フォールバック（上辺の終点）
    expected = np.array([[0.0, 11.0], [11.0, -1.0], [11.0, 11.0]])
    np.testing.assert_allclose(out, expected, atol=1e-12)


def test_legacy_mode_on_explicitly_closed_input_matches_closed(square_ccw: np.ndarray) -> None:
    closed = np.vstack([square_ccw, square_ccw[:1]])
    legacy = offset_polygon(closed, [0.5, 1.0, 1.5, 2.0], edge_mode="legacy")
    fixed = offset_polygon(square_ccw, [0.5, 1.0, 1.5, 2.0], edge_mode="closed")
    np.testing.assert_allclose(legacy, fixed, atol=1e-12)


def test_convex_uniform_matches_mitre_buffer() -> None:
    hexagon = _regular_polygon(6)
    d = 0.75
    out = offset_polygon(hexagon, [], default_offset=d)
    ref = Polygon(hexagon).buffer(d, join_style="mitre", mitre_limit=10.0)
    ref_pts = np.asarray(ref.exterior.coords)[:-1]
    for p in out:
        assert float(np.min(np.linalg.norm(ref_pts - p, axis=1))) < 1e-6
    for q in ref_pts:
        assert float(np.min(np.linalg.norm(out - q, axis=1))) < 1e-6


def test_corners_lie_on_both_offset_lines() -> None:
    poly = _regular_polygon(7, r=4.0)
    distances = np.array([0.5, 1.0, -0.3, 2.0, 0.0, 0.8, 1.2])
    out = offset_polygon(poly, distances)
    lines = build_offset_lines(poly, distances)
    n = poly.shape[0]
    for j in range(n):
        prev = lines[(j - 1) % n]
        cur = lines[j]
        assert _point_line_distance(out[j], prev[0], prev[1]) < 1e-9
        assert _point_line_distance(out[j], cur[0], cur[1]) < 1e-9


def test_normals_point_outward_for_ccw(square_ccw: np.ndarray) -> None:
    normals = edge_normals(square_ccw, edge_count=4)
    np.testing.assert_allclose(normals, [[0, -1], [1, 0], [0, 1], [-1, 0]], atol=1e-12)


def test_duplicate_consecutive_vertices_raise() -> None:
    pts = np.array([[0.0, 0.0], [5.0, 0.0], [5.0, 0.0], [0.0, 5.0]])
    with pytest.raises(DegenerateEdgeError) as ei:
        offset_polygon(pts, [], default_offset=1.0, path_index=3)
    assert ei.value.edge_index == 1
    assert ei.value.path_index == 3


def test_map_lookup_uses_path_index(square_ccw: np.ndarray) -> None:
    m = EdgeOffsetMap({(0, 0): 5.0, (1, 0): 1.0})
    out = offset_polygon(square_ccw, m, path_index=1)
    np.testing.assert_allclose(out[1], [10.0, -1.0], atol=1e-12)


class TestParallelCorners:
    @staticmethod
    def _collinear() -> np.ndarray:
        return np.array([[0.0, 0.0], [5.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])

    def test_fallback_uses_end_of_first_line(self) -> None:
        out = offset_polygon(self._collinear(), [1.0, 2.0, 1.0, 1.0, 1.0])
        # 角 1 は辺 0 と辺 1 が平行。辺 0 のオフセット線の終点 (5, -1) を採用する
        np.testing.assert_allclose(out[1], [5.0, -1.0], atol=1e-12)

    def test_raise_policy(self) -> None:
        with pytest.raises(DegenerateIntersectionError) as ei:
            offset_polygon(self._collinear(), [], default_offset=1.0, parallel_policy="raise")
        assert ei.value.corner_index == 1

    def test_warn_policy_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="varoffset.engine.offset"):
            out = offset_polygon(self._collinear(), [], default_offset=1.0, parallel_policy="warn")
        assert "parallel" in caplog.text
        np.testing.assert_allclose(out[1], [5.0, -1.0], atol=1e-12)


def test_intersect_lines_reports_parallel() -> None:
    a0, a1 = np.array([0.0, 0.0]), np.array([1.0, 0.0])
    b0, b1 = np.array([0.0, 1.0]), np.array([1.0, 1.0])
    hit = intersect_lines(a0, a1, b0, b1)
    assert hit.parallel
    np.testing.assert_allclose(hit.point, a1)

    c0, c1 = np.array([0.5, -1.0]), np.array([0.5, 1.0])
    hit2 = intersect_lines(a0, a1, c0, c1)
    assert not hit2.parallel
    np.testing.assert_allclose(hit2.point, [0.5, 0.0])


@pytest.mark.parametrize(
    "kwargs",
    [
        {"edge_mode": "open"},
        {"parallel_policy": "ignore"},
        {"default_offset": float("nan")},
    ],
)
def test_invalid_arguments_raise(square_ccw: np.ndarray, kwargs: dict) -> None:
    with pytest.raises(InvalidInputError):
        offset_polygon(square_ccw, [], **kwargs)


def test_too_few_vertices_raise() -> None:
    with pytest.raises(InvalidInputError):
        offset_polygon(np.array([[1.0, 1.0]]), [])
    with pytest.raises(InvalidInputError):
        offset_polygon(np.array([1.0, 2.0, 3.0]), [])


def test_input_is_not_mutated(square_ccw: np.ndarray) -> None:
    before = square_ccw.copy()
    offset_polygon(square_ccw, [3.0, 1.0])
    np.testing.assert_array_equal(square_ccw, before)
