from __future__ import annotations

"""
どこで: `engine.resolve`（自己交差の解消）
何を: 可変オフセット後の閉多角形から自己交差を検出し、交差パラメータで境界を分割して、
      単純閉ループのうち面積最大のものを返す。
なぜ: 辺ごとの距離が大きく異なると角の繋ぎ直しでループが重なり、小さな余分のローブが生じる。
      支配的な輪郭は面積最大のループである、という前提で 1 本の単純多角形に戻すため。

手順:
1. `find_self_intersections`: 非隣接辺ペアの交差を列挙（パラメータは `辺番号 + t`, t∈[0,1)）。
2. 交差が無ければ入力をそのまま返す。
3. `split_at`: 各交差の両パラメータで境界を巡回的に分割（最後の片は頂点 0 を跨ぐ）。
4. `close_piece`: 端点が許容誤差内で一致する片を閉じる。
5. Shapely で単純性 (`LinearRing.is_simple`) と面積 (`Polygon.area`) を判定し、最大面積を採用。
   同面積は分割順で先の片を採用。該当なしは `NoSimpleLoopFoundError`。

実装メモ:
- 交差列挙は O(n^2) の Numba カーネル（`VO_USE_NUMBA=0` で同じ関数を Python 実行）。
- 共線で重なる辺（行列式 0）は交差として扱わない。
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numba import njit  # type: ignore[attr-defined]
from shapely.geometry import LinearRing, Polygon

from ..common.errors import InvalidInputError, NoSimpleLoopFoundError
from ..common.types import PointsLike
from ..util.rings import strip_closing_point

logger = logging.getLogger(__name__)

# 同一交差の重複判定に使うパラメータ差（辺長に対する比）
PARAM_EPS = 1e-6


@dataclass(frozen=True)
class SelfIntersection:
    """境界上の 1 交差。`param_a < param_b` は同じ交点を通る 2 本の筋のパラメータ。"""

    param_a: float
    param_b: float
    point: tuple[float, float]


@njit(cache=True)
def _pairwise_crossings(xy: np.ndarray, tol: float, det_eps: float):
    """非隣接辺ペアの交差を列挙する。戻り値は `(count, pa, pb, px, py)`。

    各辺のパラメータは半開区間 [0, 1) で受け付け、頂点上の交差を二重に数えない。
    `tol` は長さ単位で、辺長で割ってパラメータ許容に換算する。
    """
    n = xy.shape[0]
    cap = 16
    pa = np.empty(cap, dtype=np.float64)
    pb = np.empty(cap, dtype=np.float64)
    px = np.empty(cap, dtype=np.float64)
    py = np.empty(cap, dtype=np.float64)
    k = 0
    for i in range(n):
        ax = xy[i, 0]
        ay = xy[i, 1]
        rx = xy[(i + 1) % n, 0] - ax
        ry = xy[(i + 1) % n, 1] - ay
        rlen = math.sqrt(rx * rx + ry * ry)
        if rlen == 0.0:
            continue
        tol_t = tol / rlen
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            cx = xy[j, 0]
            cy = xy[j, 1]
            sx = xy[(j + 1) % n, 0] - cx
            sy = xy[(j + 1) % n, 1] - cy
            slen = math.sqrt(sx * sx + sy * sy)
            if slen == 0.0:
                continue
            den = rx * sy - ry * sx
            if abs(den) < det_eps:
                continue
            qx = cx - ax
            qy = cy - ay
            t = (qx * sy - qy * sx) / den
            u = (qx * ry - qy * rx) / den
            tol_u = tol / slen
            if t < -tol_t or t >= 1.0 - tol_t:
                continue
            if u < -tol_u or u >= 1.0 - tol_u:
                continue
            t = min(max(t, 0.0), 1.0)
            u = min(max(u, 0.0), 1.0)
            if k == cap:
                cap *= 2
                pa2 = np.empty(cap, dtype=np.float64)
                pb2 = np.empty(cap, dtype=np.float64)
                px2 = np.empty(cap, dtype=np.float64)
                py2 = np.empty(cap, dtype=np.float64)
                pa2[:k] = pa[:k]
                pb2[:k] = pb[:k]
                px2[:k] = px[:k]
                py2[:k] = py[:k]
                pa = pa2
                pb = pb2
                px = px2
                py = py2
            pa[k] = i + t
            pb[k] = j + u
            px[k] = ax + t * rx
            py[k] = ay + t * ry
            k += 1
    return k, pa, pb, px, py


def _as_ring(polygon: PointsLike, tol: float) -> np.ndarray:
    arr = np.asarray(polygon, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise InvalidInputError(f"頂点列は形状 (n, 2) 以上である必要があります: {arr.shape}")
    return strip_closing_point(np.ascontiguousarray(arr[:, :2]), eps=tol)


def _cyclic_gap(a: float, b: float, n: int) -> float:
    d = abs(a - b) % n
    return min(d, n - d)


def find_self_intersections(
    polygon: PointsLike,
    tolerance: float = 1e-6,
    *,
    det_eps: float = 1e-12,
    use_numba: bool = True,
) -> list[SelfIntersection]:
    """閉境界の自己交差を `param_a` 昇順で返す（同一交差は許容誤差内で 1 つにまとめる）。"""
    xy = _as_ring(polygon, tolerance)
    n = xy.shape[0]
    if n < 4:
        return []
    kernel = _pairwise_crossings if use_numba else _pairwise_crossings.py_func
    count, pa, pb, px, py = kernel(xy, float(tolerance), float(det_eps))

    hits: list[SelfIntersection] = []
    for idx in np.argsort(pa[:count], kind="stable"):
        cand = SelfIntersection(float(pa[idx]), float(pb[idx]), (float(px[idx]), float(py[idx])))
        duplicate = any(
            math.dist(h.point, cand.point) <= tolerance
            and _cyclic_gap(h.param_a, cand.param_a, n) <= PARAM_EPS
            and _cyclic_gap(h.param_b, cand.param_b, n) <= PARAM_EPS
            for h in hits
        )
        if not duplicate:
            hits.append(cand)
    return hits


def point_at(xy: np.ndarray, param: float) -> np.ndarray:
    """閉境界上のパラメータ `param`（辺番号 + t）の点。"""
    n = xy.shape[0]
    base = math.floor(param)
    t = param - base
    i = int(base) % n
    return xy[i] + t * (xy[(i + 1) % n] - xy[i])


def _drop_repeats(pts: np.ndarray, eps: float) -> np.ndarray:
    # 端点（交点）は必ず残し、近接する中間頂点だけを間引く
    keep = [pts[0]]
    for p in pts[1:-1]:
        if float(np.linalg.norm(p - keep[-1])) > eps:
            keep.append(p)
    last = pts[-1]
    if len(keep) > 1 and float(np.linalg.norm(last - keep[-1])) <= eps:
        keep[-1] = last
    else:
        keep.append(last)
    return np.asarray(keep, dtype=np.float64)


def split_at(polygon: PointsLike, params: Sequence[float], tolerance: float = 1e-6) -> list[np.ndarray]:
    """閉境界を `params` の位置で巡回的に分割した片（開いた頂点列）のリストを返す。

    k 個のパラメータで k 片になり、最後の片は頂点 0 を跨いで先頭パラメータまで続く。
    パラメータが無い場合は境界全体（閉じ点なし）を 1 片として返す。
    """
    xy = _as_ring(polygon, tolerance)
    n = xy.shape[0]
    uniq: list[float] = []
    for p in sorted(float(p) % n for p in params):
        if not uniq or p - uniq[-1] > PARAM_EPS:
            uniq.append(p)
    if len(uniq) > 1 and _cyclic_gap(uniq[0], uniq[-1], n) <= PARAM_EPS:
        uniq.pop()
    if not uniq:
        return [xy.copy()]

    pieces: list[np.ndarray] = []
    for a, s in enumerate(uniq):
        e = uniq[a + 1] if a + 1 < len(uniq) else uniq[0] + n
        pts = [point_at(xy, s)]
        for k in range(math.floor(s) + 1, math.ceil(e)):
            pts.append(xy[k % n])
        pts.append(point_at(xy, e))
        pieces.append(_drop_repeats(np.asarray(pts, dtype=np.float64), tolerance))
    return pieces


def close_piece(piece: np.ndarray, tolerance: float = 1e-6) -> tuple[np.ndarray, bool]:
    """端点が `tolerance` 以内なら終点を始点へスナップして閉じる。

    Returns
    -------
    tuple
        `(piece, closed)`。閉じた場合は末尾が先頭と一致する（閉じ点付き）。
    """
    if piece.shape[0] < 2:
        return piece, False
    if float(np.linalg.norm(piece[-1] - piece[0])) > tolerance:
        return piece, False
    closed = piece.copy()
    closed[-1] = closed[0]
    return closed, True


def is_simple_loop(loop: np.ndarray) -> bool:
    """閉じ点付きの頂点列が、3 頂点以上・自己交差なし・面積正の単純閉ループか。"""
    if loop.shape[0] < 4:
        return False
    ring = LinearRing(loop[:, :2])
    if not ring.is_simple:
        return False
    return loop_area(loop) > 0.0


def loop_area(loop: np.ndarray) -> float:
    """閉ループの面積（非負）。"""
    return float(Polygon(loop[:, :2]).area)


def resolve_self_intersections(
    polygon: PointsLike,
    tolerance: float = 1e-6,
    *,
    use_numba: bool = True,
) -> np.ndarray:
    """自己交差した閉多角形を、面積最大の単純閉ループ（閉じ点なし `(k, 2)`）へ縮約する。

    交差が無い場合は入力をそのまま（頂点数・順序とも同一で）返す。

    Raises
    ------
    NoSimpleLoopFoundError
        分割片に単純閉ループが 1 つも無い場合。
    """
    original = np.asarray(polygon, dtype=np.float64)
    hits = find_self_intersections(original, tolerance, use_numba=use_numba)
    if not hits:
        return original

    params: list[float] = []
    for h in hits:
        params.extend((h.param_a, h.param_b))
    pieces = split_at(original, params, tolerance)

    best: np.ndarray | None = None
    best_area = -1.0
    for piece in pieces:
        loop, closed = close_piece(piece, tolerance)
        if not closed or not is_simple_loop(loop):
            continue
        area = loop_area(loop)
        # 同面積は分割順で先の片を優先（厳密な大なり）
        if area > best_area:
            best, best_area = loop, area

    logger.debug(
        "self-intersections=%d pieces=%d chosen_area=%s", len(hits), len(pieces), best_area
    )
    if best is None:
        raise NoSimpleLoopFoundError(
            f"自己交差 {len(hits)} 箇所で分割した {len(pieces)} 片に単純閉ループがありません"
        )
    return best[:-1].copy()


__all__ = [
    "SelfIntersection",
    "find_self_intersections",
    "point_at",
    "split_at",
    "close_piece",
    "is_simple_loop",
    "loop_area",
    "resolve_self_intersections",
]
