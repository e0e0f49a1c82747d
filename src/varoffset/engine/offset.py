"""
どこで: `engine.offset`（可変オフセットの中核）
何を: 閉多角形の各辺を辺ごとの距離だけ外向き法線方向へ平行移動し、隣接するオフセット線の
      交点（無限直線として）を新しい角として繋ぎ直す。
なぜ: 一様オフセットではなく「辺ごとに広げる/縮める量」を指定できるようにするため。

前提:
- 頂点列は反時計回り（CCW）。外向き法線は辺方向を時計回りに 90° 回した `(dy, -dx)/len`。
  正のオフセットで膨張、負で収縮する。巻き方向の正規化は呼び出し側（`util.rings.ensure_ccw`）。
- 出力頂点 j は、オフセット線 `(j-1) mod L` と `j` の交点（L はオフセット線の本数）。

辺モード（`edge_mode`）:
- `"closed"`: 末尾の閉じ点を取り除いた n 頂点に対し n 本すべての辺を処理する。
- `"legacy"`: 与えられた頂点列（長さ m）をそのまま扱い、先頭から m-1 本の辺だけを処理する。
  閉じ点付きの入力では `"closed"` と同じ結果になり、閉じ点なしでは閉じ辺
  `P[m-1] -> P[0]` が独自のオフセット線を持たない（従来コンポーネントの挙動）。

平行線ポリシー（`parallel_policy`）:
- `"fallback"`: 先行オフセット線の終点を角として採用する（従来互換）。
- `"warn"`: 同上 + WARNING ログ。
- `"raise"`: `DegenerateIntersectionError` を送出する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..common.errors import (
    DegenerateEdgeError,
    DegenerateIntersectionError,
    InvalidInputError,
)
from ..common.settings import EDGE_MODES, PARALLEL_POLICIES
from ..common.types import EdgeOffsetsLike, PointsLike
from ..util.rings import strip_closing_point
from .edge_map import EdgeOffsetMap

logger = logging.getLogger(__name__)

# 閉じ点（末尾 == 先頭）の判定距離
CLOSING_POINT_EPS = 1e-9


@dataclass(frozen=True)
class LineIntersection:
    """2 直線の交点計算の結果。

    `parallel=True` のとき交点は定まらず、`point` は先行線の終点（フォールバック値）。
    """

    point: np.ndarray
    parallel: bool


def intersect_lines(
    a0: np.ndarray, a1: np.ndarray, b0: np.ndarray, b1: np.ndarray, eps: float = 1e-10
) -> LineIntersection:
    """直線 a0-a1 と b0-b1 の交点を無限直線として求める。

    行列式の絶対値が `eps` 未満なら平行とみなす。
    """
    x1, y1 = float(a0[0]), float(a0[1])
    x2, y2 = float(a1[0]), float(a1[1])
    x3, y3 = float(b0[0]), float(b0[1])
    x4, y4 = float(b1[0]), float(b1[1])

    den = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(den) < eps:
        return LineIntersection(np.array([x2, y2], dtype=np.float64), True)

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / den
    return LineIntersection(
        np.array([x1 + t * (x2 - x1), y1 + t * (y2 - y1)], dtype=np.float64), False
    )


def prepare_vertices(
    vertices: PointsLike, *, edge_mode: str = "closed", strip_closing: bool = True
) -> np.ndarray:
    """入力頂点列を `(n, 2) float64` に整形する（Z 以降の列は無視）。

    `"closed"` かつ `strip_closing=True` では末尾の閉じ点を 1 つだけ取り除く。
    頂点が 2 未満なら `InvalidInputError`。
    """
    arr = np.asarray(vertices, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise InvalidInputError(f"頂点列は形状 (n, 2) 以上である必要があります: {arr.shape}")
    if not np.all(np.isfinite(arr[:, :2])):
        raise InvalidInputError("頂点座標に NaN/inf が含まれています")
    xy = np.ascontiguousarray(arr[:, :2])
    if edge_mode == "closed" and strip_closing:
        xy = strip_closing_point(xy, eps=CLOSING_POINT_EPS)
    if xy.shape[0] < 2:
        raise InvalidInputError(f"頂点は 2 点以上必要です: {xy.shape[0]}")
    return xy


def edge_count_for(vertex_count: int, edge_mode: str) -> int:
    """辺モードに応じたオフセット線の本数。"""
    return vertex_count if edge_mode == "closed" else vertex_count - 1


def edge_normals(xy: np.ndarray, *, edge_count: int, path_index: int = 0) -> np.ndarray:
    """辺 0..edge_count-1 の外向き単位法線 `(E, 2)`。

    辺 i は `xy[i] -> xy[(i+1) % n]`。長さ 0 の辺は `DegenerateEdgeError`。
    """
    n = xy.shape[0]
    idx = np.arange(edge_count)
    d = xy[(idx + 1) % n] - xy[idx]
    lengths = np.hypot(d[:, 0], d[:, 1])
    zero = np.flatnonzero(lengths == 0.0)
    if zero.size:
        raise DegenerateEdgeError(path_index, int(zero[0]))
    return np.column_stack([d[:, 1], -d[:, 0]]) / lengths[:, None]


def build_offset_lines(
    xy: np.ndarray, distances: np.ndarray, *, path_index: int = 0
) -> np.ndarray:
    """各辺を法線方向へ `distances[i]` だけ移動した線分 `(E, 2, 2)` を返す。"""
    edge_count = int(distances.shape[0])
    normals = edge_normals(xy, edge_count=edge_count, path_index=path_index)
    shift = normals * distances[:, None]
    idx = np.arange(edge_count)
    lines = np.empty((edge_count, 2, 2), dtype=np.float64)
    lines[:, 0, :] = xy[idx] + shift
    lines[:, 1, :] = xy[(idx + 1) % xy.shape[0]] + shift
    return lines


def _check_mode(edge_mode: str, parallel_policy: str) -> None:
    if edge_mode not in EDGE_MODES:
        raise InvalidInputError(f"未知の edge_mode: {edge_mode!r}（{'|'.join(EDGE_MODES)}）")
    if parallel_policy not in PARALLEL_POLICIES:
        raise InvalidInputError(
            f"未知の parallel_policy: {parallel_policy!r}（{'|'.join(PARALLEL_POLICIES)}）"
        )


def offset_polygon(
    vertices: PointsLike,
    edge_offsets: EdgeOffsetMap | EdgeOffsetsLike | None = None,
    default_offset: float = 0.0,
    *,
    path_index: int = 0,
    edge_mode: str = "closed",
    parallel_policy: str = "fallback",
    parallel_eps: float = 1e-10,
    strip_closing: bool = True,
) -> np.ndarray:
    """1 つの閉多角形を辺ごとの距離でオフセットし、角を繋ぎ直した頂点列を返す。

    Parameters
    ----------
    vertices : PointsLike
        CCW の頂点列 `(n, 2)`（3 列目以降は無視）。
    edge_offsets : EdgeOffsetMap | Sequence[float] | Mapping | None
        辺ごとのオフセット量。一覧なら辺順、辞書なら `(path_index, edge_index)` キー。
    default_offset : float
        未指定の辺に使う距離。
    path_index : int
        `edge_offsets` を引くときの第 1 キー（単一多角形では 0）。
    edge_mode : {"closed", "legacy"}
        処理する辺の本数（モジュール docstring 参照）。
    parallel_policy : {"fallback", "warn", "raise"}
        隣接オフセット線が平行なときの扱い。
    parallel_eps : float
        平行判定に使う行列式の閾値。
    strip_closing : bool
        False なら閉じ点除去を済ませた頂点列として扱い、末尾を取り除かない。

    Returns
    -------
    np.ndarray
        `(L, 2) float64`。L は `"closed"` で n、`"legacy"` で m-1。

    Raises
    ------
    InvalidInputError
        頂点不足・非有限座標・未知のモード。
    DegenerateEdgeError
        連続頂点が一致する辺がある。
    DegenerateIntersectionError
        `parallel_policy="raise"` で平行な角がある。
    """
    _check_mode(edge_mode, parallel_policy)
    default = float(default_offset)
    if not np.isfinite(default):
        raise InvalidInputError(f"default_offset は有限値である必要があります: {default_offset}")

    xy = prepare_vertices(vertices, edge_mode=edge_mode, strip_closing=strip_closing)
    n_edges = edge_count_for(xy.shape[0], edge_mode)
    omap = EdgeOffsetMap.coerce(edge_offsets, path_index=path_index)
    distances = omap.resolve(path_index, n_edges, default)
    lines = build_offset_lines(xy, distances, path_index=path_index)

    out = np.empty((n_edges, 2), dtype=np.float64)
    for j in range(n_edges):
        prev = lines[(j - 1) % n_edges]
        cur = lines[j]
        hit = intersect_lines(prev[0], prev[1], cur[0], cur[1], parallel_eps)
        if hit.parallel:
            if parallel_policy == "raise":
                raise DegenerateIntersectionError(path_index, j)
            if parallel_policy == "warn":
                logger.warning(
                    "parallel offset lines at path=%d corner=%d; using end point of line %d",
                    path_index,
                    j,
                    (j - 1) % n_edges,
                )
        out[j] = hit.point

    logger.debug(
        "offset path=%d vertices=%d edges=%d mode=%s", path_index, xy.shape[0], n_edges, edge_mode
    )
    return out


__all__ = [
    "LineIntersection",
    "intersect_lines",
    "prepare_vertices",
    "edge_count_for",
    "edge_normals",
    "build_offset_lines",
    "offset_polygon",
    "CLOSING_POINT_EPS",
]
